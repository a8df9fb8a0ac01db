"""
Import format detection and dispatch

Chooses between the fills importer and the round-trip importer from the
header row, and reads export files from disk.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .headers import FILL_COLUMNS, HeaderValidator
from .fills_importer import FillsCSVImporter
from .models import ParseResult
from .roundtrip_importer import RoundTripCSVImporter
from .tokenizer import MalformedLineError, split_lines, tokenize_line

logger = logging.getLogger(__name__)

# Symbol is shared by both layouts and left out of detection
_FILLS_DETECTION_COLUMNS = [column for column in FILL_COLUMNS if column[0] != 'symbol']


class ImportFormat(Enum):
    """Supported export layouts"""
    FILLS = "fills"
    ROUND_TRIP = "round-trip"


def detect_format(text: str) -> ImportFormat:
    """
    Detect the export layout from its header row

    Args:
        text: Raw CSV text

    Returns:
        ImportFormat.FILLS when every fills column is present, otherwise
        ImportFormat.ROUND_TRIP
    """
    lines = split_lines(text)
    if not lines:
        return ImportFormat.FILLS

    try:
        header = tokenize_line(lines[0])
    except MalformedLineError:
        # The fills importer reports the broken header
        return ImportFormat.FILLS

    if HeaderValidator(_FILLS_DETECTION_COLUMNS).has_all(header):
        return ImportFormat.FILLS
    return ImportFormat.ROUND_TRIP


def import_trades(text: str, format_hint: Optional[Union[ImportFormat, str]] = None,
                  config: Optional[Dict[str, Any]] = None,
                  source: Optional[str] = None) -> ParseResult:
    """
    Import an export of either layout

    Args:
        text: Raw CSV text
        format_hint: Optional layout, auto-detected if None
        config: Optional application config
        source: Optional file name used in log events

    Returns:
        ParseResult

    Raises:
        ValueError: If format_hint is not a supported layout
    """
    if format_hint is None:
        import_format = detect_format(text)
        logger.info(f"Detected {import_format.value} layout")
    else:
        try:
            import_format = ImportFormat(format_hint)
        except ValueError:
            raise ValueError(f"Unsupported import format: {format_hint}")

    if import_format == ImportFormat.FILLS:
        return FillsCSVImporter(config).import_text(text, source=source)
    return RoundTripCSVImporter(config).import_text(text, source=source)


def import_file(file_path: Union[str, Path],
                format_hint: Optional[Union[ImportFormat, str]] = None,
                config: Optional[Dict[str, Any]] = None) -> ParseResult:
    """
    Import an export file

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Export file not found: {file_path}")

    logger.info(f"Importing trades from {file_path.name}")
    # utf-8-sig drops a leading BOM; text mode turns CR-only line endings into LF
    text = file_path.read_text(encoding='utf-8-sig')
    return import_trades(text, format_hint=format_hint, config=config, source=file_path.name)
