"""
CSV tokenizer

Splits raw export text into rows of trimmed string fields. Line endings may
be LF or CRLF, blank lines are dropped, and fields follow RFC4180 quoting
(a quoted field may hold commas, ``""`` is an escaped quote).

A line the CSV reader rejects (for example a bare carriage return inside an
unquoted field) is kept in place as a ``MalformedLine`` so callers can report
it against its row number and carry on with the rest of the export.
"""

import csv
import logging
import re
from dataclasses import dataclass
from typing import List, Union

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r'\r\n|\n')
_BOM = '\ufeff'


class MalformedLineError(ValueError):
    """Raised when a line cannot be split into fields"""


@dataclass(frozen=True)
class MalformedLine:
    """Stand-in for a line the CSV reader could not split"""
    text: str
    reason: str


Row = Union[List[str], MalformedLine]


def split_lines(text: str) -> List[str]:
    """Split text on LF/CRLF and drop lines that are empty after trimming"""
    if text.startswith(_BOM):
        text = text[len(_BOM):]
    return [line for line in _LINE_BREAK.split(text) if line.strip()]


def tokenize_line(line: str) -> List[str]:
    """
    Split one CSV line into fields

    Args:
        line: Single logical row without its line terminator

    Returns:
        Fields with surrounding whitespace removed and quotes resolved

    Raises:
        MalformedLineError: If the CSV reader rejects the line
    """
    reader = csv.reader([line], skipinitialspace=True, strict=False)
    try:
        fields = next(reader, [])
    except csv.Error as e:
        raise MalformedLineError(str(e)) from e
    return [value.strip() for value in fields]


def tokenize(text: str) -> List[Row]:
    """Tokenize the whole export, header row first"""
    rows: List[Row] = []
    for line in split_lines(text):
        try:
            rows.append(tokenize_line(line))
        except MalformedLineError as e:
            logger.debug(f"Could not tokenize line: {e}")
            rows.append(MalformedLine(line, str(e)))
    return rows
