"""
Header validation

Normalizes header cells and resolves the index of every required column
once, before any data row is read.
"""

import logging
import re
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r'\s+')

# (field name, column name as it appears in exports)
FILL_COLUMNS: List[Tuple[str, str]] = [
    ('date_time', 'Date/Time'),
    ('symbol', 'Symbol'),
    ('side', 'Side'),
    ('quantity', 'Quantity'),
    ('price', 'Price'),
    ('gross_pnl', 'Gross P/L'),
    ('fee', 'Fee'),
    ('net_pnl', 'Net P/L'),
]


def normalize_header(name: str) -> str:
    """Case-fold and drop whitespace and slashes: 'Net P/L' -> 'netpl'"""
    return _WHITESPACE.sub('', name.casefold()).replace('/', '')


class FillColumns(NamedTuple):
    """Resolved column positions for a fills export"""
    date_time: int
    symbol: int
    side: int
    quantity: int
    price: int
    gross_pnl: int
    fee: int
    net_pnl: int
    width: int  # Field count every data row must have


class HeaderValidator:
    """
    Checks a header row against a set of required columns

    Column order in the file is free; only presence is required.
    """

    def __init__(self, required_columns: Sequence[Tuple[str, str]]):
        self.required_columns = list(required_columns)

    def validate(self, header_row: Sequence[str]) -> Tuple[Optional[Dict[str, int]], List[str]]:
        """
        Resolve required column indices

        Args:
            header_row: Tokenized header cells

        Returns:
            Tuple of (field name -> index map or None, missing-column errors)
        """
        positions: Dict[str, int] = {}
        for index, cell in enumerate(header_row):
            # First occurrence wins for duplicated headers
            positions.setdefault(normalize_header(cell), index)

        indices: Dict[str, int] = {}
        errors: List[str] = []
        for field_name, column_name in self.required_columns:
            index = positions.get(normalize_header(column_name))
            if index is None:
                errors.append(f'Missing required column: "{column_name}"')
            else:
                indices[field_name] = index

        if errors:
            logger.warning(f"Header is missing {len(errors)} required column(s)")
            return None, errors
        return indices, errors

    def has_all(self, header_row: Sequence[str]) -> bool:
        """True if every required column is present"""
        present = {normalize_header(cell) for cell in header_row}
        return all(normalize_header(name) in present for _, name in self.required_columns)


def resolve_fill_columns(header_row: Sequence[str]) -> Tuple[Optional[FillColumns], List[str]]:
    """Validate a fills header and return its fixed column record"""
    indices, errors = HeaderValidator(FILL_COLUMNS).validate(header_row)
    if indices is None:
        return None, errors
    return FillColumns(width=len(header_row), **indices), errors
