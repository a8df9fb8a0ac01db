"""
Row parser for fills exports

Turns one tokenized data row into a Fill, or into the list of every field
error found on that row. Parsing never raises.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Union

from .headers import FillColumns
from .models import Fill, RowError, Side
from .tokenizer import MalformedLine, Row

FILL_TIMESTAMP_FORMAT = '%m/%d/%Y %I:%M:%S %p'

RowOutcome = Union[Fill, List[RowError]]


def parse_decimal(raw: str) -> Optional[Decimal]:
    """Parse a finite decimal, ignoring thousands separators"""
    cleaned = raw.replace(',', '').strip()
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def parse_quantity(raw: str) -> Optional[int]:
    """Parse a strictly positive whole quantity such as '100' or '1,000'"""
    value = parse_decimal(raw)
    if value is None or value <= 0 or value != value.to_integral_value():
        return None
    return int(value)


def parse_fill_timestamp(raw: str) -> Optional[datetime]:
    """
    Parse an export timestamp like '1/15/2024 2:45:00 PM'

    The wall-clock value is stored as UTC.
    """
    try:
        parsed = datetime.strptime(raw.strip(), FILL_TIMESTAMP_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc)


def malformed_row_error(row: MalformedLine, row_number: int) -> RowError:
    return RowError(row_number, f"Malformed row: {row.reason}")


def parse_fill_row(row: Row, columns: FillColumns, row_number: int) -> RowOutcome:
    """
    Parse one data row of a fills export

    Args:
        row: Tokenized fields, or the MalformedLine left by the tokenizer
        columns: Column positions resolved from the header
        row_number: 1-based row number (header is row 1)

    Returns:
        Fill if every field is valid, otherwise a non-empty list of RowError
    """
    if isinstance(row, MalformedLine):
        return [malformed_row_error(row, row_number)]

    if len(row) != columns.width:
        return [RowError(row_number,
                         f"Column count mismatch (expected {columns.width}, got {len(row)})")]

    errors: List[RowError] = []

    raw_time = row[columns.date_time]
    timestamp = parse_fill_timestamp(raw_time)
    if timestamp is None:
        errors.append(RowError(row_number, f'Invalid Date/Time format: "{raw_time}"'))

    symbol = row[columns.symbol].strip()
    if not symbol:
        errors.append(RowError(row_number, "Symbol is missing"))

    raw_side = row[columns.side]
    side = Side.parse(raw_side)
    if side is None:
        errors.append(RowError(row_number, f'Invalid Side: "{raw_side}"'))

    raw_quantity = row[columns.quantity]
    quantity = parse_quantity(raw_quantity)
    if quantity is None:
        errors.append(RowError(row_number, f'Invalid Quantity: "{raw_quantity}"'))

    raw_price = row[columns.price]
    price = parse_decimal(raw_price)
    if price is None or price < 0:
        errors.append(RowError(row_number, f'Invalid Price: "{raw_price}"'))

    raw_net = row[columns.net_pnl]
    net_pnl = parse_decimal(raw_net)
    if net_pnl is None:
        errors.append(RowError(row_number, f'Invalid Net P/L: "{raw_net}"'))

    raw_fee = row[columns.fee]
    fee = parse_decimal(raw_fee)
    if fee is None:
        errors.append(RowError(row_number, f'Invalid Fee: "{raw_fee}"'))

    if errors:
        return errors

    return Fill(
        timestamp=timestamp,
        symbol=symbol,
        side=side,
        quantity=quantity,
        price=price,
        fee=fee,
        net_pnl=net_pnl,
        gross_pnl=parse_decimal(row[columns.gross_pnl]),
        row_number=row_number,
    )
