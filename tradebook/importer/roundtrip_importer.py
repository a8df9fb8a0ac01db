"""
Round-trip CSV Importer

Imports broker exports that already pair entries with exits, one completed
trade per row (Symbol, Qty, BuyPrice, SellPrice, PNL, BoughtTimestamp,
SoldTimestamp). Direction follows which side happened first.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from fractions import Fraction
from typing import Any, Dict, List, Optional, Union

from ..utils.config import DEFAULT_CONFIG
from ..utils.structured_logging import (
    ImportContext,
    get_import_logger,
    import_timer,
)
from .errors import EMPTY_INPUT_MESSAGE, ErrorCollector, malformed_header_message
from .headers import HeaderValidator
from .ledger import TRADE_DATE_FORMAT, round_money
from .models import Direction, ParseResult, RowError, Trade
from .row_parser import malformed_row_error, parse_decimal, parse_quantity
from .tokenizer import MalformedLine, Row, tokenize

logger = logging.getLogger(__name__)

ROUND_TRIP_COLUMNS = [
    ('symbol', 'Symbol'),
    ('qty', 'Qty'),
    ('buy_price', 'BuyPrice'),
    ('sell_price', 'SellPrice'),
    ('pnl', 'PNL'),
    ('bought_at', 'BoughtTimestamp'),
    ('sold_at', 'SoldTimestamp'),
]

BROKER_TIMESTAMP_FORMATS = [
    '%m/%d/%Y %I:%M %p', '%m/%d/%Y %I:%M%p', '%m/%d/%Y %H:%M',
    '%m/%d/%Y %I:%M:%S %p', '%m/%d/%Y %I:%M:%S%p', '%m/%d/%Y %H:%M:%S',
]


def parse_broker_timestamp(raw: str) -> Optional[datetime]:
    """Parse 'M/D/YYYY H:MM[:SS]' with an optional AM/PM marker"""
    value = raw.strip()
    for fmt in BROKER_TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def parse_pnl(raw: str) -> Optional[Decimal]:
    """Parse a P&L figure such as '$1,234.50' or '(75.00)' for a loss"""
    cleaned = raw.replace('$', '').strip()
    if cleaned.startswith('(') and cleaned.endswith(')'):
        value = parse_decimal(cleaned[1:-1])
        return -value if value is not None else None
    return parse_decimal(cleaned)


class RoundTripCSVImporter:
    """Importer for one-row-per-trade broker exports"""

    format_name = "round_trip"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        importer_config = (config or DEFAULT_CONFIG).get('importer', {})
        self.account_id = importer_config.get('account_id', 'default')
        self.money_places = importer_config.get('money_places', 2)
        self.validator = HeaderValidator(ROUND_TRIP_COLUMNS)

    def import_text(self, text: str, source: Optional[str] = None) -> ParseResult:
        """
        Import a round-trip export held in memory

        Args:
            text: Raw CSV text
            source: Optional file name used in log events

        Returns:
            ParseResult with one trade per valid row
        """
        events = get_import_logger(__name__, ImportContext.create(
            source=source, import_format=self.format_name, account_id=self.account_id))
        collector = ErrorCollector()
        trades: List[Trade] = []

        with import_timer(events, "round_trip_import"):
            rows = tokenize(text)
            if rows and isinstance(rows[0], MalformedLine):
                reasons = [malformed_header_message(rows[0].reason)]
            elif len(rows) < 2:
                reasons = [EMPTY_INPUT_MESSAGE]
            else:
                columns, reasons = self.validator.validate(rows[0])

            if reasons:
                for message in reasons:
                    collector.add_structural(message)
                events.import_aborted(reasons)
                return ParseResult(trades, collector.messages, collector.issues)

            width = len(rows[0])
            for row_number, row in enumerate(rows[1:], start=2):
                outcome = self._parse_row(row, columns, width, row_number)
                if isinstance(outcome, Trade):
                    trades.append(outcome)
                else:
                    collector.add_row_errors(outcome)
                    events.row_rejected(row_number, len(outcome), f"Row {row_number} rejected")

        events.import_event(
            "completed",
            f"Imported {len(trades)} trades with {len(collector)} issues",
            trade_count=len(trades),
            issue_count=len(collector),
        )
        return ParseResult(trades, collector.messages, collector.issues)

    def _parse_row(self, row: Row, columns: Dict[str, int], width: int,
                   row_number: int) -> Union[Trade, List[RowError]]:
        if isinstance(row, MalformedLine):
            return [malformed_row_error(row, row_number)]

        if len(row) != width:
            return [RowError(row_number, f"Column count mismatch (expected {width}, got {len(row)})")]

        errors: List[RowError] = []

        symbol = row[columns['symbol']].strip()
        if not symbol:
            errors.append(RowError(row_number, "Symbol is missing"))

        raw_qty = row[columns['qty']]
        contracts = parse_quantity(raw_qty)
        if contracts is None:
            errors.append(RowError(row_number, f'Invalid Qty: "{raw_qty}"'))

        raw_pnl = row[columns['pnl']]
        pnl = parse_pnl(raw_pnl)
        if pnl is None:
            errors.append(RowError(row_number, f'Invalid PNL: "{raw_pnl}"'))

        prices = {}
        for key, label in (('buy_price', 'BuyPrice'), ('sell_price', 'SellPrice')):
            raw = row[columns[key]]
            prices[key] = parse_decimal(raw)
            if prices[key] is None or prices[key] < 0:
                errors.append(RowError(row_number, f'Invalid {label}: "{raw}"'))

        times = {}
        for key, label in (('bought_at', 'BoughtTimestamp'), ('sold_at', 'SoldTimestamp')):
            raw = row[columns[key]]
            times[key] = parse_broker_timestamp(raw)
            if times[key] is None:
                errors.append(RowError(row_number, f'Invalid {label} format: "{raw}"'))

        if times['bought_at'] and times['sold_at'] and times['bought_at'] == times['sold_at']:
            errors.append(RowError(row_number, "BoughtTimestamp and SoldTimestamp are identical"))

        if errors:
            return errors

        if times['bought_at'] < times['sold_at']:
            direction = Direction.LONG
            time_in, time_out = times['bought_at'], times['sold_at']
            entry, exit_ = prices['buy_price'], prices['sell_price']
        else:
            direction = Direction.SHORT
            time_in, time_out = times['sold_at'], times['bought_at']
            entry, exit_ = prices['sell_price'], prices['buy_price']

        return Trade(
            symbol=symbol,
            direction=direction,
            contracts=contracts,
            entry_price=float(entry),
            exit_price=float(exit_),
            time_in=time_in,
            time_out=time_out,
            profit=round_money(Fraction(pnl), self.money_places),
            fees=0.0,
            date=time_in.strftime(TRADE_DATE_FORMAT),
            account_id=self.account_id,
        )


def import_roundtrip_csv(text: str, config: Optional[Dict[str, Any]] = None) -> ParseResult:
    """Convenience function to import a round-trip export"""
    return RoundTripCSVImporter(config).import_text(text)
