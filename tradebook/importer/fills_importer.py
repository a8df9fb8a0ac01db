"""
Fills CSV Importer

Reconstructs round-trip trades from a platform export with one row per
execution (Date/Time, Symbol, Side, Quantity, Price, Gross P/L, Fee, Net P/L).

Pipeline: tokenize -> validate header -> parse rows -> match in the position
ledger -> collect errors and unmatched warnings -> ParseResult. Bad data never
raises; it is reported through ``ParseResult.errors``.
"""

import logging
from typing import Any, Dict, List, Optional

from ..utils.config import DEFAULT_CONFIG
from ..utils.structured_logging import (
    ImportContext,
    ImportLogger,
    get_import_logger,
    import_timer,
)
from .errors import EMPTY_INPUT_MESSAGE, ErrorCollector, malformed_header_message
from .headers import resolve_fill_columns
from .ledger import PositionLedger
from .models import Fill, ParseResult, Trade
from .row_parser import parse_fill_row
from .tokenizer import MalformedLine, tokenize

logger = logging.getLogger(__name__)


class FillsCSVImporter:
    """
    Importer for per-execution fills exports

    Every call to ``import_text`` builds its own ledger and collector, so one
    importer instance can be shared across threads.
    """

    format_name = "fills"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the importer

        Args:
            config: Full application config (see ConfigManager); only the
                ``importer`` section is read
        """
        importer_config = (config or DEFAULT_CONFIG).get('importer', {})
        self.account_id = importer_config.get('account_id', 'default')
        self.money_places = importer_config.get('money_places', 2)

    def import_text(self, text: str, source: Optional[str] = None) -> ParseResult:
        """
        Import a fills export held in memory

        Args:
            text: Raw CSV text
            source: Optional file name used in log events

        Returns:
            ParseResult with trades in matching order and all errors/warnings
        """
        events = get_import_logger(__name__, ImportContext.create(
            source=source, import_format=self.format_name, account_id=self.account_id))

        with import_timer(events, "fills_import"):
            result = self._run(text, events)

        events.import_event(
            "completed",
            f"Imported {len(result.successful_trades)} trades with {len(result.errors)} issues",
            trade_count=len(result.successful_trades),
            issue_count=len(result.errors),
        )
        return result

    def _run(self, text: str, events: ImportLogger) -> ParseResult:
        collector = ErrorCollector()
        rows = tokenize(text)

        if rows and isinstance(rows[0], MalformedLine):
            return self._abort([malformed_header_message(rows[0].reason)], collector, events)

        if len(rows) < 2:
            return self._abort([EMPTY_INPUT_MESSAGE], collector, events)

        columns, header_errors = resolve_fill_columns(rows[0])
        if columns is None:
            return self._abort(header_errors, collector, events)

        events.import_event("started", f"Parsing {len(rows) - 1} data rows",
                            row_count=len(rows) - 1)

        fills: List[Fill] = []
        for row_number, row in enumerate(rows[1:], start=2):
            outcome = parse_fill_row(row, columns, row_number)
            if isinstance(outcome, Fill):
                fills.append(outcome)
            else:
                collector.add_row_errors(outcome)
                events.row_rejected(row_number, len(outcome), f"Row {row_number} rejected")

        ledger = PositionLedger(money_places=self.money_places, account_id=self.account_id)
        trades: List[Trade] = []
        for fill in fills:
            for trade in ledger.apply(fill):
                events.ledger_event("trade_closed", trade.symbol, trade.contracts,
                                    f"Row {fill.row_number} closed {trade.contracts} "
                                    f"{trade.symbol} {trade.direction.value}",
                                    profit=trade.profit)
                trades.append(trade)

        for symbol, quantity, direction in ledger.unmatched():
            collector.add_unmatched(symbol, quantity, direction.value)
            events.ledger_event("unmatched", symbol, quantity,
                                f"{symbol} has {quantity} unmatched {direction.value}")

        return self._assemble(trades, collector)

    def _abort(self, reasons: List[str], collector: ErrorCollector,
               events: ImportLogger) -> ParseResult:
        for message in reasons:
            collector.add_structural(message)
        events.import_aborted(reasons)
        return self._assemble([], collector)

    @staticmethod
    def _assemble(trades: List[Trade], collector: ErrorCollector) -> ParseResult:
        return ParseResult(
            successful_trades=trades,
            errors=collector.messages,
            issues=collector.issues,
        )


def import_fills_csv(text: str, config: Optional[Dict[str, Any]] = None) -> ParseResult:
    """
    Convenience function to import a fills export

    Args:
        text: Raw CSV text
        config: Optional application config

    Returns:
        ParseResult
    """
    return FillsCSVImporter(config).import_text(text)
