"""
Trade Import Module

Reconstructs round-trip trades from broker and platform CSV exports.
Supports per-execution fills exports (FIFO matched through a position
ledger) and one-row-per-trade round-trip exports.
"""

from .detector import ImportFormat, detect_format, import_file, import_trades
from .errors import ImportIssue, IssueKind
from .export import export_trades, summarize_trades, trades_to_dataframe
from .fills_importer import FillsCSVImporter, import_fills_csv
from .ledger import PositionLedger
from .models import Direction, Fill, Lot, ParseResult, RowError, Side, Trade
from .roundtrip_importer import RoundTripCSVImporter, import_roundtrip_csv

__all__ = [
    'ImportFormat',
    'detect_format',
    'import_file',
    'import_trades',
    'ImportIssue',
    'IssueKind',
    'export_trades',
    'summarize_trades',
    'trades_to_dataframe',
    'FillsCSVImporter',
    'import_fills_csv',
    'PositionLedger',
    'Direction',
    'Fill',
    'Lot',
    'ParseResult',
    'RowError',
    'Side',
    'Trade',
    'RoundTripCSVImporter',
    'import_roundtrip_csv',
]
