"""
Tradebook - Trade Journal Importer

Rebuilds round-trip trades from broker fill exports, with per-instrument
FIFO position matching, fee and P&L proration, and row-level error reporting.
"""

__version__ = "0.1.0"
__author__ = "Tradebook Team"
