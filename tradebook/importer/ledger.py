"""
Position Ledger

Per-symbol FIFO matching of fills into round-trip trades.

Each symbol owns a deque of open lots, all opened on the same side. A fill
on that side (or on an empty book) opens a new lot; a fill on the other side
consumes lots from the front, emitting one Trade per lot touched. Net P/L and
fees are prorated by matched quantity with exact fractions and rounded only
when a Trade is built. Closing quantity left over once the book is empty
flips the position and opens a lot on the fill's side.
"""

import logging
from collections import deque
from decimal import ROUND_HALF_UP, Decimal
from fractions import Fraction
from typing import Deque, Dict, List, Tuple

from .models import Direction, Fill, Lot, Trade

logger = logging.getLogger(__name__)

TRADE_DATE_FORMAT = '%m/%d/%Y'


def round_money(value: Fraction, places: int = 2) -> float:
    """Round an exact amount half-up to ``places`` decimals"""
    exact = Decimal(value.numerator) / Decimal(value.denominator)
    return float(exact.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


class PositionLedger:
    """
    Open-position state for one import

    Usage::

        ledger = PositionLedger()
        for fill in fills:
            trades.extend(ledger.apply(fill))
        residual = ledger.unmatched()
    """

    def __init__(self, money_places: int = 2, account_id: str = "default"):
        self.money_places = money_places
        self.account_id = account_id
        # Insertion order doubles as first-seen symbol order
        self._books: Dict[str, Deque[Lot]] = {}

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def apply(self, fill: Fill) -> List[Trade]:
        """
        Apply one fill to its symbol's book

        Args:
            fill: Validated fill, in input order

        Returns:
            Trades closed by this fill, in matching order (may be empty)
        """
        book = self._books.setdefault(fill.symbol, deque())

        if not book or book[0].open_side == fill.side:
            book.append(Lot.from_fill(fill))
            return []

        trades: List[Trade] = []
        remaining = fill.quantity
        while remaining > 0 and book:
            lot = book[0]
            matched = min(remaining, lot.remaining_quantity)
            trades.append(self._close(lot, fill, matched))
            remaining -= matched
            if lot.remaining_quantity == 0:
                book.popleft()

        if remaining > 0:
            # Book emptied before the fill was used up: position flips
            book.append(Lot.from_fill(fill, remaining))
            logger.debug(f"{fill.symbol} flipped to {fill.side.value} with {remaining} open "
                         f"(row {fill.row_number})")

        return trades

    def _close(self, lot: Lot, fill: Fill, matched: int) -> Trade:
        """Match ``matched`` units of ``lot`` against ``fill`` and consume them"""
        entry_share = lot.entry_net_pnl * Fraction(matched, lot.remaining_quantity)
        entry_fee_share = lot.entry_fee * Fraction(matched, lot.remaining_quantity)
        exit_share = Fraction(fill.net_pnl) * Fraction(matched, fill.quantity)
        exit_fee_share = Fraction(fill.fee) * Fraction(matched, fill.quantity)

        trade = Trade(
            symbol=lot.symbol,
            direction=lot.direction,
            contracts=matched,
            entry_price=float(lot.entry_price),
            exit_price=float(fill.price),
            time_in=lot.entry_timestamp,
            time_out=fill.timestamp,
            profit=round_money(entry_share + exit_share, self.money_places),
            fees=round_money(entry_fee_share + exit_fee_share, self.money_places),
            date=lot.entry_timestamp.strftime(TRADE_DATE_FORMAT),
            account_id=self.account_id,
        )

        lot.remaining_quantity -= matched
        lot.entry_net_pnl -= entry_share
        lot.entry_fee -= entry_fee_share

        logger.debug(f"Closed {matched} {lot.symbol} {trade.direction.value}: "
                     f"{trade.entry_price} -> {trade.exit_price}, profit {trade.profit}")
        return trade

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def symbols(self) -> List[str]:
        """Every symbol seen so far, in first-seen order"""
        return list(self._books)

    def open_lots(self, symbol: str) -> List[Lot]:
        """Snapshot of a symbol's open lots, front first"""
        return [Lot(**vars(lot)) for lot in self._books.get(symbol, ())]

    def open_quantity(self, symbol: str) -> int:
        return sum(lot.remaining_quantity for lot in self._books.get(symbol, ()))

    def open_net_pnl(self, symbol: str) -> Fraction:
        """Unconsumed net P/L still carried by a symbol's open lots"""
        return sum((lot.entry_net_pnl for lot in self._books.get(symbol, ())), Fraction(0))

    def open_direction(self, symbol: str):
        """Direction of the open position, None when flat"""
        book = self._books.get(symbol)
        if not book:
            return None
        return Direction.from_open_side(book[0].open_side)

    def unmatched(self) -> List[Tuple[str, int, Direction]]:
        """
        Residual open positions at end of stream

        Returns:
            (symbol, open quantity, direction) for each non-flat symbol,
            in first-seen symbol order
        """
        return [
            (symbol, sum(lot.remaining_quantity for lot in book),
             Direction.from_open_side(book[0].open_side))
            for symbol, book in self._books.items() if book
        ]
