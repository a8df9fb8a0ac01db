"""
Fill, Lot and Trade data models for the trade importer
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any, Dict, List, Optional


class Side(Enum):
    """Fill side"""
    BUY = "Buy"
    SELL = "Sell"

    @classmethod
    def parse(cls, raw: str) -> Optional['Side']:
        """Case-insensitive lookup, None if the value is not a side"""
        value = raw.strip().lower()
        for side in cls:
            if side.value.lower() == value:
                return side
        return None


class Direction(Enum):
    """Round-trip trade direction"""
    LONG = "long"
    SHORT = "short"

    @classmethod
    def from_open_side(cls, side: Side) -> 'Direction':
        """Buy-opened positions are long, Sell-opened positions are short"""
        return cls.LONG if side is Side.BUY else cls.SHORT


@dataclass(frozen=True)
class Fill:
    """One broker-reported execution (a single parsed CSV row)"""

    timestamp: datetime
    symbol: str
    side: Side
    quantity: int  # Always positive, direction comes from side
    price: Decimal
    fee: Decimal
    net_pnl: Decimal
    gross_pnl: Optional[Decimal] = None  # Informational only
    row_number: int = 0


@dataclass
class Lot:
    """
    Open position slice awaiting a closing fill

    Monetary fields are kept as exact fractions so repeated partial
    splits never accumulate rounding error.
    """

    symbol: str
    open_side: Side
    remaining_quantity: int
    entry_price: Decimal
    entry_timestamp: datetime
    entry_net_pnl: Fraction
    entry_fee: Fraction
    row_number: int = 0

    @classmethod
    def from_fill(cls, fill: Fill, quantity: Optional[int] = None) -> 'Lot':
        """
        Open a lot from a fill, or from the unconsumed part of one

        Args:
            fill: Opening fill
            quantity: Unconsumed quantity, defaults to the whole fill

        Returns:
            Lot carrying the proportional share of the fill's net P/L and fee
        """
        if quantity is None:
            quantity = fill.quantity
        share = Fraction(quantity, fill.quantity)
        return cls(
            symbol=fill.symbol,
            open_side=fill.side,
            remaining_quantity=quantity,
            entry_price=fill.price,
            entry_timestamp=fill.timestamp,
            entry_net_pnl=Fraction(fill.net_pnl) * share,
            entry_fee=Fraction(fill.fee) * share,
            row_number=fill.row_number,
        )

    @property
    def direction(self) -> Direction:
        return Direction.from_open_side(self.open_side)


@dataclass(frozen=True)
class Trade:
    """Matched open/close round trip, the output unit of an import"""

    symbol: str
    direction: Direction
    contracts: int
    entry_price: float
    exit_price: float
    time_in: datetime
    time_out: datetime
    profit: float
    fees: float
    date: str  # MM/DD/YYYY of the entry
    account_id: str = "default"

    @property
    def time_in_trade_minutes(self) -> float:
        """Holding time in minutes"""
        return (self.time_out - self.time_in).total_seconds() / 60

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        data = asdict(self)
        data['direction'] = self.direction.value
        data['time_in'] = self.time_in.isoformat()
        data['time_out'] = self.time_out.isoformat()
        data['time_in_trade_minutes'] = self.time_in_trade_minutes
        return data

    def to_json(self) -> str:
        """Convert to JSON string"""
        return json.dumps(self.to_dict(), indent=2)


@dataclass(frozen=True)
class RowError:
    """Validation failure for one field of one data row"""
    row_number: int
    message: str

    def __str__(self) -> str:
        return f"Row {self.row_number}: {self.message}"


@dataclass
class ParseResult:
    """
    Outcome of one import call

    ``errors`` holds every structural error, row error and unmatched-fill
    warning as plain strings in the order they were raised. ``issues``
    mirrors the same entries with their kind attached.
    """

    successful_trades: List[Trade] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    issues: List[Any] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def warnings(self) -> List[str]:
        """Unmatched-fill warnings only"""
        return [issue.message for issue in self.issues if issue.is_warning]

    @property
    def row_errors(self) -> List[str]:
        """Row-level validation errors only"""
        return [issue.message for issue in self.issues if issue.is_row_error]

    @property
    def total_profit(self) -> float:
        return round(sum(trade.profit for trade in self.successful_trades), 2)

    def to_dataframe(self):
        """Successful trades as a DataFrame, one row per trade"""
        from .export import trades_to_dataframe
        return trades_to_dataframe(self.successful_trades)
