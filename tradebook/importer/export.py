"""
Trade export

Flattens imported trades into a pandas DataFrame and writes them to CSV or
JSON for downstream journaling and analysis tools.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Union

import pandas as pd

from .models import Trade

logger = logging.getLogger(__name__)

TRADE_COLUMNS = [
    'date', 'symbol', 'direction', 'contracts', 'entry_price', 'exit_price',
    'time_in', 'time_out', 'time_in_trade_minutes', 'profit', 'fees', 'account_id'
]

SUPPORTED_FORMATS = ['csv', 'json']


def trades_to_dataframe(trades: Iterable[Trade]) -> pd.DataFrame:
    """
    Build a DataFrame with one row per trade

    Args:
        trades: Trades in the order they should appear

    Returns:
        DataFrame with TRADE_COLUMNS; time columns are UTC timestamps
    """
    records = [trade.to_dict() for trade in trades]
    if not records:
        return pd.DataFrame(columns=TRADE_COLUMNS)

    df = pd.DataFrame(records, columns=TRADE_COLUMNS)
    df['time_in'] = pd.to_datetime(df['time_in'], utc=True)
    df['time_out'] = pd.to_datetime(df['time_out'], utc=True)
    return df


def summarize_trades(trades: Iterable[Trade]) -> Dict[str, Union[int, float]]:
    """Headline figures for an import summary"""
    df = trades_to_dataframe(trades)
    if df.empty:
        return {'trades': 0, 'contracts': 0, 'symbols': 0,
                'winners': 0, 'losers': 0, 'total_profit': 0.0, 'total_fees': 0.0}

    return {
        'trades': int(len(df)),
        'contracts': int(df['contracts'].sum()),
        'symbols': int(df['symbol'].nunique()),
        'winners': int((df['profit'] > 0).sum()),
        'losers': int((df['profit'] < 0).sum()),
        'total_profit': round(float(df['profit'].sum()), 2),
        'total_fees': round(float(df['fees'].sum()), 2),
    }


def export_trades(trades: Iterable[Trade], output_path: Union[str, Path],
                  fmt: str = 'csv') -> Path:
    """
    Write trades to disk

    Args:
        trades: Trades to export
        output_path: Destination file; parent directories are created
        fmt: 'csv' or 'json'

    Returns:
        Path of the written file

    Raises:
        ValueError: If fmt is not supported
    """
    if fmt not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}. Supported formats: {SUPPORTED_FORMATS}")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df = trades_to_dataframe(trades)
    if fmt == 'csv':
        df.to_csv(output_path, index=False)
    else:
        df.to_json(output_path, orient='records', date_format='iso', indent=2)

    logger.info(f"Exported {len(df)} trades to {output_path}")
    return output_path
