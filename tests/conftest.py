"""
Pytest configuration and shared fixtures for Tradebook tests
"""

import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tradebook.importer.models import Fill, Side  # noqa: E402

FILLS_HEADER = "Date/Time,Symbol,Side,Quantity,Price,Gross P/L,Fee,Net P/L"


def _build_fill(side, quantity, price, net_pnl, fee="0", symbol="AAPL",
                timestamp=None, row_number=0):
    """Build a Fill directly, bypassing the CSV layer"""
    return Fill(
        timestamp=timestamp or datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc),
        symbol=symbol,
        side=Side.BUY if side == "Buy" else Side.SELL,
        quantity=quantity,
        price=Decimal(str(price)),
        fee=Decimal(str(fee)),
        net_pnl=Decimal(str(net_pnl)),
        row_number=row_number,
    )


@pytest.fixture
def make_fill():
    """Factory fixture: make_fill("Buy", 100, 150.50, 497.50, fee=2.50)"""
    return _build_fill


@pytest.fixture
def fills_header():
    return FILLS_HEADER


@pytest.fixture
def round_trip_csv():
    """Simple long round trip in the fills layout"""
    return f"""{FILLS_HEADER}
1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,497.50
1/15/2024 2:45:00 PM,AAPL,Sell,100,155.25,475.00,2.50,472.50"""


@pytest.fixture
def partial_fill_csv():
    """One buy closed by two partial sells"""
    return f"""{FILLS_HEADER}
1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,497.50
1/15/2024 10:00:00 AM,AAPL,Sell,50,152.00,75.00,1.25,73.75
1/15/2024 2:45:00 PM,AAPL,Sell,50,155.25,237.50,1.25,236.25"""


@pytest.fixture
def broker_csv():
    """One-row-per-trade broker export"""
    return """Symbol,Qty,BuyPrice,SellPrice,PNL,BoughtTimestamp,SoldTimestamp
AAPL,100,150.50,155.25,475.00,1/15/2024 9:30,1/15/2024 14:45
TSLA,10,200.00,210.00,$(100.00),1/16/2024 3:30 PM,1/16/2024 10:00 AM"""


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create temporary config directory with an importer config"""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    with open(config_dir / "importer.yml", 'w') as f:
        yaml.safe_dump({
            'importer': {'account_id': 'futures-1', 'money_places': 2},
            'logging': {'level': 'WARNING', 'json_format': False},
        }, f)
    return config_dir


# Pytest markers and configuration
def pytest_configure(config):
    """Configure pytest markers"""
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )


def pytest_collection_modifyitems(config, items):
    """Mark CLI tests as integration tests, everything else as unit tests"""
    for item in items:
        if "cli" in str(item.path):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
