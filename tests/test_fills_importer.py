"""
Tests for the fills CSV importer
"""

from datetime import datetime, timezone

import pytest

from tradebook.importer.errors import EMPTY_INPUT_MESSAGE, IssueKind
from tradebook.importer.fills_importer import FillsCSVImporter, import_fills_csv
from tradebook.importer.models import Direction, ParseResult

HEADER = "Date/Time,Symbol,Side,Quantity,Price,Gross P/L,Fee,Net P/L"


def fills(*rows):
    return "\n".join((HEADER,) + rows)


class TestFillsImport:
    """End-to-end fills import"""

    def test_simple_long_trade(self, round_trip_csv):
        result = import_fills_csv(round_trip_csv)

        assert isinstance(result, ParseResult)
        assert result.errors == []
        assert len(result.successful_trades) == 1

        trade = result.successful_trades[0]
        assert trade.symbol == "AAPL"
        assert trade.contracts == 100
        assert trade.direction == Direction.LONG
        assert trade.entry_price == 150.50
        assert trade.exit_price == 155.25
        assert trade.profit == pytest.approx(970.00)
        assert trade.fees == pytest.approx(5.00)
        assert trade.date == "01/15/2024"
        assert trade.time_in == datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)
        assert trade.time_out == datetime(2024, 1, 15, 14, 45, tzinfo=timezone.utc)
        assert trade.time_in_trade_minutes == pytest.approx(315)

    def test_simple_short_trade(self):
        result = import_fills_csv(fills(
            "1/15/2024 9:30:00 AM,AAPL,Sell,100,155.25,0,2.50,497.50",
            "1/15/2024 2:45:00 PM,AAPL,Buy,100,150.50,475.00,2.50,472.50",
        ))

        assert result.errors == []
        trade = result.successful_trades[0]
        assert trade.direction == Direction.SHORT
        assert trade.entry_price == 155.25
        assert trade.exit_price == 150.50
        assert trade.profit == pytest.approx(970.00)

    def test_multiple_symbols(self):
        result = import_fills_csv(fills(
            "1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,497.50",
            "1/15/2024 2:45:00 PM,AAPL,Sell,100,155.25,475.00,2.50,472.50",
            "1/16/2024 10:00:00 AM,TSLA,Buy,50,200.00,0,1.25,498.75",
            "1/16/2024 3:30:00 PM,TSLA,Sell,50,210.00,500.00,1.25,498.75",
        ))

        assert result.errors == []
        assert [t.symbol for t in result.successful_trades] == ["AAPL", "TSLA"]
        assert all(t.direction == Direction.LONG for t in result.successful_trades)
        assert result.successful_trades[1].date == "01/16/2024"

    def test_partial_fills(self, partial_fill_csv):
        result = import_fills_csv(partial_fill_csv)

        assert result.errors == []
        assert [t.contracts for t in result.successful_trades] == [50, 50]
        assert result.successful_trades[0].profit == pytest.approx(322.50)
        assert result.successful_trades[1].profit == pytest.approx(485.00)
        assert result.total_profit == pytest.approx(807.50)

    def test_quoted_fields(self):
        text = "\n".join([
            '"Date/Time","Symbol","Side","Quantity","Price","Gross P/L","Fee","Net P/L"',
            '"1/15/2024 9:30:00 AM","AAPL","Buy","100","150.50","0","2.50","497.50"',
            '"1/15/2024 2:45:00 PM","AAPL","Sell","100","155.25","475.00","2.50","472.50"',
        ])
        result = import_fills_csv(text)

        assert result.errors == []
        assert len(result.successful_trades) == 1

    def test_thousands_separators(self):
        result = import_fills_csv(fills(
            '1/15/2024 9:30:00 AM,AAPL,Buy,"1,000",150.50,0,25.00,"4,975.00"',
            '1/15/2024 2:45:00 PM,AAPL,Sell,"1,000",155.25,"4,750.00",25.00,"4,725.00"',
        ))

        assert result.errors == []
        assert result.successful_trades[0].contracts == 1000
        assert result.successful_trades[0].profit == pytest.approx(9700.00)

    def test_header_case_whitespace_and_slash(self):
        text = "\n".join([
            "date / time,SYMBOL,side,Quantity,price,GROSS PL,fee,Net  P/L",
            "1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,497.50",
            "1/15/2024 2:45:00 PM,AAPL,Sell,100,155.25,475.00,2.50,472.50",
        ])
        result = import_fills_csv(text)

        assert result.errors == []
        assert len(result.successful_trades) == 1

    def test_two_buys_one_sell(self):
        result = import_fills_csv(fills(
            "1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,497.50",
            "1/15/2024 9:35:00 AM,AAPL,Buy,50,150.75,0,1.25,248.75",
            "1/15/2024 2:45:00 PM,AAPL,Sell,150,155.25,712.50,3.75,708.75",
        ))

        trades = result.successful_trades
        assert [t.contracts for t in trades] == [100, 50]
        assert [t.entry_price for t in trades] == [150.50, 150.75]
        assert trades[1].time_in == datetime(2024, 1, 15, 9, 35, tzinfo=timezone.utc)
        assert trades[0].fees == pytest.approx(2.50 + 2.50)
        assert trades[1].fees == pytest.approx(1.25 + 1.25)

    def test_complex_multi_symbol_interleaving(self):
        result = import_fills_csv(fills(
            "1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,497.50",
            "1/15/2024 10:00:00 AM,TSLA,Sell,50,200.00,0,1.25,498.75",
            "1/15/2024 2:45:00 PM,AAPL,Sell,100,155.25,475.00,2.50,472.50",
            "1/15/2024 3:30:00 PM,TSLA,Buy,50,210.00,500.00,1.25,498.75",
        ))

        trades = {t.symbol: t for t in result.successful_trades}
        assert len(result.successful_trades) == 2
        assert trades["AAPL"].direction == Direction.LONG
        assert trades["TSLA"].direction == Direction.SHORT
        assert result.errors == []

    def test_empty_lines_ignored(self):
        text = (f"{HEADER}\n\n"
                "1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,497.50\n\n"
                "1/15/2024 2:45:00 PM,AAPL,Sell,100,155.25,475.00,2.50,472.50\n\n")
        result = import_fills_csv(text)

        assert result.errors == []
        assert len(result.successful_trades) == 1

    def test_crlf_line_endings(self):
        text = (f"{HEADER}\r\n"
                "1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,497.50\r\n"
                "1/15/2024 2:45:00 PM,AAPL,Sell,100,155.25,475.00,2.50,472.50")
        result = import_fills_csv(text)

        assert result.errors == []
        assert len(result.successful_trades) == 1

    def test_fills_processed_in_input_order(self):
        # The later-timestamped Sell comes first and opens a short
        result = import_fills_csv(fills(
            "1/15/2024 2:45:00 PM,AAPL,Sell,100,155.25,0,2.50,472.50",
            "1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,497.50",
        ))

        assert result.successful_trades[0].direction == Direction.SHORT

    def test_import_is_idempotent(self, partial_fill_csv):
        first = import_fills_csv(partial_fill_csv)
        second = import_fills_csv(partial_fill_csv)

        assert first.successful_trades == second.successful_trades
        assert first.errors == second.errors


class TestFillsImportErrors:
    """Structural errors, row errors and unmatched warnings"""

    def test_missing_required_headers(self):
        text = "\n".join([
            "Date/Time,Symbol,Side,Quantity,Price,Fee",
            "1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,2.50",
            "1/15/2024 2:45:00 PM,AAPL,Sell,100,155.25,2.50",
        ])
        result = import_fills_csv(text)

        assert result.errors == [
            'Missing required column: "Gross P/L"',
            'Missing required column: "Net P/L"',
        ]
        assert result.successful_trades == []
        assert all(issue.kind == IssueKind.STRUCTURAL for issue in result.issues)

    @pytest.mark.parametrize("text", ["", "   \n\n", HEADER, HEADER + "\n\n"])
    def test_empty_or_header_only(self, text):
        result = import_fills_csv(text)

        assert result.errors == [EMPTY_INPUT_MESSAGE]
        assert result.successful_trades == []

    @pytest.mark.parametrize("row,message", [
        ("invalid,AAPL,Buy,100,150.50,0,2.50,497.50", 'Invalid Date/Time format: "invalid"'),
        ("1/15/2024 9:30:00 AM,,Buy,100,150.50,0,2.50,497.50", "Symbol is missing"),
        ("1/15/2024 9:30:00 AM,AAPL,Invalid,100,150.50,0,2.50,497.50", 'Invalid Side: "Invalid"'),
        ("1/15/2024 9:30:00 AM,AAPL,Buy,0,150.50,0,2.50,497.50", 'Invalid Quantity: "0"'),
        ("1/15/2024 9:30:00 AM,AAPL,Buy,100,invalid,0,2.50,497.50", 'Invalid Price: "invalid"'),
        ("1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,invalid", 'Invalid Net P/L: "invalid"'),
        ("1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,invalid,497.50", 'Invalid Fee: "invalid"'),
    ])
    def test_invalid_field_leaves_other_fill_unmatched(self, row, message):
        result = import_fills_csv(fills(
            row,
            "1/15/2024 2:45:00 PM,AAPL,Sell,100,155.25,475.00,2.50,472.50",
        ))

        assert result.successful_trades == []
        assert len(result.errors) == 2
        assert result.errors[0] == f"Row 2: {message}"
        assert "Unmatched fill for AAPL" in result.errors[1]
        assert [issue.kind for issue in result.issues] == [IssueKind.ROW, IssueKind.UNMATCHED]

    def test_column_count_mismatch(self):
        result = import_fills_csv(fills("1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50"))

        assert len(result.errors) == 1
        assert "Column count mismatch" in result.errors[0]
        assert result.successful_trades == []

    def test_stray_carriage_return_rejects_only_its_row(self):
        result = import_fills_csv(fills(
            "1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,497.50",
            "1/15/2024 9:45:00 AM,AA\rPL,Buy,100,150.50,0,2.50,497.50",
            "1/15/2024 2:45:00 PM,AAPL,Sell,100,155.25,475.00,2.50,472.50",
        ))

        assert len(result.successful_trades) == 1
        assert result.successful_trades[0].profit == pytest.approx(970.00)
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Row 3: Malformed row: ")
        assert result.issues[0].kind == IssueKind.ROW

    def test_cr_only_line_endings_reported_not_raised(self):
        text = "\r".join([
            HEADER,
            "1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,497.50",
            "1/15/2024 2:45:00 PM,AAPL,Sell,100,155.25,475.00,2.50,472.50",
        ])
        result = import_fills_csv(text)

        assert result.successful_trades == []
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Malformed header row: ")
        assert result.issues[0].kind == IssueKind.STRUCTURAL

    def test_bad_row_skipped_and_parsing_continues(self):
        result = import_fills_csv(fills(
            "1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,497.50",
            "1/15/2024 10:00:00 AM,AAPL,Invalid,50,152.00,75.00,1.25,73.75",
            "1/15/2024 2:45:00 PM,AAPL,Sell,100,155.25,475.00,2.50,472.50",
        ))

        assert result.errors == ['Row 3: Invalid Side: "Invalid"']
        assert len(result.successful_trades) == 1
        assert result.successful_trades[0].symbol == "AAPL"

    def test_unmatched_residual_warning(self):
        result = import_fills_csv(fills(
            "1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,497.50",
            "1/15/2024 2:45:00 PM,AAPL,Sell,50,155.25,237.50,1.25,236.25",
        ))

        assert result.errors == [
            "Warning: Unmatched fill for AAPL: 50 long still open at end of import"
        ]
        assert result.warnings == result.errors
        assert result.row_errors == []
        assert [t.contracts for t in result.successful_trades] == [50]

    def test_one_warning_per_symbol_in_first_seen_order(self):
        result = import_fills_csv(fills(
            "1/15/2024 9:30:00 AM,TSLA,Sell,5,200.00,0,1.00,1.00",
            "1/15/2024 9:31:00 AM,AAPL,Buy,10,150.00,0,1.00,1.00",
            "1/15/2024 9:32:00 AM,AAPL,Buy,20,151.00,0,1.00,1.00",
        ))

        assert result.errors == [
            "Warning: Unmatched fill for TSLA: 5 short still open at end of import",
            "Warning: Unmatched fill for AAPL: 30 long still open at end of import",
        ]

    def test_row_errors_precede_warnings(self):
        result = import_fills_csv(fills(
            "1/15/2024 9:30:00 AM,AAPL,Buy,100,150.50,0,2.50,497.50",
            "bad,AAPL,Buy,x,150.50,0,2.50,497.50",
        ))

        assert result.errors == [
            'Row 3: Invalid Date/Time format: "bad"',
            'Row 3: Invalid Quantity: "x"',
            "Warning: Unmatched fill for AAPL: 100 long still open at end of import",
        ]
        assert result.has_errors


class TestFillsImporterConfig:

    def test_account_and_places_from_config(self, round_trip_csv):
        importer = FillsCSVImporter({'importer': {'account_id': 'acct-9', 'money_places': 0}})
        result = importer.import_text(round_trip_csv, source="fills.csv")

        trade = result.successful_trades[0]
        assert trade.account_id == "acct-9"
        assert trade.profit == 970.0

    def test_defaults_without_config(self, round_trip_csv):
        importer = FillsCSVImporter()
        assert importer.account_id == "default"
        assert importer.money_places == 2
        assert importer.import_text(round_trip_csv).successful_trades[0].account_id == "default"

    def test_result_dataframe(self, partial_fill_csv):
        frame = import_fills_csv(partial_fill_csv).to_dataframe()

        assert len(frame) == 2
        assert list(frame['contracts']) == [50, 50]
        assert frame['profit'].sum() == pytest.approx(807.50)
