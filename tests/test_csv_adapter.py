"""Tests for the CSV import/export adapter."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from src.errors import AccessDeniedError, LedgerValidationError, NotFoundError
from src.imports import (
    CsvTransactionImporter,
    csv_template,
    export_filename,
    export_transactions_csv,
    parse_and_validate,
    read_csv,
    sample_csv,
)
from src.models.ledger import Transaction


@pytest.fixture
def importer(components):
    return components.importer


class TestParseAndValidate:
    """Tests for per-row validation."""

    def test_valid_rows(self, ricky_rows):
        """Test that well-formed rows all pass."""
        result = parse_and_validate(ricky_rows)
        assert result.is_valid
        assert [t.amount for t in result.valid_transactions] == [
            Decimal("1500.00"),
            Decimal("500.00"),
            Decimal("1000.00"),
        ]

    def test_row_three_bad_amount(self, ricky_rows):
        """Test that exactly the bad row is reported, 1-indexed."""
        rows = ricky_rows + [{"date": "2023-08-03", "description": "Oops", "amount": "abc"}]
        rows[2], rows[3] = rows[3], rows[2]

        result = parse_and_validate(rows)

        assert result.errors == ["Row 3: Amount must be a number"]
        assert len(result.valid_transactions) == 3

    def test_one_error_per_row(self):
        """Test that a row failing several checks reports only the first."""
        result = parse_and_validate([{"date": "not-a-date", "description": "x", "amount": "abc"}])
        assert result.errors == ["Row 1: Invalid date format. Please use YYYY-MM-DD format"]

    @pytest.mark.parametrize("row", [
        {"description": "x", "amount": "1"},
        {"date": "2024-01-01", "description": "   ", "amount": "1"},
        {"date": "2024-01-01", "description": "x", "amount": ""},
        {"date": "2024-01-01", "description": "x"},
    ])
    def test_missing_fields(self, row):
        """Test that absent or blank fields are reported as missing."""
        assert parse_and_validate([row]).errors == ["Row 1: Missing required fields"]

    @pytest.mark.parametrize("amount", ["$12.50", "12,50", "1_000", "NaN", "Infinity", "12abc"])
    def test_rejects_non_plain_amounts(self, amount):
        """Test that currency symbols and non-finite values are not amounts."""
        result = parse_and_validate([{"date": "2024-01-01", "description": "x", "amount": amount}])
        assert result.errors == ["Row 1: Amount must be a number"]

    @pytest.mark.parametrize("amount", ["9e999999", "10000000000000000000000000000", "0.000000001"])
    def test_rejects_out_of_range_amounts(self, amount):
        """Test that amounts beyond 12 integer digits or 8 decimals are row errors."""
        result = parse_and_validate([{"date": "2024-01-01", "description": "x", "amount": amount}])
        assert result.errors == [
            "Row 1: Amount must have at most 12 integer digits and 8 decimal places"
        ]

    @pytest.mark.parametrize("amount,expected", [
        ("-125.50", Decimal("-125.50")),
        ("+3", Decimal("3")),
        (".5", Decimal("0.5")),
        (42, Decimal("42")),
        (-1.25, Decimal("-1.25")),
    ])
    def test_accepts_plain_amounts(self, amount, expected):
        """Test plain numeric strings and numbers."""
        result = parse_and_validate([{"date": "2024-01-01", "description": "x", "amount": amount}])
        assert result.valid_transactions[0].amount == expected

    def test_timestamp_is_reduced_to_date(self):
        """Test that an ISO timestamp keeps only its calendar date."""
        result = parse_and_validate([
            {"date": "2024-02-29T13:45:00Z", "description": "Leap", "amount": "1"},
        ])
        assert result.valid_transactions[0].date == date(2024, 2, 29)

    def test_rejects_impossible_date(self):
        """Test that 2023-02-30 is not a date."""
        result = parse_and_validate([{"date": "2023-02-30", "description": "x", "amount": "1"}])
        assert result.errors == ["Row 1: Invalid date format. Please use YYYY-MM-DD format"]

    def test_rejects_overlong_description(self):
        """Test the description length limit."""
        result = parse_and_validate([{"date": "2024-01-01", "description": "x" * 501, "amount": "1"}])
        assert result.errors == ["Row 1: Description must be at most 500 characters"]


class TestReadAndExport:
    """Tests for CSV text handling."""

    def test_read_csv_normalizes_headers_and_skips_blank_lines(self):
        """Test header normalization and blank-line skipping."""
        rows = read_csv('Date, Description ,AMOUNT\n2024-01-01,"Rent, March",-1500.00\n\n')
        assert rows == [{"date": "2024-01-01", "description": "Rent, March", "amount": "-1500.00"}]

    def test_export_quotes_descriptions(self):
        """Test that descriptions are quoted with quotes doubled."""
        transaction = Transaction(
            ledger_id=uuid4(),
            date=date(2024, 1, 1),
            description='Bought a "nice" chair, cheap',
            amount=Decimal("-49.99"),
        )
        assert export_transactions_csv([transaction]) == (
            'date,description,amount\n'
            '2024-01-01,"Bought a ""nice"" chair, cheap",-49.99\n'
        )

    def test_export_then_import_round_trip(self):
        """Test that export followed by import preserves date, description and amount."""
        ledger_id = uuid4()
        originals = [
            Transaction(ledger_id=ledger_id, date=date(2023, 7, 27), description='Say "hi", Ricky', amount=Decimal("500.00")),
            Transaction(ledger_id=ledger_id, date=date(2023, 7, 28), description="Rent", amount=Decimal("-1500.00")),
        ]

        result = parse_and_validate(read_csv(export_transactions_csv(originals)))

        assert result.is_valid
        assert [(t.date, t.description, t.amount) for t in result.valid_transactions] == [
            (t.date, t.description, t.amount) for t in originals
        ]

    def test_template_and_sample(self):
        """Test the downloadable template and sample files."""
        assert csv_template() == 'date,description,amount\nYYYY-MM-DD,"Sample transaction",0\n'
        sample = parse_and_validate(read_csv(sample_csv()))
        assert sample.is_valid
        assert len(sample.valid_transactions) == 3

    @pytest.mark.parametrize("name,expected", [
        ("Ricky's Savings", "ricky_s_savings_transactions.csv"),
        ("BTC-2024", "btc_2024_transactions.csv"),
        ("", "transactions.csv"),
        (None, "transactions.csv"),
    ])
    def test_export_filename(self, name, expected):
        """Test file name slugging."""
        assert export_filename(name) == expected


class TestImporter:
    """Tests for all-or-nothing imports."""

    async def test_import_ricky_rows(self, importer, store, admin_ctx, ricky_ctx, ricky_ledger, ricky_rows):
        """Test that imported rows balance to 500.00, 1500.00, 3000.00."""
        count = await importer.import_rows(admin_ctx, ricky_ledger.id, ricky_rows)

        assert count == 3
        balanced = await store.list_ledger_transactions(ricky_ctx, ricky_ledger.id)
        assert [t.balance for t in balanced] == [
            Decimal("500.00"),
            Decimal("1500.00"),
            Decimal("3000.00"),
        ]

    async def test_one_bad_row_rejects_batch(self, importer, store, admin_ctx, ricky_ledger, ricky_rows):
        """Test that nothing is written when row 3 is invalid."""
        ricky_rows[2]["amount"] = "three hundred"

        with pytest.raises(LedgerValidationError) as exc_info:
            await importer.import_rows(admin_ctx, ricky_ledger.id, ricky_rows)

        assert exc_info.value.errors == ["Row 3: Amount must be a number"]
        assert await store.count_transactions(ricky_ledger.id) == 0

    async def test_out_of_range_amounts_reject_batch(self, importer, store, admin_ctx, ricky_ledger):
        """Test that huge amounts never reach storage, so the ledger stays readable."""
        rows = [
            {"date": "2024-01-01", "description": "Huge", "amount": "9e999999"},
            {"date": "2024-01-02", "description": "Huge", "amount": "9e999999"},
        ]
        with pytest.raises(LedgerValidationError) as exc_info:
            await importer.import_rows(admin_ctx, ricky_ledger.id, rows)

        assert len(exc_info.value.errors) == 2
        assert await store.count_transactions(ricky_ledger.id) == 0
        assert (await store.get_ledger(admin_ctx, ricky_ledger.id)).transactions == []

    async def test_empty_batch(self, importer, admin_ctx, ricky_ledger):
        """Test that an empty batch is rejected."""
        with pytest.raises(LedgerValidationError):
            await importer.import_rows(admin_ctx, ricky_ledger.id, [])

    async def test_oversized_batch(self, store, admin_ctx, ricky_ledger, ricky_rows):
        """Test the configured row limit."""
        importer = CsvTransactionImporter(store, max_rows=2)
        with pytest.raises(LedgerValidationError, match="Too many rows"):
            await importer.import_rows(admin_ctx, ricky_ledger.id, ricky_rows)

    async def test_missing_ledger(self, importer, admin_ctx, ricky_rows):
        """Test that the ledger must exist."""
        with pytest.raises(NotFoundError):
            await importer.import_rows(admin_ctx, uuid4(), ricky_rows)

    async def test_owner_cannot_import(self, importer, ricky_ctx, ricky_ledger):
        """Test that imports require a platform admin, before rows are inspected."""
        with pytest.raises(AccessDeniedError):
            await importer.import_rows(ricky_ctx, ricky_ledger.id, [{"bad": "row"}])
