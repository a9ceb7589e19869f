"""Tests for display formatting."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from src.ledgers import format_currency, format_date
from src.models.ledger import Currency


class TestFormatCurrency:

    @pytest.mark.parametrize("amount,expected", [
        (Decimal("1234.56"), "$1,234.56"),
        (Decimal("-1234.56"), "-$1,234.56"),
        (Decimal("0"), "$0.00"),
        (Decimal("1000000"), "$1,000,000.00"),
        (Decimal("2.005"), "$2.01"),
        ("-0.001", "$0.00"),
    ])
    def test_usd(self, amount, expected):
        """Test dollar formatting with grouping and sign."""
        assert format_currency(amount, Currency.USD) == expected

    def test_btc(self):
        """Test eight decimals and the BTC suffix."""
        assert format_currency(Decimal("0.5"), Currency.BTC) == "0.50000000 BTC"
        assert format_currency(Decimal("-1.123456789"), "BTC") == "-1.12345679 BTC"
        assert format_currency(Decimal("0"), Currency.BTC) == "0.00000000 BTC"

    def test_wide_amounts_do_not_overflow_precision(self):
        """Test amounts whose quantized form needs more than 28 digits."""
        assert format_currency(Decimal("100000000000000000000"), Currency.BTC) == (
            "100000000000000000000.00000000 BTC"
        )
        assert format_currency(Decimal("1E+26"), Currency.USD) == "$100" + ",000" * 8 + ".00"
        assert format_currency(Decimal("-1E+26"), Currency.USD) == "-$100" + ",000" * 8 + ".00"


class TestFormatDate:

    @pytest.mark.parametrize("value", [
        date(2024, 1, 5),
        datetime(2024, 1, 5, 23, 59),
        "2024-01-05",
    ])
    def test_day_month_year(self, value):
        """Test DD-Mon-YY output for dates, datetimes and ISO strings."""
        assert format_date(value) == "05-Jan-24"
