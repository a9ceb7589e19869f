"""
Display formatting for amounts and dates.

Used when rendering audit descriptions and export file names.
"""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Union

from src.models.ledger import Currency


_CENTS = Decimal("0.01")
_SATOSHIS = Decimal("0.00000001")


def format_currency(amount: Union[Decimal, int, float, str], currency: Currency = Currency.USD) -> str:
    """
    Format an amount for display.

    USD: "$1,234.56", negatives as "-$1,234.56".
    BTC: eight decimals with a " BTC" suffix, e.g. "0.50000000 BTC".
    """
    value = Decimal(str(amount))
    is_btc = Currency(currency) == Currency.BTC
    quantum = _SATOSHIS if is_btc else _CENTS

    with localcontext() as ctx:
        # Room for every integer digit plus the quantum's decimals
        ctx.prec = max(ctx.prec, value.adjusted() + 1 - quantum.as_tuple().exponent)
        rounded = value.quantize(quantum, rounding=ROUND_HALF_UP)

    if is_btc:
        return f"{rounded:f} BTC"

    sign = "-" if rounded < 0 else ""
    return f"{sign}${rounded.copy_abs():,.2f}"


def format_date(value: Union[dt.date, dt.datetime, str]) -> str:
    """Format a date as DD-Mon-YY, e.g. "05-Jan-24"."""
    if isinstance(value, str):
        value = dt.datetime.fromisoformat(value)
    return value.strftime("%d-%b-%y")
