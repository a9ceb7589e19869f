"""Ledger and transaction store package."""

from src.ledgers.formatting import format_currency, format_date
from src.ledgers.store import LedgerStore

__all__ = ["LedgerStore", "format_currency", "format_date"]
