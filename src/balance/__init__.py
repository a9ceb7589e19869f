"""Running balance package."""

from src.balance.engine import sort_transactions, summarize, with_balances

__all__ = ["sort_transactions", "summarize", "with_balances"]
