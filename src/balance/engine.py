"""
Balance Engine

Computes running balances for a ledger's transactions.

GUARANTEES:
- Balances are derived on every read and never written back
- Ordering is deterministic: date ascending, then creation time,
  then the order the transactions were supplied in (stable sort)
- Input transactions are never mutated
"""

from collections.abc import Iterable
from decimal import Decimal

from src.models.ledger import BalancedTransaction, BalanceSummary, Transaction


def sort_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Sort by date ascending; creation order breaks ties."""
    return sorted(transactions, key=lambda t: (t.date, t.created_at))


def with_balances(transactions: Iterable[Transaction]) -> list[BalancedTransaction]:
    """
    Sort transactions and attach the running balance after each one.

    Args:
        transactions: Transactions of a single ledger, in storage order

    Returns:
        New BalancedTransaction objects; empty input gives an empty list
    """
    balance = Decimal("0")
    balanced = []

    for transaction in sort_transactions(transactions):
        balance += transaction.amount
        balanced.append(
            BalancedTransaction(**transaction.model_dump(exclude={"balance"}), balance=balance)
        )

    return balanced


def summarize(transactions: Iterable[Transaction]) -> BalanceSummary:
    """Count, credit and debit totals and closing balance."""
    count = 0
    credits = Decimal("0")
    debits = Decimal("0")

    for transaction in transactions:
        count += 1
        if transaction.amount >= 0:
            credits += transaction.amount
        else:
            debits += transaction.amount

    return BalanceSummary(
        transaction_count=count,
        total_credits=credits,
        total_debits=debits,
        closing_balance=credits + debits,
    )
