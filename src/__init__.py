"""
Ledger Tracker - Source Package

A multi-tenant ledger tracker: named ledgers holding dated transactions,
shared with other users through per-ledger roles.

DESIGN PRINCIPLES:
1. Balances are derived on read, never stored
2. Every call carries an explicit request context
3. Fail early, fail visibly (typed errors, no silent corrections)
4. Every mutation must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Ledger Tracker Team"
