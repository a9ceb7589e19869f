"""HTTP routers."""

from app.routes import ledgers, messages, transactions, users

__all__ = ["ledgers", "messages", "transactions", "users"]
