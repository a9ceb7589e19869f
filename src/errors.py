"""
Error taxonomy for ledger operations.

Store and adapter operations either return their typed result or raise
one of these. The HTTP boundary maps them to status codes.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class NotFoundError(LedgerError):
    """Referenced ledger, transaction, user or message does not exist."""

    def __init__(self, entity_type: str, entity_id: object):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} not found")


class AccessDeniedError(LedgerError):
    """The caller's role is insufficient for the operation."""
    pass


class LedgerValidationError(LedgerError):
    """
    Malformed input.

    For CSV imports `errors` holds one row-indexed message per invalid row.
    """

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        self.errors = errors or []
        super().__init__(message)


class ServerError(LedgerError):
    """Unexpected failure, usually a storage error surfaced for retry."""
    pass
