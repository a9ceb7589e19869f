"""Services package."""

from src.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    MessageStorageInterface,
    RecordNotFoundError,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "LedgerStorageInterface",
    "MessageStorageInterface",
    "RecordNotFoundError",
    "StorageError",
    "TransactionStorageInterface",
    "UserStorageInterface",
]
