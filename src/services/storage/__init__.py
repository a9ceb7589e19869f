"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Two backends: in-memory (default, used by tests) and Google Sheets.
"""

from src.services.storage.interface import (
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
from src.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    InMemoryMessageStorage,
    InMemoryTransactionStorage,
    InMemoryUserStorage,
)
from src.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    GoogleSheetsMessageStorage,
    GoogleSheetsTransactionStorage,
    GoogleSheetsUserStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    "MessageStorageInterface",
    "TransactionStorageInterface",
    "UserStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "RecordNotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
    "InMemoryMessageStorage",
    "InMemoryTransactionStorage",
    "InMemoryUserStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "GoogleSheetsMessageStorage",
    "GoogleSheetsTransactionStorage",
    "GoogleSheetsUserStorage",
]
