"""
Main Orchestrator for Ledger Tracker

This module ties together all the components:
storage backend → audit logger → store, importer and admin services.

DESIGN DECISION: Components are built once, by a factory, from settings.
Nothing in the core reaches for globals; the HTTP layer receives the
assembled components and passes a request context into every call.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from src.admin import Mailbox, UserDirectory
from src.audit import AuditLogger, configure_logging
from src.config import get_settings
from src.imports import CsvTransactionImporter
from src.ledgers import LedgerStore
from src.models.ledger import Currency, GlobalRole
from src.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    GoogleSheetsMessageStorage,
    GoogleSheetsTransactionStorage,
    GoogleSheetsUserStorage,
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    InMemoryMessageStorage,
    InMemoryTransactionStorage,
    InMemoryUserStorage,
    LedgerStorageInterface,
    MessageStorageInterface,
    TransactionStorageInterface,
    UserStorageInterface,
)


logger = structlog.get_logger("ledger_tracker.orchestrator")


@dataclass
class StorageBundle:
    """One backend's worth of storages."""
    users: UserStorageInterface
    ledgers: LedgerStorageInterface
    transactions: TransactionStorageInterface
    messages: MessageStorageInterface
    audit: AuditStorageInterface


@dataclass
class AppComponents:
    """Everything the HTTP layer needs."""
    storage: StorageBundle
    audit_logger: AuditLogger
    store: LedgerStore
    importer: CsvTransactionImporter
    users: UserDirectory
    mailbox: Mailbox

    async def bootstrap_admin(self, email: Optional[str], name: str = "Admin") -> None:
        """Create a platform admin with this email unless it already exists."""
        if not email:
            return
        if await self.storage.users.get_user_by_email(email) is not None:
            return
        await self.users.create_user(name=name, email=email, role=GlobalRole.ADMIN)
        logger.info("bootstrap_admin_created", email=email)


def memory_storage() -> StorageBundle:
    return StorageBundle(
        users=InMemoryUserStorage(),
        ledgers=InMemoryLedgerStorage(),
        transactions=InMemoryTransactionStorage(),
        messages=InMemoryMessageStorage(),
        audit=InMemoryAuditStorage(),
    )


def google_sheets_storage(client: Optional[GoogleSheetsClient] = None) -> StorageBundle:
    client = client or GoogleSheetsClient()
    return StorageBundle(
        users=GoogleSheetsUserStorage(client),
        ledgers=GoogleSheetsLedgerStorage(client),
        transactions=GoogleSheetsTransactionStorage(client),
        messages=GoogleSheetsMessageStorage(client),
        audit=GoogleSheetsAuditStorage(client),
    )


def build_components(
    storage: StorageBundle,
    default_currency: Currency = Currency.USD,
    max_import_rows: int = 5000,
) -> AppComponents:
    """Wire services on top of an existing storage bundle."""
    audit_logger = AuditLogger(storage.audit)
    store = LedgerStore(
        user_storage=storage.users,
        ledger_storage=storage.ledgers,
        transaction_storage=storage.transactions,
        audit_logger=audit_logger,
        default_currency=default_currency,
    )
    return AppComponents(
        storage=storage,
        audit_logger=audit_logger,
        store=store,
        importer=CsvTransactionImporter(store, audit_logger, max_rows=max_import_rows),
        users=UserDirectory(storage.users, audit_logger),
        mailbox=Mailbox(storage.messages, storage.users, audit_logger),
    )


def create_app_components(backend: Optional[str] = None) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        backend: "memory" or "google_sheets". Defaults to the configured
                 storage backend.

    If Google Sheets is selected but cannot be configured, falls back
    to in-memory storage with a warning.
    """
    app_settings = get_settings().app
    configure_logging(app_settings.log_level)
    backend = backend or app_settings.storage_backend

    if backend == "google_sheets":
        try:
            storage = google_sheets_storage()
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", backend=backend, error=str(e))
            storage = memory_storage()
    else:
        storage = memory_storage()

    return build_components(
        storage,
        default_currency=Currency(app_settings.default_currency),
        max_import_rows=app_settings.max_import_rows,
    )
