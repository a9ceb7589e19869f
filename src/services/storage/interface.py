"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
One interface per collection: users, ledgers, transactions, messages,
plus the append-only audit log. Ledger permissions are embedded in the
ledger record, not stored separately.

Storage never enforces permissions. That is the store's job.
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.models.audit import AuditEvent
from src.models.ledger import (
    Ledger,
    LedgerId,
    Message,
    MessageId,
    Transaction,
    TransactionId,
    User,
    UserId,
)


class UserStorageInterface(ABC):
    """Storage operations for users."""

    @abstractmethod
    async def save_user(self, user: User) -> bool:
        """
        Save a new user.

        Raises:
            DuplicateError: If a user with the same email exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_user_by_id(self, user_id: UserId) -> Optional[User]:
        """Retrieve a user by ID, or None."""
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by email (case-insensitive), or None."""
        pass

    @abstractmethod
    async def update_user(self, user: User) -> bool:
        """
        Replace an existing user record.

        Raises:
            RecordNotFoundError: If the user doesn't exist
        """
        pass

    @abstractmethod
    async def delete_user(self, user_id: UserId) -> bool:
        """Delete a user. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def list_users(self) -> list[User]:
        """All users in creation order."""
        pass

    async def get_users_by_ids(self, user_ids: set[UserId]) -> dict[UserId, User]:
        """
        Resolve several user IDs at once.

        Unknown IDs are simply absent from the result. Backends with
        a cheaper bulk lookup may override this.
        """
        found = {}
        for user_id in user_ids:
            user = await self.get_user_by_id(user_id)
            if user is not None:
                found[user_id] = user
        return found


class LedgerStorageInterface(ABC):
    """Storage operations for ledgers (with embedded permissions)."""

    @abstractmethod
    async def save_ledger(self, ledger: Ledger) -> bool:
        """Save a new ledger."""
        pass

    @abstractmethod
    async def get_ledger_by_id(self, ledger_id: LedgerId) -> Optional[Ledger]:
        """Retrieve a ledger by ID, or None."""
        pass

    @abstractmethod
    async def update_ledger(self, ledger: Ledger) -> bool:
        """
        Replace an existing ledger record, permissions included.

        Raises:
            RecordNotFoundError: If the ledger doesn't exist
        """
        pass

    @abstractmethod
    async def delete_ledger(self, ledger_id: LedgerId) -> bool:
        """Delete a ledger. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def list_ledgers(self) -> list[Ledger]:
        """All ledgers in creation order."""
        pass

    @abstractmethod
    async def list_ledgers_for_user(self, user_id: UserId) -> list[Ledger]:
        """Ledgers the user owns or holds a permission entry on."""
        pass


class TransactionStorageInterface(ABC):
    """Storage operations for transactions."""

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> bool:
        """Save a new transaction."""
        pass

    @abstractmethod
    async def save_transactions(self, transactions: list[Transaction]) -> int:
        """
        Insert a batch of transactions in one call.

        Returns:
            Number of transactions written
        """
        pass

    @abstractmethod
    async def get_transaction_by_id(
        self,
        transaction_id: TransactionId,
    ) -> Optional[Transaction]:
        """Retrieve a transaction by ID, or None."""
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> bool:
        """
        Replace an existing transaction record.

        Raises:
            RecordNotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: TransactionId) -> bool:
        """Delete a transaction. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def list_transactions(self, ledger_id: LedgerId) -> list[Transaction]:
        """Transactions of one ledger, in insertion order."""
        pass

    @abstractmethod
    async def delete_transactions_for_ledger(self, ledger_id: LedgerId) -> int:
        """Delete every transaction of a ledger. Returns how many were removed."""
        pass

    @abstractmethod
    async def count_transactions(self, ledger_id: LedgerId) -> int:
        """Number of transactions stored for a ledger."""
        pass


class MessageStorageInterface(ABC):
    """Storage operations for contact-to-admin messages."""

    @abstractmethod
    async def save_message(self, message: Message) -> bool:
        pass

    @abstractmethod
    async def get_message_by_id(self, message_id: MessageId) -> Optional[Message]:
        pass

    @abstractmethod
    async def update_message(self, message: Message) -> bool:
        pass

    @abstractmethod
    async def delete_message(self, message_id: MessageId) -> bool:
        pass

    @abstractmethod
    async def list_messages(self) -> list[Message]:
        """All messages, in insertion order."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class RecordNotFoundError(StorageError):
    """Record to update not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
