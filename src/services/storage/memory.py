"""
In-Memory Storage Implementation

Default backend for development and the backend used by the test suite.
Records live in insertion-ordered dicts; every read and write copies the
model so callers can never mutate stored state by accident.

Nothing here survives a restart.
"""

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
from src.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    MessageStorageInterface,
    RecordNotFoundError,
    TransactionStorageInterface,
    UserStorageInterface,
)


def _copy(model):
    return model.model_copy(deep=True)


class InMemoryUserStorage(UserStorageInterface):

    def __init__(self):
        self._users: dict[UserId, User] = {}

    async def save_user(self, user: User) -> bool:
        if await self.get_user_by_email(user.email) is not None:
            raise DuplicateError(f"User already exists: {user.email}")
        self._users[user.id] = _copy(user)
        return True

    async def get_user_by_id(self, user_id: UserId) -> Optional[User]:
        user = self._users.get(user_id)
        return _copy(user) if user else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        for user in self._users.values():
            if user.email == wanted:
                return _copy(user)
        return None

    async def update_user(self, user: User) -> bool:
        if user.id not in self._users:
            raise RecordNotFoundError(f"User not found: {user.id}")
        self._users[user.id] = _copy(user)
        return True

    async def delete_user(self, user_id: UserId) -> bool:
        return self._users.pop(user_id, None) is not None

    async def list_users(self) -> list[User]:
        return [_copy(user) for user in self._users.values()]


class InMemoryLedgerStorage(LedgerStorageInterface):

    def __init__(self):
        self._ledgers: dict[LedgerId, Ledger] = {}

    async def save_ledger(self, ledger: Ledger) -> bool:
        self._ledgers[ledger.id] = _copy(ledger)
        return True

    async def get_ledger_by_id(self, ledger_id: LedgerId) -> Optional[Ledger]:
        ledger = self._ledgers.get(ledger_id)
        return _copy(ledger) if ledger else None

    async def update_ledger(self, ledger: Ledger) -> bool:
        if ledger.id not in self._ledgers:
            raise RecordNotFoundError(f"Ledger not found: {ledger.id}")
        self._ledgers[ledger.id] = _copy(ledger)
        return True

    async def delete_ledger(self, ledger_id: LedgerId) -> bool:
        return self._ledgers.pop(ledger_id, None) is not None

    async def list_ledgers(self) -> list[Ledger]:
        return [_copy(ledger) for ledger in self._ledgers.values()]

    async def list_ledgers_for_user(self, user_id: UserId) -> list[Ledger]:
        return [
            _copy(ledger)
            for ledger in self._ledgers.values()
            if ledger.is_visible_to(user_id)
        ]


class InMemoryTransactionStorage(TransactionStorageInterface):

    def __init__(self):
        self._transactions: dict[TransactionId, Transaction] = {}

    async def save_transaction(self, transaction: Transaction) -> bool:
        self._transactions[transaction.id] = _copy(transaction)
        return True

    async def save_transactions(self, transactions: list[Transaction]) -> int:
        for transaction in transactions:
            self._transactions[transaction.id] = _copy(transaction)
        return len(transactions)

    async def get_transaction_by_id(
        self,
        transaction_id: TransactionId,
    ) -> Optional[Transaction]:
        transaction = self._transactions.get(transaction_id)
        return _copy(transaction) if transaction else None

    async def update_transaction(self, transaction: Transaction) -> bool:
        if transaction.id not in self._transactions:
            raise RecordNotFoundError(f"Transaction not found: {transaction.id}")
        self._transactions[transaction.id] = _copy(transaction)
        return True

    async def delete_transaction(self, transaction_id: TransactionId) -> bool:
        return self._transactions.pop(transaction_id, None) is not None

    async def list_transactions(self, ledger_id: LedgerId) -> list[Transaction]:
        return [
            _copy(t) for t in self._transactions.values() if t.ledger_id == ledger_id
        ]

    async def delete_transactions_for_ledger(self, ledger_id: LedgerId) -> int:
        doomed = [t.id for t in self._transactions.values() if t.ledger_id == ledger_id]
        for transaction_id in doomed:
            del self._transactions[transaction_id]
        return len(doomed)

    async def count_transactions(self, ledger_id: LedgerId) -> int:
        return sum(1 for t in self._transactions.values() if t.ledger_id == ledger_id)


class InMemoryMessageStorage(MessageStorageInterface):

    def __init__(self):
        self._messages: dict[MessageId, Message] = {}

    async def save_message(self, message: Message) -> bool:
        self._messages[message.id] = _copy(message)
        return True

    async def get_message_by_id(self, message_id: MessageId) -> Optional[Message]:
        message = self._messages.get(message_id)
        return _copy(message) if message else None

    async def update_message(self, message: Message) -> bool:
        if message.id not in self._messages:
            raise RecordNotFoundError(f"Message not found: {message.id}")
        self._messages[message.id] = _copy(message)
        return True

    async def delete_message(self, message_id: MessageId) -> bool:
        return self._messages.pop(message_id, None) is not None

    async def list_messages(self) -> list[Message]:
        return [_copy(message) for message in self._messages.values()]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(_copy(event))
        return True

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id,
    ) -> list[AuditEvent]:
        events = [
            _copy(e) for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return [_copy(e) for e in events[:limit]]
