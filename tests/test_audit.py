"""Tests for the audit logger."""

from uuid import uuid4

from src.audit import AuditLogger
from src.models.audit import AuditEventBuilder, AuditEventType
from src.services.storage import AuditStorageInterface, InMemoryAuditStorage, StorageError


class BrokenAuditStorage(AuditStorageInterface):
    """Audit storage whose writes always fail."""

    async def append_event(self, event):
        raise StorageError("audit sheet unavailable")

    async def get_events_by_entity(self, entity_type, entity_id):
        return []

    async def get_recent_events(self, limit=100):
        return []


class TestAuditLogger:
    """Tests for local logging and persistence."""

    async def test_persists_events(self):
        """Test that events reach the configured storage."""
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        ledger_id = uuid4()

        ok = await logger.log(AuditEventBuilder.ledger_created(ledger_id, "Ricky", uuid4(), uuid4()))

        assert ok is True
        events = await storage.get_events_by_entity("ledger", ledger_id)
        assert [e.event_type for e in events] == [AuditEventType.LEDGER_CREATED]

    async def test_local_only_logger(self):
        """Test that a logger without storage still reports success."""
        assert await AuditLogger().log(AuditEventBuilder.system_error("boom", "it broke")) is True

    async def test_storage_failure_is_swallowed(self):
        """Test that audit failures never break the main flow."""
        logger = AuditLogger(BrokenAuditStorage())
        ok = await logger.log(AuditEventBuilder.access_denied("ledger", uuid4(), "read", uuid4()))
        assert ok is False

    async def test_convenience_methods(self):
        """Test the domain helpers build the right event types."""
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        actor, ledger_id = uuid4(), uuid4()

        await logger.log_access_denied("ledger", ledger_id, "delete_ledger", actor)
        await logger.log_import_rejected(ledger_id, ["Row 1: Missing required fields"], actor)
        await logger.log_transaction_changed(
            AuditEventType.TRANSACTION_DELETED, uuid4(), ledger_id, "Transaction deleted", actor
        )
        await logger.log_error("storage_error", "timeout", {"action": "list"}, actor)

        events = await storage.get_recent_events()
        assert {e.event_type for e in events} == {
            AuditEventType.ACCESS_DENIED,
            AuditEventType.IMPORT_REJECTED,
            AuditEventType.TRANSACTION_DELETED,
            AuditEventType.SYSTEM_ERROR,
        }
        assert all(e.actor_id == actor for e in events)
