"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Complete traceability of ledger and transaction changes
2. Debugging capability
3. A record of refused access attempts

The audit logger:
- Is async so it fits the store's call path
- Gracefully handles failures (doesn't crash the app if logging fails)
- Records the acting user on every event
"""

import logging
from typing import Optional
from uuid import UUID

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditEventType, AuditSeverity
from src.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route structlog output through the stdlib root logger at `level`.

    structlog renders the JSON line; stdlib only decides whether it is
    emitted and where it goes.
    """
    logging.basicConfig(format="%(message)s", level=level.upper())
    logging.getLogger().setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("ledger_tracker.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_access_denied(
        self,
        entity_type: str,
        entity_id: Optional[UUID],
        action: str,
        actor_id: UUID,
    ) -> None:
        """Log a refused operation."""
        await self.log(AuditEventBuilder.access_denied(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=actor_id,
        ))

    async def log_transaction_changed(
        self,
        event_type: AuditEventType,
        transaction_id: UUID,
        ledger_id: UUID,
        summary: str,
        actor_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_changed(
            event_type=event_type,
            transaction_id=transaction_id,
            ledger_id=ledger_id,
            summary=summary,
            actor_id=actor_id,
        ))

    async def log_import_rejected(
        self,
        ledger_id: UUID,
        errors: list[str],
        actor_id: UUID,
    ) -> None:
        """Log a CSV batch refused because of invalid rows."""
        await self.log(AuditEventBuilder.import_rejected(
            ledger_id=ledger_id,
            errors=errors,
            actor_id=actor_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        actor_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            actor_id=actor_id,
        )
        await self.log(event)
