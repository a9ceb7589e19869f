"""
Audit Models for Ledger Tracker

Every mutation, denial and import outcome is logged for audit purposes.
This provides:
1. Traceability of who changed which ledger and when
2. Debugging information when things go wrong
3. A record of refused access attempts

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledgers
    LEDGER_CREATED = "ledger_created"
    LEDGER_UPDATED = "ledger_updated"
    LEDGER_DELETED = "ledger_deleted"
    PERMISSIONS_UPDATED = "permissions_updated"

    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTIONS_IMPORTED = "transactions_imported"
    IMPORT_REJECTED = "import_rejected"

    # Access control
    ACCESS_DENIED = "access_denied"

    # Admin console
    USER_CREATED = "user_created"
    USER_INVITED = "user_invited"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    MESSAGE_RECEIVED = "message_received"
    MESSAGE_READ = "message_read"
    MESSAGE_DELETED = "message_deleted"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'ledger', 'transaction', 'user')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Who did it
    actor_id: Optional[UUID] = Field(
        default=None,
        description="User whose request caused the event"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         actor_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.actor_id) if self.actor_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.ledger_created(ledger_id, name, owner_id, actor_id)
        event = AuditEventBuilder.access_denied("ledger", ledger_id, "read", actor_id)
    """

    @staticmethod
    def ledger_created(
        ledger_id: UUID,
        name: str,
        owner_id: UUID,
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_CREATED,
            entity_type="ledger",
            entity_id=ledger_id,
            actor_id=actor_id,
            description=f"Ledger created: {name}",
            details={"owner_id": str(owner_id)},
        )

    @staticmethod
    def ledger_updated(
        ledger_id: UUID,
        fields: list[str],
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_UPDATED,
            entity_type="ledger",
            entity_id=ledger_id,
            actor_id=actor_id,
            description=f"Ledger updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
        )

    @staticmethod
    def permissions_updated(
        ledger_id: UUID,
        granted: int,
        dropped: int,
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERMISSIONS_UPDATED,
            entity_type="ledger",
            entity_id=ledger_id,
            actor_id=actor_id,
            description=f"Permissions replaced with {granted} entries",
            details={"granted": granted, "dropped_unknown_users": dropped},
        )

    @staticmethod
    def ledger_deleted(
        ledger_id: UUID,
        transactions_deleted: int,
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            entity_id=ledger_id,
            actor_id=actor_id,
            description=f"Ledger deleted with {transactions_deleted} transactions",
            details={"transactions_deleted": transactions_deleted},
        )

    @staticmethod
    def transaction_changed(
        event_type: AuditEventType,
        transaction_id: UUID,
        ledger_id: UUID,
        summary: str,
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_id=actor_id,
            description=summary,
            details={"ledger_id": str(ledger_id)},
        )

    @staticmethod
    def transactions_imported(
        ledger_id: UUID,
        count: int,
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_IMPORTED,
            entity_type="ledger",
            entity_id=ledger_id,
            actor_id=actor_id,
            description=f"Imported {count} transactions",
            details={"count": count},
        )

    @staticmethod
    def import_rejected(
        ledger_id: UUID,
        errors: list[str],
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            entity_id=ledger_id,
            actor_id=actor_id,
            description=f"CSV import rejected with {len(errors)} row errors",
            details={"errors": errors},
        )

    @staticmethod
    def access_denied(
        entity_type: str,
        entity_id: Optional[UUID],
        action: str,
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCESS_DENIED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            description=f"Access denied: {action}",
            details={"action": action},
        )

    @staticmethod
    def user_changed(
        event_type: AuditEventType,
        user_id: UUID,
        email: str,
        actor_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="user",
            entity_id=user_id,
            actor_id=actor_id,
            description=f"{event_type.value.replace('_', ' ').capitalize()}: {email}",
            details={"email": email},
        )

    @staticmethod
    def message_changed(
        event_type: AuditEventType,
        message_id: UUID,
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="message",
            entity_id=message_id,
            actor_id=actor_id,
            description=event_type.value.replace("_", " ").capitalize(),
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        actor_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            actor_id=actor_id,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
