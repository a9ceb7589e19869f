"""
Data Models Package

This package contains all Pydantic models used in the Ledger Tracker system.
All data flowing through the system must conform to these schemas.
"""

from src.models.ledger import (
    AMOUNT_DECIMAL_PLACES,
    AMOUNT_MAX_DIGITS,
    BalancedTransaction,
    BalanceSummary,
    Currency,
    GlobalRole,
    Ledger,
    LedgerCreate,
    LedgerDetail,
    LedgerId,
    LedgerRole,
    LedgerSummary,
    LedgerUpdate,
    Message,
    MessageId,
    MessageView,
    PermissionEntry,
    PermissionGrant,
    RequestContext,
    Transaction,
    TransactionCreate,
    TransactionId,
    TransactionUpdate,
    User,
    UserId,
    UserInfo,
    amount_in_range,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "AMOUNT_DECIMAL_PLACES",
    "AMOUNT_MAX_DIGITS",
    "BalancedTransaction",
    "BalanceSummary",
    "Currency",
    "GlobalRole",
    "Ledger",
    "LedgerCreate",
    "LedgerDetail",
    "LedgerId",
    "LedgerRole",
    "LedgerSummary",
    "LedgerUpdate",
    "Message",
    "MessageId",
    "MessageView",
    "PermissionEntry",
    "PermissionGrant",
    "RequestContext",
    "Transaction",
    "TransactionCreate",
    "TransactionId",
    "TransactionUpdate",
    "User",
    "UserId",
    "UserInfo",
    "amount_in_range",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
