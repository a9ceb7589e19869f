"""
Core Data Models for Ledger Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Keep identifiers strongly typed (no stringly-typed ID comparisons)

DESIGN DECISION: Balances never appear on a stored model.
`BalancedTransaction` is a read-only view produced by the balance engine.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import NewType, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# IDENTIFIERS
# =============================================================================

UserId = NewType("UserId", UUID)
LedgerId = NewType("LedgerId", UUID)
TransactionId = NewType("TransactionId", UUID)
MessageId = NewType("MessageId", UUID)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class GlobalRole(str, Enum):
    """
    Platform-level role of a user.

    Distinct from per-ledger roles: a platform admin has full
    cross-ledger access and is the only role allowed to mutate
    ledgers and transactions.
    """
    USER = "user"
    ADMIN = "admin"


class LedgerRole(str, Enum):
    """Role granted to a user on a single ledger."""
    VIEWER = "viewer"
    EDITOR = "editor"
    ADMIN = "admin"


class Currency(str, Enum):
    """Supported ledger currencies."""
    USD = "USD"
    BTC = "BTC"


# Amounts: at most 12 integer digits and 8 decimal places (satoshis).
# Running balances stay well inside the default 28-digit decimal context.
AMOUNT_MAX_DIGITS = 20
AMOUNT_DECIMAL_PLACES = 8


def amount_in_range(amount: Decimal) -> bool:
    """Whether a finite amount fits AMOUNT_MAX_DIGITS / AMOUNT_DECIMAL_PLACES."""
    _, digits, exponent = amount.as_tuple()
    if exponent >= 0:
        whole, places = len(digits) + exponent, 0
    else:
        places = -exponent
        whole = max(len(digits) - places, 0)
    return (
        places <= AMOUNT_DECIMAL_PLACES
        and whole <= AMOUNT_MAX_DIGITS - AMOUNT_DECIMAL_PLACES
    )


def _require_finite(v: Optional[Decimal]) -> Optional[Decimal]:
    if v is None:
        return v
    if not v.is_finite():
        raise ValueError("Amount must be a finite number")
    if not amount_in_range(v):
        raise ValueError(
            f"Amount must have at most {AMOUNT_MAX_DIGITS - AMOUNT_DECIMAL_PLACES} "
            f"integer digits and {AMOUNT_DECIMAL_PLACES} decimal places"
        )
    return v


# =============================================================================
# REQUEST CONTEXT
# =============================================================================

class RequestContext(BaseModel):
    """
    Identity of the caller for one request.

    Produced by the external authenticator and passed explicitly
    into every resolver and store call. Never stored globally.
    """
    model_config = ConfigDict(frozen=True)

    user_id: UserId
    global_role: GlobalRole = GlobalRole.USER

    @property
    def is_platform_admin(self) -> bool:
        return self.global_role == GlobalRole.ADMIN


# =============================================================================
# USERS
# =============================================================================

class User(BaseModel):
    """A registered (or invited) user of the platform."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UserId = Field(default_factory=uuid4)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name"
    )
    email: str = Field(
        ...,
        max_length=254,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="Unique email address"
    )
    role: GlobalRole = GlobalRole.USER

    # Exactly one of these is normally set; invited users have neither yet
    password_hash: Optional[str] = None
    external_id: Optional[str] = Field(
        default=None,
        description="Identity provider subject (e.g. Google account id)"
    )

    # Invitation state
    pending: bool = False
    invite_token: Optional[str] = None

    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    def to_info(self) -> "UserInfo":
        return UserInfo(id=self.id, name=self.name, email=self.email)


class UserInfo(BaseModel):
    """Public projection of a user, used to populate owners and senders."""

    id: UserId
    name: str
    email: str


# =============================================================================
# LEDGERS
# =============================================================================

class PermissionGrant(BaseModel):
    """A requested role grant, as supplied by a caller."""

    user: UserId
    role: LedgerRole = LedgerRole.VIEWER


class PermissionEntry(BaseModel):
    """A stored role grant on a ledger."""

    user: UserId
    role: LedgerRole = LedgerRole.VIEWER
    added_by: Optional[UserId] = None
    added_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)


class Ledger(BaseModel):
    """
    A named account with exactly one owner.

    The owner has implicit full access whatever the permissions list
    says; the list additionally carries an explicit admin entry for
    the owner.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: LedgerId = Field(default_factory=uuid4)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Ledger name"
    )
    owner: UserId
    currency: Currency = Currency.USD
    description: Optional[str] = Field(
        default=None,
        max_length=1000
    )
    permissions: list[PermissionEntry] = Field(default_factory=list)

    created_by: Optional[UserId] = None
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)

    def permission_for(self, user_id: UserId) -> Optional[PermissionEntry]:
        """Return the permission entry for a user, if any."""
        for entry in self.permissions:
            if entry.user == user_id:
                return entry
        return None

    def is_visible_to(self, user_id: UserId) -> bool:
        """True if the user owns the ledger or holds any grant on it."""
        return self.owner == user_id or self.permission_for(user_id) is not None


class LedgerCreate(BaseModel):
    """Payload for creating a ledger."""
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=200)
    owner_id: UserId = Field(..., alias="ownerId")
    currency: Optional[Currency] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    permissions: list[PermissionGrant] = Field(default_factory=list)


class LedgerUpdate(BaseModel):
    """
    Partial update of a ledger.

    Only fields present in the payload are applied. `description`
    may be explicitly set to null to clear it.
    """
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    owner_id: Optional[UserId] = Field(default=None, alias="ownerId")
    currency: Optional[Currency] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    permissions: Optional[list[PermissionGrant]] = None


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A single dated entry in a ledger.

    Positive amounts are credits (deposits), negative amounts are
    debits (expenses). There is no separate type field.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: TransactionId = Field(default_factory=uuid4)
    ledger_id: LedgerId
    date: dt.date
    description: str = Field(..., min_length=1, max_length=500)
    amount: Decimal

    created_by: Optional[UserId] = None
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        """Reject NaN, infinities and out-of-range amounts."""
        return _require_finite(v)


class TransactionCreate(BaseModel):
    """Payload for creating a transaction."""
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    ledger_id: LedgerId = Field(..., alias="ledgerId")
    date: dt.date
    description: str = Field(..., min_length=1, max_length=500)
    amount: Decimal

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        """Reject NaN, infinities and out-of-range amounts."""
        return _require_finite(v)


class TransactionUpdate(BaseModel):
    """Partial update of a transaction. The ledger is never reassigned."""
    model_config = ConfigDict(str_strip_whitespace=True)

    date: Optional[dt.date] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    amount: Optional[Decimal] = None

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        """Reject NaN, infinities and out-of-range amounts."""
        return _require_finite(v)


class BalancedTransaction(Transaction):
    """A transaction annotated with the running balance after it."""
    model_config = ConfigDict(frozen=True)

    balance: Decimal


class BalanceSummary(BaseModel):
    """Aggregate figures for a set of transactions."""

    transaction_count: int = Field(ge=0)
    total_credits: Decimal = Decimal("0")
    total_debits: Decimal = Decimal("0")
    closing_balance: Decimal = Decimal("0")


# =============================================================================
# READ MODELS
# =============================================================================

class LedgerSummary(BaseModel):
    """A ledger as shown in listings, with its owner populated."""

    ledger: Ledger
    owner: Optional[UserInfo] = None


class LedgerDetail(BaseModel):
    """A ledger with its balanced transactions."""

    ledger: Ledger
    owner: Optional[UserInfo] = None
    transactions: list[BalancedTransaction] = Field(default_factory=list)
    summary: BalanceSummary
    # Ledger-admin entries in list order, used to preselect sharing defaults
    admin_ids: list[UserId] = Field(default_factory=list)


# =============================================================================
# MESSAGES
# =============================================================================

class Message(BaseModel):
    """A contact-to-admin message."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: MessageId = Field(default_factory=uuid4)
    sender: UserId
    content: str = Field(..., min_length=1, max_length=5000)
    is_read: bool = False
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)


class MessageView(BaseModel):
    """A message with its sender populated."""

    message: Message
    sender: Optional[UserInfo] = None
