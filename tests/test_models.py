"""
Tests for Ledger Tracker

Test strategy:
1. Unit tests for individual components (models, resolver, balance engine)
2. Store and adapter tests against the in-memory backend
3. HTTP tests through FastAPI's TestClient
4. No real API calls in tests (Google Sheets is faked)
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from src.models.ledger import (
    Currency,
    GlobalRole,
    Ledger,
    LedgerCreate,
    LedgerRole,
    LedgerUpdate,
    PermissionEntry,
    PermissionGrant,
    RequestContext,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
    User,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestUserModels:
    """Tests for user models."""

    def test_user_email_is_lowercased(self):
        """Test that emails are normalized to lower case."""
        user = User(name="Ricky", email="Ricky@Example.COM")
        assert user.email == "ricky@example.com"
        assert user.role == GlobalRole.USER

    def test_user_rejects_malformed_email(self):
        """Test that an email without a domain is rejected."""
        with pytest.raises(ValidationError):
            User(name="Ricky", email="ricky")

    def test_user_to_info(self):
        """Test projection to public info."""
        user = User(name="  Ricky  ", email="ricky@example.com", password_hash="x")
        info = user.to_info()
        assert info.id == user.id
        assert info.name == "Ricky"
        assert not hasattr(info, "password_hash")


class TestRequestContext:
    """Tests for the per-request identity."""

    def test_platform_admin_flag(self):
        """Test is_platform_admin follows the global role."""
        assert RequestContext(user_id=uuid4(), global_role=GlobalRole.ADMIN).is_platform_admin
        assert not RequestContext(user_id=uuid4()).is_platform_admin

    def test_context_is_immutable(self):
        """Test that a context cannot be modified once built."""
        ctx = RequestContext(user_id=uuid4())
        with pytest.raises(ValidationError):
            ctx.global_role = GlobalRole.ADMIN


class TestLedgerModels:
    """Tests for ledger models."""

    def test_ledger_defaults(self):
        """Test default currency and empty permissions."""
        ledger = Ledger(name="Ricky", owner=uuid4())
        assert ledger.currency == Currency.USD
        assert ledger.permissions == []

    def test_ledger_rejects_unknown_currency(self):
        """Test that only USD and BTC are accepted."""
        with pytest.raises(ValidationError):
            Ledger(name="Ricky", owner=uuid4(), currency="EUR")

    def test_permission_grant_defaults_to_viewer(self):
        """Test role default on grants."""
        assert PermissionGrant(user=uuid4()).role == LedgerRole.VIEWER

    def test_permission_for_and_visibility(self):
        """Test lookups on the embedded permission list."""
        owner, editor, other = uuid4(), uuid4(), uuid4()
        ledger = Ledger(
            name="Shared",
            owner=owner,
            permissions=[PermissionEntry(user=editor, role=LedgerRole.EDITOR)],
        )
        assert ledger.permission_for(editor).role == LedgerRole.EDITOR
        assert ledger.permission_for(other) is None
        assert ledger.is_visible_to(owner)
        assert ledger.is_visible_to(editor)
        assert not ledger.is_visible_to(other)

    def test_ledger_create_accepts_camel_case_owner(self):
        """Test the ownerId alias used by HTTP clients."""
        owner = uuid4()
        payload = LedgerCreate.model_validate({"name": "Ricky", "ownerId": str(owner)})
        assert payload.owner_id == owner
        assert payload.currency is None

    def test_ledger_update_tracks_present_fields(self):
        """Test that explicit nulls are distinguishable from omitted fields."""
        update = LedgerUpdate.model_validate({"description": None})
        assert "description" in update.model_fields_set
        assert "name" not in update.model_fields_set


class TestTransactionModels:
    """Tests for transaction models."""

    def test_transaction_creation(self):
        """Test Transaction model creation."""
        transaction = Transaction(
            ledger_id=uuid4(),
            date=date(2023, 7, 27),
            description="  Savings  ",
            amount=Decimal("500.00"),
        )
        assert transaction.description == "Savings"
        assert transaction.amount == Decimal("500.00")
        assert isinstance(transaction.created_at, datetime)

    def test_transaction_accepts_negative_amount(self):
        """Test that debits are plain negative amounts."""
        transaction = Transaction(
            ledger_id=uuid4(),
            date=date(2023, 7, 27),
            description="Rent",
            amount=Decimal("-1500.00"),
        )
        assert transaction.amount < 0

    @pytest.mark.parametrize("amount", ["NaN", "Infinity", "-Infinity"])
    def test_transaction_rejects_non_finite_amount(self, amount):
        """Test that NaN and infinities are rejected."""
        with pytest.raises(ValidationError):
            TransactionCreate(
                ledger_id=uuid4(),
                date=date(2023, 7, 27),
                description="Bad",
                amount=Decimal(amount),
            )

    @pytest.mark.parametrize("amount", [
        "10000000000000000000000000000",
        "9e999999",
        "1000000000000",
        "0.000000001",
    ])
    def test_transaction_rejects_out_of_range_amount(self, amount):
        """Test the 12 integer digit / 8 decimal place bound on every amount model."""
        with pytest.raises(ValidationError):
            TransactionCreate(
                ledger_id=uuid4(),
                date=date(2023, 7, 27),
                description="Too wide",
                amount=Decimal(amount),
            )
        with pytest.raises(ValidationError):
            TransactionUpdate(amount=Decimal(amount))
        with pytest.raises(ValidationError):
            Transaction(
                ledger_id=uuid4(),
                date=date(2023, 7, 27),
                description="Too wide",
                amount=Decimal(amount),
            )

    @pytest.mark.parametrize("amount", ["999999999999.99999999", "-0.00000001", "1E+3", "500.00"])
    def test_transaction_accepts_amount_at_bounds(self, amount):
        """Test amounts inside the bound, including exponent notation."""
        update = TransactionUpdate(amount=Decimal(amount))
        assert update.amount == Decimal(amount)

    def test_transaction_rejects_empty_description(self):
        """Test that whitespace-only descriptions are rejected."""
        with pytest.raises(ValidationError):
            Transaction(
                ledger_id=uuid4(),
                date=date(2023, 7, 27),
                description="   ",
                amount=Decimal("1"),
            )

    def test_transaction_update_is_partial(self):
        """Test that unset fields stay unset."""
        update = TransactionUpdate(amount=Decimal("12.50"))
        assert update.model_dump(exclude_unset=True) == {"amount": Decimal("12.50")}


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.LEDGER_CREATED,
            description="Ledger created",
        )
        assert event.event_type == AuditEventType.LEDGER_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_IMPORTED,
            description="Imported 3 transactions",
            details={"count": 3},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transactions_imported"
        assert log_dict["details"]["count"] == 3

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        actor = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.ACCESS_DENIED,
            description="Access denied: read",
            actor_id=actor,
        )
        row = event.to_sheets_row()
        assert len(row) == 10  # Expected number of columns
        assert row[2] == "access_denied"
        assert row[6] == str(actor)
        assert row[8] == ""  # no details

    def test_audit_event_builder_ledger_deleted(self):
        """Test AuditEventBuilder.ledger_deleted."""
        ledger_id = uuid4()
        actor = uuid4()

        event = AuditEventBuilder.ledger_deleted(
            ledger_id=ledger_id,
            transactions_deleted=3,
            actor_id=actor,
        )

        assert event.event_type == AuditEventType.LEDGER_DELETED
        assert event.severity == AuditSeverity.WARNING
        assert event.entity_id == ledger_id
        assert event.details["transactions_deleted"] == 3

    def test_audit_event_builder_import_rejected(self):
        """Test AuditEventBuilder.import_rejected."""
        event = AuditEventBuilder.import_rejected(
            ledger_id=uuid4(),
            errors=["Row 3: Amount must be a number"],
            actor_id=uuid4(),
        )

        assert event.event_type == AuditEventType.IMPORT_REJECTED
        assert event.details["errors"] == ["Row 3: Amount must be a number"]
        assert "1 row errors" in event.description
