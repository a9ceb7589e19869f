"""Tests for the permission resolver."""

from uuid import uuid4

import pytest

from src.models.ledger import GlobalRole, Ledger, LedgerRole, PermissionEntry, RequestContext
from src.permissions import (
    EffectiveRole,
    can_manage_permissions,
    can_mutate,
    can_read,
    ledger_admin_user_ids,
    resolve_role,
)


@pytest.fixture
def owner_id():
    return uuid4()


@pytest.fixture
def ledger(owner_id):
    return Ledger(
        name="Shared",
        owner=owner_id,
        permissions=[PermissionEntry(user=owner_id, role=LedgerRole.ADMIN)],
    )


def _ctx(user_id=None, role=GlobalRole.USER):
    return RequestContext(user_id=user_id or uuid4(), global_role=role)


class TestResolveRole:
    """Tests for resolve_role ordering."""

    def test_platform_admin_wins_over_everything(self, ledger, owner_id):
        """Test that a platform admin who also owns the ledger resolves as platform admin."""
        assert resolve_role(_ctx(owner_id, GlobalRole.ADMIN), ledger) == EffectiveRole.PLATFORM_ADMIN

    def test_owner_wins_over_permission_entry(self, ledger, owner_id):
        """Test that the owner resolves as OWNER despite the admin entry."""
        assert resolve_role(_ctx(owner_id), ledger) == EffectiveRole.OWNER

    @pytest.mark.parametrize("role,expected", [
        (LedgerRole.ADMIN, EffectiveRole.ADMIN),
        (LedgerRole.EDITOR, EffectiveRole.EDITOR),
        (LedgerRole.VIEWER, EffectiveRole.VIEWER),
    ])
    def test_permission_entry_role(self, ledger, role, expected):
        """Test that a permission entry maps to its effective role."""
        user_id = uuid4()
        ledger.permissions.append(PermissionEntry(user=user_id, role=role))
        assert resolve_role(_ctx(user_id), ledger) == expected

    def test_unrelated_user_has_no_role(self, ledger):
        """Test the NONE fallback."""
        assert resolve_role(_ctx(), ledger) == EffectiveRole.NONE

    def test_resolution_is_total(self, ledger):
        """Test that every combination resolves to a member of the closed set."""
        users = [ledger.owner, uuid4()]
        for user_id in users:
            for role in GlobalRole:
                assert resolve_role(_ctx(user_id, role), ledger) in set(EffectiveRole)


class TestPolicies:
    """Tests for the read / permission / mutation gates."""

    def test_platform_admin_is_admin_equivalent_on_any_ledger(self):
        """Test that platform admins pass every gate, even on a ledger they are not on."""
        ctx = _ctx(role=GlobalRole.ADMIN)
        ledger = Ledger(name="Elsewhere", owner=uuid4())
        assert resolve_role(ctx, ledger).is_admin_equivalent
        assert can_read(ctx, ledger)
        assert can_manage_permissions(ctx, ledger)
        assert can_mutate(ctx)

    def test_owner_can_manage_permissions_but_not_mutate(self, ledger, owner_id):
        """Test that ledger ownership does not unlock transaction writes."""
        ctx = _ctx(owner_id)
        assert can_read(ctx, ledger)
        assert can_manage_permissions(ctx, ledger)
        assert not can_mutate(ctx)

    def test_ledger_admin_cannot_manage_permissions(self, ledger):
        """Test that a ledger admin entry is not ownership."""
        user_id = uuid4()
        ledger.permissions.append(PermissionEntry(user=user_id, role=LedgerRole.ADMIN))
        assert can_read(_ctx(user_id), ledger)
        assert not can_manage_permissions(_ctx(user_id), ledger)

    def test_editor_is_read_only(self, ledger):
        """Test that the editor role only grants visibility."""
        user_id = uuid4()
        ledger.permissions.append(PermissionEntry(user=user_id, role=LedgerRole.EDITOR))
        assert can_read(_ctx(user_id), ledger)
        assert not can_mutate(_ctx(user_id))

    def test_stranger_cannot_read(self, ledger):
        """Test that unrelated users are refused."""
        assert not can_read(_ctx(), ledger)


class TestLedgerAdminUserIds:

    def test_lists_admin_entries_in_order(self, ledger, owner_id):
        """Test that only admin entries are returned, in list order."""
        second_admin, viewer = uuid4(), uuid4()
        ledger.permissions.append(PermissionEntry(user=viewer, role=LedgerRole.VIEWER))
        ledger.permissions.append(PermissionEntry(user=second_admin, role=LedgerRole.ADMIN))
        assert ledger_admin_user_ids(ledger) == [owner_id, second_admin]

    def test_owner_without_entry_is_not_listed(self):
        """Test that the scan does not consult the owner field."""
        ledger = Ledger(name="Bare", owner=uuid4())
        assert ledger_admin_user_ids(ledger) == []
