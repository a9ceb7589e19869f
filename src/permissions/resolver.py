"""
Permission Resolver

Determines the effective role of a caller on a ledger.

Resolution order (first match wins):
1. Platform admin         -> PLATFORM_ADMIN
2. Ledger owner           -> OWNER
3. Entry in permissions   -> that entry's role (ADMIN / EDITOR / VIEWER)
4. Anything else          -> NONE

IMPORTANT: Ledger-level roles only gate visibility. Creating, updating
and deleting ledgers or transactions requires a platform admin.
Managing a ledger's permissions requires its owner or a platform admin.

All functions here are pure: they only look at the context and the
ledger snapshot they are given.
"""

from enum import Enum

from src.models.ledger import Ledger, LedgerRole, RequestContext, UserId


class EffectiveRole(str, Enum):
    """Closed set of roles a caller can hold on a ledger."""
    PLATFORM_ADMIN = "platform_admin"
    OWNER = "owner"
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"
    NONE = "none"

    @property
    def is_admin_equivalent(self) -> bool:
        """Platform admins, owners and ledger admins."""
        return self in (EffectiveRole.PLATFORM_ADMIN, EffectiveRole.OWNER, EffectiveRole.ADMIN)


_LEDGER_ROLE_MAP = {
    LedgerRole.ADMIN: EffectiveRole.ADMIN,
    LedgerRole.EDITOR: EffectiveRole.EDITOR,
    LedgerRole.VIEWER: EffectiveRole.VIEWER,
}


def resolve_role(context: RequestContext, ledger: Ledger) -> EffectiveRole:
    """Return the caller's effective role on the ledger."""
    if context.is_platform_admin:
        return EffectiveRole.PLATFORM_ADMIN

    if ledger.owner == context.user_id:
        return EffectiveRole.OWNER

    entry = ledger.permission_for(context.user_id)
    if entry is not None:
        return _LEDGER_ROLE_MAP[entry.role]

    return EffectiveRole.NONE


def can_read(context: RequestContext, ledger: Ledger) -> bool:
    return resolve_role(context, ledger) != EffectiveRole.NONE


def can_manage_permissions(context: RequestContext, ledger: Ledger) -> bool:
    return context.is_platform_admin or ledger.owner == context.user_id


def can_mutate(context: RequestContext) -> bool:
    """
    Whether the caller may create, update or delete ledgers and transactions.

    Does not depend on the ledger: editor and ledger-admin grants do not
    unlock writes.
    """
    return context.is_platform_admin


def ledger_admin_user_ids(ledger: Ledger) -> list[UserId]:
    """
    Users holding a ledger-admin entry, in permissions-list order.

    Scans the list only, so the owner appears through the admin entry
    created alongside the ledger.
    """
    return [entry.user for entry in ledger.permissions if entry.role == LedgerRole.ADMIN]
