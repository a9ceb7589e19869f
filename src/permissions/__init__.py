"""Permission resolution package."""

from src.permissions.resolver import (
    EffectiveRole,
    can_manage_permissions,
    can_mutate,
    can_read,
    ledger_admin_user_ids,
    resolve_role,
)

__all__ = [
    "EffectiveRole",
    "can_manage_permissions",
    "can_mutate",
    "can_read",
    "ledger_admin_user_ids",
    "resolve_role",
]
