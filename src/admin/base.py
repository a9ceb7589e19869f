"""Shared plumbing for the admin console services."""

from collections.abc import Awaitable
from typing import Optional, TypeVar

from src.audit import AuditLogger
from src.errors import AccessDeniedError, ServerError
from src.models.ledger import RequestContext
from src.services.storage import DuplicateError, StorageError


T = TypeVar("T")


class AdminService:
    """Base class: platform-admin gate and storage error wrapping."""

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._audit = audit_logger or AuditLogger()

    async def _require_admin(
        self,
        ctx: RequestContext,
        entity_type: str,
        entity_id,
        action: str,
    ) -> None:
        if not ctx.is_platform_admin:
            await self._audit.log_access_denied(
                entity_type=entity_type,
                entity_id=entity_id,
                action=action,
                actor_id=ctx.user_id,
            )
            raise AccessDeniedError("Admin access required")

    async def _storage(self, action: str, call: Awaitable[T], actor_id=None) -> T:
        """Await a storage call. DuplicateError is left to the caller."""
        try:
            return await call
        except DuplicateError:
            raise
        except StorageError as e:
            await self._audit.log_error(
                error_type="storage_error",
                error_message=str(e),
                details={"action": action},
                actor_id=actor_id,
            )
            raise ServerError(f"Storage failure during {action}") from e
