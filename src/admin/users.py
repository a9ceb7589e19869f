"""
User Directory

Admin-console operations over platform users.

Signing up, passwords and OAuth are handled by an external identity
provider; this module only stores the resulting user records and
manages invitations. Invitation delivery (email) is external too: the
invite token is returned to the caller.
"""

import secrets
from typing import Optional

from src.admin.base import AdminService
from src.audit import AuditLogger
from src.errors import LedgerValidationError, NotFoundError
from src.models.audit import AuditEventBuilder, AuditEventType
from src.models.ledger import GlobalRole, RequestContext, User, UserId
from src.services.storage import DuplicateError, UserStorageInterface


INVITED_USER_NAME = "Invited User"


class UserDirectory(AdminService):
    """
    Lists, invites, updates and deletes users.

    Every operation except `create_user` and `get_user` requires a
    platform admin.
    """

    def __init__(
        self,
        user_storage: UserStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(audit_logger)
        self._users = user_storage

    async def _load(self, user_id: UserId, actor_id=None) -> User:
        user = await self._storage("get_user", self._users.get_user_by_id(user_id), actor_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    async def list_users(self, ctx: RequestContext) -> list[User]:
        await self._require_admin(ctx, "user", None, "list_users")
        return await self._storage("list_users", self._users.list_users(), ctx.user_id)

    async def get_user(self, user_id: UserId) -> User:
        return await self._load(user_id)

    async def create_user(
        self,
        name: str,
        email: str,
        role: GlobalRole = GlobalRole.USER,
        password_hash: Optional[str] = None,
        external_id: Optional[str] = None,
    ) -> User:
        """
        Register a user coming from the identity provider.

        Raises:
            LedgerValidationError: email already registered, or malformed input
        """
        try:
            user = User(
                name=name,
                email=email,
                role=role,
                password_hash=password_hash,
                external_id=external_id,
            )
        except ValueError as e:
            raise LedgerValidationError(f"Invalid user: {e}")

        try:
            await self._storage("create_user", self._users.save_user(user))
        except DuplicateError:
            raise LedgerValidationError("User already exists")

        await self._audit.log(AuditEventBuilder.user_changed(
            event_type=AuditEventType.USER_CREATED,
            user_id=user.id,
            email=user.email,
            actor_id=None,
        ))
        return user

    async def invite_user(
        self,
        ctx: RequestContext,
        email: str,
        role: Optional[GlobalRole] = None,
    ) -> User:
        """
        Create a pending placeholder user with an invite token.

        Raises:
            LedgerValidationError: email already registered
        """
        await self._require_admin(ctx, "user", None, "invite_user")

        existing = await self._storage(
            "invite_user", self._users.get_user_by_email(email), ctx.user_id
        )
        if existing is not None:
            raise LedgerValidationError("User already exists")

        try:
            user = User(
                name=INVITED_USER_NAME,
                email=email,
                role=role or GlobalRole.USER,
                pending=True,
                invite_token=secrets.token_hex(20),
            )
        except ValueError as e:
            raise LedgerValidationError(f"Invalid invitation: {e}")

        try:
            await self._storage("invite_user", self._users.save_user(user), ctx.user_id)
        except DuplicateError:
            raise LedgerValidationError("User already exists")

        await self._audit.log(AuditEventBuilder.user_changed(
            event_type=AuditEventType.USER_INVITED,
            user_id=user.id,
            email=user.email,
            actor_id=ctx.user_id,
        ))
        return user

    async def update_user(
        self,
        ctx: RequestContext,
        user_id: UserId,
        name: Optional[str] = None,
        role: Optional[GlobalRole] = None,
    ) -> User:
        """Change a user's name and/or global role. Empty values are ignored."""
        await self._require_admin(ctx, "user", user_id, "update_user")
        user = await self._load(user_id, ctx.user_id)

        if name and name.strip():
            user.name = name.strip()
        if role:
            user.role = GlobalRole(role)

        await self._storage("update_user", self._users.update_user(user), ctx.user_id)
        await self._audit.log(AuditEventBuilder.user_changed(
            event_type=AuditEventType.USER_UPDATED,
            user_id=user.id,
            email=user.email,
            actor_id=ctx.user_id,
        ))
        return user

    async def delete_user(self, ctx: RequestContext, user_id: UserId) -> None:
        """
        Remove a user record.

        Ledgers owned by the user are left in place; their owner then
        shows up unpopulated.
        """
        await self._require_admin(ctx, "user", user_id, "delete_user")
        user = await self._load(user_id, ctx.user_id)

        await self._storage("delete_user", self._users.delete_user(user_id), ctx.user_id)
        await self._audit.log(AuditEventBuilder.user_changed(
            event_type=AuditEventType.USER_DELETED,
            user_id=user_id,
            email=user.email,
            actor_id=ctx.user_id,
        ))
