"""
Mailbox

Contact-to-admin messages. Any authenticated user can write one;
only platform admins read, mark or delete them.
"""

from typing import Optional

from src.admin.base import AdminService
from src.audit import AuditLogger
from src.errors import LedgerValidationError, NotFoundError
from src.models.audit import AuditEventBuilder, AuditEventType
from src.models.ledger import Message, MessageId, MessageView, RequestContext
from src.services.storage import MessageStorageInterface, UserStorageInterface


class Mailbox(AdminService):

    def __init__(
        self,
        message_storage: MessageStorageInterface,
        user_storage: UserStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(audit_logger)
        self._messages = message_storage
        self._users = user_storage

    async def _load(self, ctx: RequestContext, message_id: MessageId) -> Message:
        message = await self._storage(
            "get_message", self._messages.get_message_by_id(message_id), ctx.user_id
        )
        if message is None:
            raise NotFoundError("message", message_id)
        return message

    async def send_message(self, ctx: RequestContext, content: str) -> Message:
        """Store a message from the caller. Content must be non-empty."""
        if not content or not content.strip():
            raise LedgerValidationError("Message content is required")

        try:
            message = Message(sender=ctx.user_id, content=content)
        except ValueError as e:
            raise LedgerValidationError(f"Invalid message: {e}")

        await self._storage("send_message", self._messages.save_message(message), ctx.user_id)
        await self._audit.log(AuditEventBuilder.message_changed(
            event_type=AuditEventType.MESSAGE_RECEIVED,
            message_id=message.id,
            actor_id=ctx.user_id,
        ))
        return message

    async def list_messages(self, ctx: RequestContext) -> list[MessageView]:
        """All messages, newest first, senders populated."""
        await self._require_admin(ctx, "message", None, "list_messages")

        messages = await self._storage("list_messages", self._messages.list_messages(), ctx.user_id)
        senders = await self._storage(
            "get_users",
            self._users.get_users_by_ids({m.sender for m in messages}),
            ctx.user_id,
        )

        messages.sort(key=lambda m: m.created_at, reverse=True)
        return [
            MessageView(
                message=message,
                sender=senders[message.sender].to_info() if message.sender in senders else None,
            )
            for message in messages
        ]

    async def mark_as_read(self, ctx: RequestContext, message_id: MessageId) -> Message:
        await self._require_admin(ctx, "message", message_id, "mark_as_read")
        message = await self._load(ctx, message_id)

        message.is_read = True
        await self._storage("mark_as_read", self._messages.update_message(message), ctx.user_id)
        await self._audit.log(AuditEventBuilder.message_changed(
            event_type=AuditEventType.MESSAGE_READ,
            message_id=message.id,
            actor_id=ctx.user_id,
        ))
        return message

    async def delete_message(self, ctx: RequestContext, message_id: MessageId) -> None:
        await self._require_admin(ctx, "message", message_id, "delete_message")
        await self._load(ctx, message_id)

        await self._storage("delete_message", self._messages.delete_message(message_id), ctx.user_id)
        await self._audit.log(AuditEventBuilder.message_changed(
            event_type=AuditEventType.MESSAGE_DELETED,
            message_id=message_id,
            actor_id=ctx.user_id,
        ))
