"""Contact-to-admin message routes."""

from uuid import UUID

from fastapi import APIRouter, Depends

from app.auth import get_request_context
from app.dependencies import get_mailbox
from app.schemas import MessageCreate
from src.admin import Mailbox
from src.models.ledger import Message, MessageView, RequestContext

router = APIRouter(prefix="/messages", tags=["Messages"])


@router.post("", response_model=Message)
async def send_message(
    payload: MessageCreate,
    ctx: RequestContext = Depends(get_request_context),
    mailbox: Mailbox = Depends(get_mailbox),
):
    return await mailbox.send_message(ctx, payload.content)


@router.get("", response_model=list[MessageView])
async def list_messages(
    ctx: RequestContext = Depends(get_request_context),
    mailbox: Mailbox = Depends(get_mailbox),
):
    return await mailbox.list_messages(ctx)


@router.put("/{message_id}/read", response_model=Message)
async def mark_as_read(
    message_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    mailbox: Mailbox = Depends(get_mailbox),
):
    return await mailbox.mark_as_read(ctx, message_id)


@router.delete("/{message_id}")
async def delete_message(
    message_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    mailbox: Mailbox = Depends(get_mailbox),
):
    await mailbox.delete_message(ctx, message_id)
    return {"message": "Message deleted successfully"}
