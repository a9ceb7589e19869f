"""Ledger routes."""

from uuid import UUID

from fastapi import APIRouter, Depends

from app.auth import get_request_context
from app.dependencies import get_store
from app.schemas import PermissionsPayload
from src.ledgers import LedgerStore
from src.models.ledger import (
    Ledger,
    LedgerCreate,
    LedgerDetail,
    LedgerSummary,
    LedgerUpdate,
    RequestContext,
)

router = APIRouter(prefix="/ledgers", tags=["Ledgers"])


@router.get("", response_model=list[LedgerSummary])
async def list_ledgers(
    ctx: RequestContext = Depends(get_request_context),
    store: LedgerStore = Depends(get_store),
):
    """Ledgers the caller can see (all of them for platform admins)."""
    return await store.list_ledgers_for_user(ctx)


@router.get("/{ledger_id}", response_model=LedgerDetail)
async def get_ledger(
    ledger_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    store: LedgerStore = Depends(get_store),
):
    return await store.get_ledger(ctx, ledger_id)


@router.post("", response_model=Ledger)
async def create_ledger(
    payload: LedgerCreate,
    ctx: RequestContext = Depends(get_request_context),
    store: LedgerStore = Depends(get_store),
):
    return await store.create_ledger(ctx, payload)


@router.put("/{ledger_id}", response_model=Ledger)
async def update_ledger(
    ledger_id: UUID,
    fields: LedgerUpdate,
    ctx: RequestContext = Depends(get_request_context),
    store: LedgerStore = Depends(get_store),
):
    return await store.update_ledger(ctx, ledger_id, fields)


@router.put("/{ledger_id}/permissions")
async def update_ledger_permissions(
    ledger_id: UUID,
    payload: PermissionsPayload,
    ctx: RequestContext = Depends(get_request_context),
    store: LedgerStore = Depends(get_store),
):
    ledger = await store.update_ledger_permissions(ctx, ledger_id, payload.permissions)
    return {
        "message": "Permissions updated successfully",
        "ledger": ledger.model_dump(mode="json"),
    }


@router.delete("/{ledger_id}")
async def delete_ledger(
    ledger_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    store: LedgerStore = Depends(get_store),
):
    removed = await store.delete_ledger(ctx, ledger_id)
    return {"message": "Ledger deleted successfully", "transactionsDeleted": removed}
