"""Transaction routes, including CSV import, export and template."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from app.auth import get_request_context
from app.dependencies import get_importer, get_store
from app.schemas import ImportPayload
from src.errors import LedgerValidationError
from src.imports import (
    CsvTransactionImporter,
    csv_template,
    export_filename,
    export_transactions_csv,
    read_csv,
    sample_csv,
)
from src.ledgers import LedgerStore
from src.models.ledger import (
    BalancedTransaction,
    RequestContext,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
)

router = APIRouter(prefix="/transactions", tags=["Transactions"])


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/template/csv")
async def download_template():
    """Static CSV template; no authentication required."""
    return _csv_response(csv_template(), "transaction_template.csv")


@router.get("/sample/csv")
async def download_sample():
    """Three example rows; no authentication required."""
    return _csv_response(sample_csv(), "transaction_sample.csv")


@router.get("/ledger/{ledger_id}", response_model=list[BalancedTransaction])
async def list_ledger_transactions(
    ledger_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    store: LedgerStore = Depends(get_store),
):
    return await store.list_ledger_transactions(ctx, ledger_id)


@router.get("/ledger/{ledger_id}/export/csv")
async def export_ledger_csv(
    ledger_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    store: LedgerStore = Depends(get_store),
):
    detail = await store.get_ledger(ctx, ledger_id)
    return _csv_response(
        export_transactions_csv(detail.transactions),
        export_filename(detail.ledger.name),
    )


@router.post("", response_model=Transaction)
async def create_transaction(
    payload: TransactionCreate,
    ctx: RequestContext = Depends(get_request_context),
    store: LedgerStore = Depends(get_store),
):
    return await store.create_transaction(ctx, payload)


@router.post("/import/csv")
async def import_csv(
    payload: ImportPayload,
    ctx: RequestContext = Depends(get_request_context),
    importer: CsvTransactionImporter = Depends(get_importer),
):
    count = await importer.import_rows(ctx, payload.ledger_id, payload.transactions)
    return JSONResponse(
        status_code=201,
        content={
            "message": f"Successfully imported {count} transactions",
            "count": count,
        },
    )


@router.post("/ledger/{ledger_id}/import/csv")
async def import_csv_file(
    ledger_id: UUID,
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    importer: CsvTransactionImporter = Depends(get_importer),
):
    """Import a raw CSV file sent as the request body (text/csv)."""
    try:
        text = (await request.body()).decode("utf-8")
    except UnicodeDecodeError:
        raise LedgerValidationError("CSV file must be UTF-8 encoded")

    count = await importer.import_rows(ctx, ledger_id, read_csv(text))
    return JSONResponse(
        status_code=201,
        content={
            "message": f"Successfully imported {count} transactions",
            "count": count,
        },
    )


@router.put("/{transaction_id}", response_model=Transaction)
async def update_transaction(
    transaction_id: UUID,
    fields: TransactionUpdate,
    ctx: RequestContext = Depends(get_request_context),
    store: LedgerStore = Depends(get_store),
):
    return await store.update_transaction(ctx, transaction_id, fields)


@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    store: LedgerStore = Depends(get_store),
):
    await store.delete_transaction(ctx, transaction_id)
    return {"message": "Transaction deleted successfully"}
