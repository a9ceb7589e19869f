"""
CSV Import/Export Adapter

Validates and transforms tabular transaction data to and from the
store's transaction shape.

CSV FORMAT:
- Header row: date,description,amount
- date: YYYY-MM-DD (an ISO timestamp is reduced to its date)
- amount: plain signed decimal, positive = credit, negative = debit

DESIGN DECISION: Imports are all-or-nothing. Every row is validated
before anything is written, and one invalid row rejects the batch.
Each invalid row contributes exactly one error message, naming the
first check it failed. Row numbers are 1-indexed over the data rows.

IMPORTANT: Validation NEVER silently fixes issues. "$12.50" is not
an amount.
"""

import csv
import datetime as dt
import io
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.audit import AuditLogger
from src.errors import LedgerValidationError
from src.ledgers import LedgerStore
from src.models.ledger import (
    AMOUNT_DECIMAL_PLACES,
    AMOUNT_MAX_DIGITS,
    LedgerId,
    RequestContext,
    Transaction,
    TransactionCreate,
    amount_in_range,
)


CSV_FIELDS = ["date", "description", "amount"]

MAX_DESCRIPTION_LENGTH = 500

_PLAIN_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


class ParsedTransaction(BaseModel):
    """A validated CSV row, not yet bound to a ledger."""

    date: dt.date
    description: str
    amount: Decimal


class CsvParseResult(BaseModel):
    """Outcome of validating a batch of rows."""

    valid_transactions: list[ParsedTransaction] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_date(value: Any) -> Optional[dt.date]:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        return dt.date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return dt.datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _parse_amount(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        text = str(value)
    elif isinstance(value, str):
        text = value.strip()
        if not _PLAIN_NUMBER.match(text):
            return None
    else:
        return None

    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def _validate_row(row: dict, row_number: int) -> tuple[Optional[ParsedTransaction], Optional[str]]:
    """Validate one row. Returns (transaction, None) or (None, error)."""
    date_value = row.get("date")
    description = row.get("description")
    amount_value = row.get("amount")

    if _is_blank(date_value) or _is_blank(description) or _is_blank(amount_value):
        return None, f"Row {row_number}: Missing required fields"

    parsed_date = _parse_date(date_value)
    if parsed_date is None:
        return None, f"Row {row_number}: Invalid date format. Please use YYYY-MM-DD format"

    description = str(description).strip()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        return None, (
            f"Row {row_number}: Description must be at most "
            f"{MAX_DESCRIPTION_LENGTH} characters"
        )

    amount = _parse_amount(amount_value)
    if amount is None:
        return None, f"Row {row_number}: Amount must be a number"
    if not amount_in_range(amount):
        return None, (
            f"Row {row_number}: Amount must have at most "
            f"{AMOUNT_MAX_DIGITS - AMOUNT_DECIMAL_PLACES} integer digits and "
            f"{AMOUNT_DECIMAL_PLACES} decimal places"
        )

    return ParsedTransaction(date=parsed_date, description=description, amount=amount), None


def parse_and_validate(rows: list[dict]) -> CsvParseResult:
    """
    Validate rows of {date, description, amount}.

    Returns every valid row and one message per invalid row, in row order.
    """
    result = CsvParseResult()

    for index, row in enumerate(rows):
        row_number = index + 1
        if not isinstance(row, dict):
            result.errors.append(f"Row {row_number}: Missing required fields")
            continue

        transaction, error = _validate_row(row, row_number)
        if error:
            result.errors.append(error)
        else:
            result.valid_transactions.append(transaction)

    return result


def read_csv(text: str) -> list[dict]:
    """
    Parse CSV text into row dicts keyed by lower-cased header names.

    Blank lines are skipped. Missing cells come back as None.
    """
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    if reader.fieldnames:
        reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]

    rows = []
    for row in reader:
        if all(_is_blank(value) for key, value in row.items() if key is not None):
            continue
        rows.append({key: value for key, value in row.items() if key is not None})
    return rows


def _csv_quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def export_transactions_csv(transactions: list[Transaction]) -> str:
    """
    Render transactions as CSV.

    The description is always quoted with embedded quotes doubled.
    """
    lines = [",".join(CSV_FIELDS)]
    for transaction in transactions:
        lines.append(",".join([
            transaction.date.isoformat(),
            _csv_quote(transaction.description),
            str(transaction.amount),
        ]))
    return "\n".join(lines) + "\n"


def csv_template() -> str:
    """Header plus one placeholder row."""
    return ",".join(CSV_FIELDS) + '\nYYYY-MM-DD,"Sample transaction",0\n'


def sample_csv() -> str:
    """A small realistic example file."""
    rows = [
        ("2025-03-15", "Rent payment", "-1500.00"),
        ("2025-03-16", "Salary deposit", "3000.00"),
        ("2025-03-20", "Grocery shopping", "-125.50"),
    ]
    lines = [",".join(CSV_FIELDS)] + [",".join(row) for row in rows]
    return "\n".join(lines) + "\n"


def export_filename(ledger_name: Optional[str]) -> str:
    """File name for a ledger export, e.g. "ricky_s_savings_transactions.csv"."""
    if not ledger_name:
        return "transactions.csv"
    slug = re.sub(r"[^a-z0-9]", "_", ledger_name, flags=re.IGNORECASE).lower()
    return f"{slug}_transactions.csv"


class CsvTransactionImporter:
    """
    Bulk-imports validated CSV rows into a ledger through the store.

    Usage:
        importer = CsvTransactionImporter(store, audit_logger, max_rows=5000)
        count = await importer.import_rows(ctx, ledger_id, rows)
    """

    def __init__(
        self,
        store: LedgerStore,
        audit_logger: Optional[AuditLogger] = None,
        max_rows: int = 5000,
    ):
        self._store = store
        self._audit = audit_logger or AuditLogger()
        self._max_rows = max_rows

    async def import_rows(
        self,
        ctx: RequestContext,
        ledger_id: LedgerId,
        rows: list[dict],
    ) -> int:
        """
        Validate and insert rows into a ledger.

        Raises:
            AccessDeniedError: caller is not a platform admin
            NotFoundError: ledger does not exist
            LedgerValidationError: empty or oversized batch, or any invalid
                row (with `errors` listing each one); nothing is written

        Returns:
            Number of transactions written
        """
        await self._store.ledger_for_import(ctx, ledger_id)

        if not isinstance(rows, list) or not rows:
            raise LedgerValidationError("Invalid transactions data")

        if len(rows) > self._max_rows:
            raise LedgerValidationError(
                f"Too many rows: {len(rows)} (maximum is {self._max_rows})"
            )

        result = parse_and_validate(rows)
        if not result.is_valid:
            await self._audit.log_import_rejected(
                ledger_id=ledger_id,
                errors=result.errors,
                actor_id=ctx.user_id,
            )
            raise LedgerValidationError("Validation errors", errors=result.errors)

        payloads = [
            TransactionCreate(
                ledger_id=ledger_id,
                date=parsed.date,
                description=parsed.description,
                amount=parsed.amount,
            )
            for parsed in result.valid_transactions
        ]
        return await self._store.bulk_create_transactions(ctx, ledger_id, payloads)
