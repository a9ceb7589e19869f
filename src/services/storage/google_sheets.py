"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a persistent backend because:
1. Admins can inspect ledgers directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (fine for household/small-team ledgers)
- No transactions: a ledger delete removes transaction rows first, then
  the ledger row; a failure in between leaves the ledger in place
- Limited query capabilities (we filter in Python)

One worksheet per collection. Ledger permissions are embedded as a JSON
column on the ledger row.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, retry_if_not_exception_type, stop_after_attempt, wait_exponential

from src.config import get_settings
from src.models.audit import AuditEvent, AuditEventType, AuditSeverity
from src.models.ledger import (
    Currency,
    GlobalRole,
    Ledger,
    LedgerId,
    Message,
    MessageId,
    PermissionEntry,
    Transaction,
    TransactionId,
    User,
    UserId,
)
from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    MessageStorageInterface,
    RecordNotFoundError,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)


USER_COLUMNS = [
    "id",
    "name",
    "email",
    "role",
    "password_hash",
    "external_id",
    "pending",
    "invite_token",
    "created_at",
]

LEDGER_COLUMNS = [
    "id",
    "name",
    "owner",
    "currency",
    "description",
    "permissions_json",
    "created_by",
    "created_at",
]

TRANSACTION_COLUMNS = [
    "id",
    "ledger_id",
    "date",
    "description",
    "amount",
    "created_by",
    "created_at",
]

MESSAGE_COLUMNS = [
    "id",
    "sender",
    "content",
    "is_read",
    "created_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "actor_id",
    "description",
    "details_json",
    "error_message",
]

_WRITE_RETRY = dict(
    retry=retry_if_not_exception_type(DuplicateError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def _optional_uuid(value: str) -> Optional[UUID]:
    return UUID(value) if value else None


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_users_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(self._settings.users_sheet_name, USER_COLUMNS)

    def get_ledgers_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(self._settings.ledgers_sheet_name, LEDGER_COLUMNS)

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name,
            TRANSACTION_COLUMNS,
            rows=5000,
        )

    def get_messages_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(self._settings.messages_sheet_name, MESSAGE_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


class _SheetRecords:
    """
    Shared row plumbing for one worksheet keyed by an ID in column A.

    Subclasses provide `_sheet()` and the row converters.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        raise NotImplementedError

    def _data_rows(self) -> list[list]:
        """All non-empty rows, header excluded."""
        return [row for row in self._sheet().get_all_values()[1:] if row and row[0]]

    def _find_row(self, record_id: UUID) -> tuple[Optional[int], Optional[list]]:
        """Return (1-based sheet row index, row) for an ID."""
        all_rows = self._sheet().get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
            if row and row[0] == str(record_id):
                return idx, row
        return None, None

    def _replace_row(self, record_id: UUID, new_row: list, label: str) -> bool:
        sheet = self._sheet()
        idx, _ = self._find_row(record_id)
        if idx is None:
            raise RecordNotFoundError(f"{label} not found: {record_id}")
        # One RAW write per row: nothing is re-parsed as a formula or number
        sheet.update(range_name=f"A{idx}", values=[new_row], value_input_option="RAW")
        return True

    def _delete_row(self, record_id: UUID) -> bool:
        idx, _ = self._find_row(record_id)
        if idx is None:
            return False
        self._sheet().delete_rows(idx)
        return True


class GoogleSheetsUserStorage(_SheetRecords, UserStorageInterface):
    """Users, one per row."""

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_users_sheet()

    def _user_to_row(self, user: User) -> list:
        return [
            str(user.id),
            user.name,
            user.email,
            user.role.value,
            user.password_hash or "",
            user.external_id or "",
            str(user.pending),
            user.invite_token or "",
            user.created_at.isoformat(),
        ]

    def _row_to_user(self, row: list) -> User:
        return User(
            id=UUID(_cell(row, 0)),
            name=_cell(row, 1),
            email=_cell(row, 2),
            role=GlobalRole(_cell(row, 3, GlobalRole.USER.value)),
            password_hash=_cell(row, 4) or None,
            external_id=_cell(row, 5) or None,
            pending=_cell(row, 6).lower() == "true",
            invite_token=_cell(row, 7) or None,
            created_at=datetime.fromisoformat(_cell(row, 8)),
        )

    @retry(**_WRITE_RETRY)
    async def save_user(self, user: User) -> bool:
        if await self.get_user_by_email(user.email) is not None:
            raise DuplicateError(f"User already exists: {user.email}")
        try:
            self._sheet().append_row(self._user_to_row(user), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save user: {e}")

    async def get_user_by_id(self, user_id: UserId) -> Optional[User]:
        try:
            _, row = self._find_row(user_id)
            return self._row_to_user(row) if row else None
        except Exception as e:
            raise StorageError(f"Failed to get user: {e}")

    async def get_user_by_email(self, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        try:
            for row in self._data_rows():
                if _cell(row, 2).lower() == wanted:
                    return self._row_to_user(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get user: {e}")

    async def get_users_by_ids(self, user_ids: set[UserId]) -> dict[UserId, User]:
        wanted = {str(user_id) for user_id in user_ids}
        try:
            found = {}
            for row in self._data_rows():
                if row[0] in wanted:
                    user = self._row_to_user(row)
                    found[user.id] = user
            return found
        except Exception as e:
            raise StorageError(f"Failed to get users: {e}")

    async def update_user(self, user: User) -> bool:
        try:
            return self._replace_row(user.id, self._user_to_row(user), "User")
        except RecordNotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update user: {e}")

    async def delete_user(self, user_id: UserId) -> bool:
        try:
            return self._delete_row(user_id)
        except Exception as e:
            raise StorageError(f"Failed to delete user: {e}")

    async def list_users(self) -> list[User]:
        try:
            users = []
            for row in self._data_rows():
                try:
                    users.append(self._row_to_user(row))
                except ValueError:
                    continue  # Skip malformed rows
            return users
        except Exception as e:
            raise StorageError(f"Failed to list users: {e}")


class GoogleSheetsLedgerStorage(_SheetRecords, LedgerStorageInterface):
    """Ledgers, one per row, permissions as a JSON column."""

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_ledgers_sheet()

    def _ledger_to_row(self, ledger: Ledger) -> list:
        return [
            str(ledger.id),
            ledger.name,
            str(ledger.owner),
            ledger.currency.value,
            ledger.description or "",
            json.dumps([entry.model_dump(mode="json") for entry in ledger.permissions]),
            str(ledger.created_by) if ledger.created_by else "",
            ledger.created_at.isoformat(),
        ]

    def _row_to_ledger(self, row: list) -> Ledger:
        permissions = []
        permissions_json = _cell(row, 5)
        if permissions_json:
            permissions = [
                PermissionEntry.model_validate(entry)
                for entry in json.loads(permissions_json)
            ]

        return Ledger(
            id=UUID(_cell(row, 0)),
            name=_cell(row, 1),
            owner=UUID(_cell(row, 2)),
            currency=Currency(_cell(row, 3, Currency.USD.value)),
            description=_cell(row, 4) or None,
            permissions=permissions,
            created_by=_optional_uuid(_cell(row, 6)),
            created_at=datetime.fromisoformat(_cell(row, 7)),
        )

    def _all_ledgers(self) -> list[Ledger]:
        ledgers = []
        for row in self._data_rows():
            try:
                ledgers.append(self._row_to_ledger(row))
            except ValueError:
                continue  # Skip malformed rows
        return ledgers

    @retry(**_WRITE_RETRY)
    async def save_ledger(self, ledger: Ledger) -> bool:
        try:
            self._sheet().append_row(self._ledger_to_row(ledger), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save ledger: {e}")

    async def get_ledger_by_id(self, ledger_id: LedgerId) -> Optional[Ledger]:
        try:
            _, row = self._find_row(ledger_id)
            return self._row_to_ledger(row) if row else None
        except Exception as e:
            raise StorageError(f"Failed to get ledger: {e}")

    async def update_ledger(self, ledger: Ledger) -> bool:
        try:
            return self._replace_row(ledger.id, self._ledger_to_row(ledger), "Ledger")
        except RecordNotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update ledger: {e}")

    async def delete_ledger(self, ledger_id: LedgerId) -> bool:
        try:
            return self._delete_row(ledger_id)
        except Exception as e:
            raise StorageError(f"Failed to delete ledger: {e}")

    async def list_ledgers(self) -> list[Ledger]:
        try:
            return self._all_ledgers()
        except Exception as e:
            raise StorageError(f"Failed to list ledgers: {e}")

    async def list_ledgers_for_user(self, user_id: UserId) -> list[Ledger]:
        try:
            return [ledger for ledger in self._all_ledgers() if ledger.is_visible_to(user_id)]
        except Exception as e:
            raise StorageError(f"Failed to list ledgers: {e}")


class GoogleSheetsTransactionStorage(_SheetRecords, TransactionStorageInterface):
    """Transactions, one per row, appended in insertion order."""

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_transactions_sheet()

    def _transaction_to_row(self, transaction: Transaction) -> list:
        return [
            str(transaction.id),
            str(transaction.ledger_id),
            transaction.date.isoformat(),
            transaction.description,
            str(transaction.amount),
            str(transaction.created_by) if transaction.created_by else "",
            transaction.created_at.isoformat(),
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        return Transaction(
            id=UUID(_cell(row, 0)),
            ledger_id=UUID(_cell(row, 1)),
            date=date.fromisoformat(_cell(row, 2)),
            description=_cell(row, 3),
            amount=Decimal(_cell(row, 4)),
            created_by=_optional_uuid(_cell(row, 5)),
            created_at=datetime.fromisoformat(_cell(row, 6)),
        )

    @retry(**_WRITE_RETRY)
    async def save_transaction(self, transaction: Transaction) -> bool:
        try:
            self._sheet().append_row(
                self._transaction_to_row(transaction),
                value_input_option="RAW",
            )
            return True
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

    @retry(**_WRITE_RETRY)
    async def save_transactions(self, transactions: list[Transaction]) -> int:
        if not transactions:
            return 0
        try:
            self._sheet().append_rows(
                [self._transaction_to_row(t) for t in transactions],
                value_input_option="RAW",
            )
            return len(transactions)
        except Exception as e:
            raise StorageError(f"Failed to save transactions: {e}")

    async def get_transaction_by_id(
        self,
        transaction_id: TransactionId,
    ) -> Optional[Transaction]:
        try:
            _, row = self._find_row(transaction_id)
            return self._row_to_transaction(row) if row else None
        except Exception as e:
            raise StorageError(f"Failed to get transaction: {e}")

    async def update_transaction(self, transaction: Transaction) -> bool:
        try:
            return self._replace_row(
                transaction.id,
                self._transaction_to_row(transaction),
                "Transaction",
            )
        except RecordNotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}")

    async def delete_transaction(self, transaction_id: TransactionId) -> bool:
        try:
            return self._delete_row(transaction_id)
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")

    async def list_transactions(self, ledger_id: LedgerId) -> list[Transaction]:
        try:
            transactions = []
            for row in self._data_rows():
                if _cell(row, 1) != str(ledger_id):
                    continue
                try:
                    transactions.append(self._row_to_transaction(row))
                except ValueError:
                    continue  # Skip malformed rows
            return transactions
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")

    async def delete_transactions_for_ledger(self, ledger_id: LedgerId) -> int:
        try:
            sheet = self._sheet()
            all_rows = sheet.get_all_values()
            doomed = [
                idx
                for idx, row in enumerate(all_rows[1:], start=2)
                if row and _cell(row, 1) == str(ledger_id)
            ]
            # Bottom-up so earlier indices stay valid
            for idx in reversed(doomed):
                sheet.delete_rows(idx)
            return len(doomed)
        except Exception as e:
            raise StorageError(f"Failed to delete transactions: {e}")

    async def count_transactions(self, ledger_id: LedgerId) -> int:
        try:
            return sum(1 for row in self._data_rows() if _cell(row, 1) == str(ledger_id))
        except Exception as e:
            raise StorageError(f"Failed to count transactions: {e}")


class GoogleSheetsMessageStorage(_SheetRecords, MessageStorageInterface):
    """Contact-to-admin messages, one per row."""

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_messages_sheet()

    def _message_to_row(self, message: Message) -> list:
        return [
            str(message.id),
            str(message.sender),
            message.content,
            str(message.is_read),
            message.created_at.isoformat(),
        ]

    def _row_to_message(self, row: list) -> Message:
        return Message(
            id=UUID(_cell(row, 0)),
            sender=UUID(_cell(row, 1)),
            content=_cell(row, 2),
            is_read=_cell(row, 3).lower() == "true",
            created_at=datetime.fromisoformat(_cell(row, 4)),
        )

    @retry(**_WRITE_RETRY)
    async def save_message(self, message: Message) -> bool:
        try:
            self._sheet().append_row(self._message_to_row(message), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save message: {e}")

    async def get_message_by_id(self, message_id: MessageId) -> Optional[Message]:
        try:
            _, row = self._find_row(message_id)
            return self._row_to_message(row) if row else None
        except Exception as e:
            raise StorageError(f"Failed to get message: {e}")

    async def update_message(self, message: Message) -> bool:
        try:
            return self._replace_row(message.id, self._message_to_row(message), "Message")
        except RecordNotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update message: {e}")

    async def delete_message(self, message_id: MessageId) -> bool:
        try:
            return self._delete_row(message_id)
        except Exception as e:
            raise StorageError(f"Failed to delete message: {e}")

    async def list_messages(self) -> list[Message]:
        try:
            messages = []
            for row in self._data_rows():
                try:
                    messages.append(self._row_to_message(row))
                except ValueError:
                    continue
            return messages
        except Exception as e:
            raise StorageError(f"Failed to list messages: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            entity_type=_cell(row, 4) or None,
            entity_id=_optional_uuid(_cell(row, 5)),
            actor_id=_optional_uuid(_cell(row, 6)),
            description=_cell(row, 7),
            details=json.loads(_cell(row, 8)) if _cell(row, 8) else {},
            error_message=_cell(row, 9) or None,
        )

    def _all_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except ValueError:
                    continue
        return events

    @retry(**_WRITE_RETRY)
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        try:
            events = [
                e for e in self._all_events()
                if e.entity_type == entity_type and e.entity_id == entity_id
            ]
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._all_events()
            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
