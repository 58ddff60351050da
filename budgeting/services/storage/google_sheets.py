"""
Google Sheets storage.

One worksheet per entity: Accounts, Categories, Transactions and AuditLog.
Tabs are created with a header row the first time they are needed, so a
fresh, empty spreadsheet is enough to start.

Sheets has no queries or transactions. Reads fetch the whole tab and
filter in Python, which is fine at personal-budget volume; a category
list is rewritten cell by cell in its one row. Writes are retried with
tenacity. Failures surface as StorageError, except audit appends,
which report False.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from budgeting.config import GoogleSheetsSettings, get_settings
from budgeting.models.audit import AuditEvent, AuditEventType, AuditSeverity
from budgeting.models.budget import (
    Account,
    AccountType,
    Category,
    Transaction,
    TransactionSource,
)
from budgeting.services.storage.interface import (
    AccountStoreInterface,
    AuditStorageInterface,
    CategoryStoreInterface,
    ConnectionError,
    StorageError,
    TransactionStoreInterface,
    filter_transactions,
)

logger = structlog.get_logger(__name__)


ACCOUNT_COLUMNS = [
    "id",
    "user_id",
    "name",
    "type",
    "created_at",
]

CATEGORY_COLUMNS = [
    "user_id",
    "account_id",
    "updated_at",
    "categories_json",
]

TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "account_id",
    "date",
    "category",
    "subcategory",
    "amount",
    "description",
    "source",
    "created_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "user_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _cell(row: list, index: int, default: str = "") -> str:
    """Handle missing columns gracefully."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

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

    def get_sheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get or create a worksheet, writing the header row on creation."""
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
            logger.info("worksheet_created", title=title)
        return sheet

    def get_accounts_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.accounts_sheet_name, ACCOUNT_COLUMNS)

    def get_categories_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.categories_sheet_name, CATEGORY_COLUMNS)

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.transactions_sheet_name, TRANSACTION_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


class GoogleSheetsAccountStore(AccountStoreInterface):
    """Accounts as rows, one account per row."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _account_to_row(self, account: Account) -> list:
        return [
            str(account.id),
            account.user_id,
            account.name,
            account.type.value,
            account.created_at.isoformat(),
        ]

    def _row_to_account(self, row: list) -> Account:
        return Account(
            id=UUID(_cell(row, 0)),
            user_id=_cell(row, 1),
            name=_cell(row, 2),
            type=AccountType(_cell(row, 3)),
            created_at=datetime.fromisoformat(_cell(row, 4)),
        )

    async def list_accounts(self, user_id: str) -> list[Account]:
        try:
            sheet = self._client.get_accounts_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header

            accounts = []
            for row in all_rows:
                if not row or _cell(row, 1) != user_id:
                    continue
                try:
                    accounts.append(self._row_to_account(row))
                except (ValueError, TypeError):
                    logger.warning("skipping_malformed_row", sheet="accounts", row_id=_cell(row, 0))

            accounts.sort(key=lambda a: a.created_at)
            return accounts
        except Exception as e:
            raise StorageError(f"Failed to list accounts: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def create_account(self, account: Account) -> Account:
        try:
            sheet = self._client.get_accounts_sheet()
            sheet.append_row(self._account_to_row(account), value_input_option="RAW")
            return account
        except Exception as e:
            raise StorageError(f"Failed to save account: {e}")


class GoogleSheetsCategoryStore(CategoryStoreInterface):
    """
    Category lists as rows, one row per (user, account).

    The list itself is JSON-serialized into a single cell.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _find_row(self, all_rows: list[list], user_id: str, account_id: UUID) -> Optional[int]:
        """1-based sheet row number of the list, header included."""
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and _cell(row, 0) == user_id and _cell(row, 1) == str(account_id):
                return idx
        return None

    async def list_categories(self, user_id: str, account_id: UUID) -> list[Category]:
        try:
            sheet = self._client.get_categories_sheet()
            all_rows = sheet.get_all_values()
            idx = self._find_row(all_rows, user_id, account_id)
            if idx is None:
                return []

            raw = json.loads(_cell(all_rows[idx - 1], 3, "[]"))
            if not isinstance(raw, list):
                return []
            return [Category.from_raw(item) for item in raw]
        except json.JSONDecodeError as e:
            raise StorageError(f"Category list is not valid JSON: {e}")
        except Exception as e:
            raise StorageError(f"Failed to get categories: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_categories(
        self,
        user_id: str,
        account_id: UUID,
        categories: list[Category],
    ) -> bool:
        try:
            sheet = self._client.get_categories_sheet()
            payload = json.dumps(
                [Category.from_raw(c).model_dump() for c in categories],
                ensure_ascii=False,
            )
            new_row = [user_id, str(account_id), datetime.utcnow().isoformat(), payload]

            idx = self._find_row(sheet.get_all_values(), user_id, account_id)
            if idx is None:
                sheet.append_row(new_row, value_input_option="RAW")
            else:
                for col_idx, value in enumerate(new_row, start=1):
                    sheet.update_cell(idx, col_idx, value)
            return True
        except Exception as e:
            raise StorageError(f"Failed to save categories: {e}")


class GoogleSheetsTransactionStore(TransactionStoreInterface):
    """Transactions as rows, one transaction per row."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _transaction_to_row(self, tx: Transaction) -> list:
        return [
            str(tx.id),
            tx.user_id,
            str(tx.account_id),
            tx.transaction_date.isoformat(),
            tx.category,
            tx.subcategory,
            str(tx.amount),
            tx.description,
            tx.source.value,
            tx.created_at.isoformat(),
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        return Transaction(
            id=UUID(_cell(row, 0)),
            user_id=_cell(row, 1),
            account_id=UUID(_cell(row, 2)),
            transaction_date=date.fromisoformat(_cell(row, 3)),
            category=_cell(row, 4),
            subcategory=_cell(row, 5),
            amount=Decimal(_cell(row, 6, "0")),
            description=_cell(row, 7),
            source=TransactionSource(_cell(row, 8, TransactionSource.MANUAL.value)),
            created_at=datetime.fromisoformat(_cell(row, 9)),
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def create_transaction(self, transaction: Transaction) -> Transaction:
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.append_row(self._transaction_to_row(transaction), value_input_option="RAW")
            return transaction
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

    async def list_transactions(
        self,
        user_id: str,
        account_id: Optional[UUID] = None,
        categories: Optional[list[str]] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        min_amount: Optional[Decimal] = None,
        max_amount: Optional[Decimal] = None,
    ) -> list[Transaction]:
        try:
            sheet = self._client.get_transactions_sheet()
            all_rows = sheet.get_all_values()[1:]

            transactions = []
            for row in all_rows:
                if not row or not row[0] or _cell(row, 1) != user_id:
                    continue
                try:
                    transactions.append(self._row_to_transaction(row))
                except (ArithmeticError, ValueError, TypeError):
                    logger.warning("skipping_malformed_row", sheet="transactions", row_id=row[0])
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")

        return filter_transactions(
            transactions,
            user_id=user_id,
            account_id=account_id,
            categories=categories,
            date_from=date_from,
            date_to=date_to,
            min_amount=min_amount,
            max_amount=max_amount,
        )


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            entity_type=_cell(row, 4) or None,
            entity_id=UUID(_cell(row, 5)) if _cell(row, 5) else None,
            user_id=_cell(row, 6) or None,
            correlation_id=UUID(_cell(row, 7)) if _cell(row, 7) else None,
            description=_cell(row, 8),
            details=json.loads(_cell(row, 9)) if _cell(row, 9) else {},
            error_message=_cell(row, 10) or None,
            is_user_action=_cell(row, 11).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging should not break the main flow
            logger.error("audit_append_failed", error=str(e), event_id=str(event.event_id))
            return False

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]

            events = []
            for row in all_rows:
                if not row or not row[0]:
                    continue
                try:
                    events.append(self._row_to_event(row))
                except (ValueError, TypeError):
                    continue

            # Sort newest first
            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
