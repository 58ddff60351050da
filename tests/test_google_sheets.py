"""
Tests for the Google Sheets storage backend.

No real API calls: worksheets are replaced by in-process fakes that keep
rows as lists of strings, the way gspread returns them.
"""

import asyncio
import json
import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import gspread

from budgeting.config import GoogleSheetsSettings
from budgeting.models import Account, AccountType, Category, Transaction, TransactionSource
from budgeting.models.audit import AuditEvent, AuditEventType
from budgeting.services.storage import (
    GoogleSheetsAccountStore,
    GoogleSheetsAuditStorage,
    GoogleSheetsCategoryStore,
    GoogleSheetsClient,
    GoogleSheetsTransactionStore,
    StorageError,
)
from budgeting.services.storage.google_sheets import (
    ACCOUNT_COLUMNS,
    AUDIT_COLUMNS,
    CATEGORY_COLUMNS,
    TRANSACTION_COLUMNS,
)


def run(coro):
    return asyncio.run(coro)


class FakeWorksheet:
    def __init__(self, header):
        self.rows = [list(header)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.rows.append(["" if v is None else str(v) for v in row])

    def update_cell(self, row, col, value):
        self.rows[row - 1][col - 1] = str(value)


class BrokenWorksheet(FakeWorksheet):
    def get_all_values(self):
        raise RuntimeError("quota exceeded")

    def append_row(self, row, value_input_option=None):
        raise RuntimeError("quota exceeded")


class FakeClient:
    """Stands in for GoogleSheetsClient; hands out one fake sheet per tab."""

    def __init__(self, sheet_class=FakeWorksheet):
        self.accounts = sheet_class(ACCOUNT_COLUMNS)
        self.categories = sheet_class(CATEGORY_COLUMNS)
        self.transactions = sheet_class(TRANSACTION_COLUMNS)
        self.audit = sheet_class(AUDIT_COLUMNS)

    def get_accounts_sheet(self):
        return self.accounts

    def get_categories_sheet(self):
        return self.categories

    def get_transactions_sheet(self):
        return self.transactions

    def get_audit_sheet(self):
        return self.audit


class FakeSpreadsheet:
    def __init__(self):
        self.sheets = {}

    def worksheet(self, title):
        if title not in self.sheets:
            raise gspread.WorksheetNotFound(title)
        return self.sheets[title]

    def add_worksheet(self, title, rows, cols):
        sheet = FakeWorksheet([])
        sheet.rows = []
        self.sheets[title] = sheet
        return sheet


@pytest.fixture
def client():
    return FakeClient()


def make_transaction(user_id, account_id, amount, day, category="Car"):
    return Transaction(
        user_id=user_id,
        account_id=account_id,
        transaction_date=day,
        category=category,
        amount=Decimal(amount),
        description="note",
        source=TransactionSource.VOICE,
    )


class TestGoogleSheetsClient:
    """Tests for worksheet lookup."""

    def test_missing_worksheet_is_created_with_header(self, tmp_path):
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}")
        sheets_client = GoogleSheetsClient(GoogleSheetsSettings(
            credentials_path=str(credentials),
            spreadsheet_id="sheet-id",
        ))
        spreadsheet = FakeSpreadsheet()
        sheets_client._spreadsheet = spreadsheet

        sheet = sheets_client.get_accounts_sheet()
        assert sheet.get_all_values() == [ACCOUNT_COLUMNS]

        # Second lookup reuses the existing tab
        assert sheets_client.get_accounts_sheet() is sheet
        assert list(spreadsheet.sheets) == ["Accounts"]


class TestAccountStore:
    """Tests for accounts stored as rows."""

    def test_round_trip(self, client):
        store = GoogleSheetsAccountStore(client)
        account = Account(user_id="user-1", name="Daily", type=AccountType.EXPENSE)
        run(store.create_account(account))
        run(store.create_account(Account(user_id="user-2", name="Other", type=AccountType.INCOME)))

        assert run(store.list_accounts("user-1")) == [account]

    def test_malformed_rows_are_skipped(self, client):
        client.accounts.rows.append(["not-a-uuid", "user-1", "Bad", "expense", "x"])
        store = GoogleSheetsAccountStore(client)
        assert run(store.list_accounts("user-1")) == []

    def test_read_failure_raises_storage_error(self):
        store = GoogleSheetsAccountStore(FakeClient(BrokenWorksheet))
        with pytest.raises(StorageError):
            run(store.list_accounts("user-1"))


class TestCategoryStore:
    """Tests for per-account category lists stored as JSON."""

    def test_nothing_saved(self, client):
        store = GoogleSheetsCategoryStore(client)
        assert run(store.list_categories("user-1", uuid4())) == []

    def test_save_then_update_in_place(self, client):
        store = GoogleSheetsCategoryStore(client)
        account_id = uuid4()

        run(store.save_categories("user-1", account_id, [Category(name="Car", subs=["Fuel"])]))
        run(store.save_categories("user-1", account_id, [
            {"name": "Car", "subs": ["Fuel", "Parking"]},
            {"name": "Café"},
        ]))

        assert len(client.categories.rows) == 2
        categories = run(store.list_categories("user-1", account_id))
        assert [c.name for c in categories] == ["Car", "Café"]
        assert categories[0].subs == ["Fuel", "Parking"]

    def test_lists_are_keyed_by_user_and_account(self, client):
        store = GoogleSheetsCategoryStore(client)
        account_id = uuid4()
        run(store.save_categories("user-1", account_id, [Category(name="Car")]))
        assert run(store.list_categories("user-2", account_id)) == []

    def test_corrupt_json_raises_storage_error(self, client):
        account_id = uuid4()
        client.categories.rows.append(["user-1", str(account_id), "", "{not json"])
        store = GoogleSheetsCategoryStore(client)
        with pytest.raises(StorageError):
            run(store.list_categories("user-1", account_id))

    def test_non_list_json_means_nothing_saved(self, client):
        account_id = uuid4()
        client.categories.rows.append(["user-1", str(account_id), "", json.dumps({"a": 1})])
        store = GoogleSheetsCategoryStore(client)
        assert run(store.list_categories("user-1", account_id)) == []


class TestTransactionStore:
    """Tests for transactions stored as rows."""

    def test_round_trip_with_filters(self, client):
        store = GoogleSheetsTransactionStore(client)
        account_id = uuid4()
        fuel = make_transaction("user-1", account_id, "-40.00", date(2024, 3, 1))
        rent = make_transaction("user-1", account_id, "-900.00", date(2024, 3, 2), category="Home")
        run(store.create_transaction(fuel))
        run(store.create_transaction(rent))
        run(store.create_transaction(make_transaction("user-2", account_id, "-1.00", date(2024, 3, 1))))

        everything = run(store.list_transactions("user-1"))
        assert {t.id for t in everything} == {fuel.id, rent.id}

        loaded = run(store.list_transactions("user-1", categories=["Car"]))
        assert loaded == [fuel]
        assert loaded[0].amount == Decimal("-40.00")
        assert loaded[0].source == TransactionSource.VOICE

        after = run(store.list_transactions("user-1", date_from=date(2024, 3, 2)))
        assert [t.id for t in after] == [rent.id]

    def test_malformed_rows_are_skipped(self, client):
        client.transactions.rows.append([str(uuid4()), "user-1", "bad", "2024-03-01"])
        store = GoogleSheetsTransactionStore(client)
        assert run(store.list_transactions("user-1")) == []

    def test_read_failure_raises_storage_error(self):
        store = GoogleSheetsTransactionStore(FakeClient(BrokenWorksheet))
        with pytest.raises(StorageError):
            run(store.list_transactions("user-1"))


class TestAuditStorage:
    """Tests for the append-only audit sheet."""

    def test_round_trip_newest_first(self, client):
        storage = GoogleSheetsAuditStorage(client)
        older = AuditEvent(
            timestamp=datetime(2024, 3, 1, 9, 0),
            event_type=AuditEventType.TEXT_PARSED,
            description="parsed",
            details={"amount": "40.00"},
        )
        newer = AuditEvent(
            timestamp=datetime(2024, 3, 1, 10, 0),
            event_type=AuditEventType.USER_CONFIRMED,
            user_id="user-1",
            entity_id=uuid4(),
            description="confirmed",
            is_user_action=True,
        )
        assert run(storage.append_event(older))
        assert run(storage.append_event(newer))

        events = run(storage.get_recent_events())
        assert [e.event_id for e in events] == [newer.event_id, older.event_id]
        assert events[0].is_user_action is True
        assert events[1].details == {"amount": "40.00"}
        assert run(storage.get_recent_events(limit=1))[0].event_id == newer.event_id

    def test_append_failure_returns_false(self):
        storage = GoogleSheetsAuditStorage(FakeClient(BrokenWorksheet))
        event = AuditEvent(event_type=AuditEventType.SYSTEM_ERROR, description="x")
        assert run(storage.append_event(event)) is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
