"""
Integration tests for the flows, wired to in-memory storage.

The flows are async; each test drives them with asyncio.run.
"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from budgeting.audit import AuditLogger
from budgeting.config import ExtractorSettings
from budgeting.models import (
    AccountType,
    AuditEventType,
    CategoryCreate,
    DashboardFilters,
    ParsedTransaction,
    TransactionSource,
)
from budgeting.orchestrator import (
    AccountFlow,
    CategoryFlow,
    DashboardFlow,
    QuickEntryFlow,
    create_app_components,
)
from budgeting.services.storage import (
    DuplicateError,
    InMemoryAccountStore,
    InMemoryAuditStorage,
    InMemoryCategoryStore,
    InMemoryTransactionStore,
    NotFoundError,
    StorageError,
)


def run(coro):
    return asyncio.run(coro)


class FailingTransactionStore(InMemoryTransactionStore):
    async def create_transaction(self, transaction):
        raise StorageError("sheet offline")


class FailingCategoryStore(InMemoryCategoryStore):
    async def list_categories(self, user_id, account_id):
        raise StorageError("sheet offline")


@pytest.fixture
def stores():
    return {
        "accounts": InMemoryAccountStore(),
        "categories": InMemoryCategoryStore(),
        "transactions": InMemoryTransactionStore(),
        "audit": InMemoryAuditStorage(),
    }


@pytest.fixture
def flows(stores):
    audit_logger = AuditLogger(stores["audit"])
    return {
        "quick": QuickEntryFlow(
            category_store=stores["categories"],
            transaction_store=stores["transactions"],
            audit_logger=audit_logger,
            extractor_settings=ExtractorSettings(),
        ),
        "categories": CategoryFlow(stores["categories"], audit_logger),
        "accounts": AccountFlow(stores["accounts"], audit_logger),
        "dashboard": DashboardFlow(stores["transactions"], stores["accounts"]),
    }


@pytest.fixture
def expense_account(flows):
    return run(flows["accounts"].create_account("user-1", "Daily", AccountType.EXPENSE))


@pytest.fixture
def income_account(flows):
    return run(flows["accounts"].create_account("user-1", "Job", AccountType.INCOME))


def event_types(stores):
    events = run(stores["audit"].get_recent_events())
    return {event.event_type for event in events}


class TestQuickEntryFlow:
    """Tests for parse -> validate -> confirm -> save."""

    def test_parse_uses_default_categories(self, flows, expense_account):
        parsed = run(flows["quick"].parse_text("fuel 40", "user-1", expense_account))
        assert parsed.amount == Decimal("40.00")
        assert (parsed.category, parsed.subcategory) == ("Car", "Fuel")

    def test_parse_uses_saved_categories(self, flows, stores, expense_account):
        run(flows["categories"].save_categories(
            "user-1", expense_account, [{"name": "Pets", "subs": ["Vet"]}]
        ))
        parsed = run(flows["quick"].parse_text("vet 80", "user-1", expense_account))
        assert (parsed.category, parsed.subcategory) == ("Pets", "Vet")

    def test_unparseable_text_is_audited(self, flows, stores, expense_account):
        parsed = run(flows["quick"].parse_text("", "user-1", expense_account))
        assert parsed is None
        assert AuditEventType.TEXT_NOT_PARSED in event_types(stores)

    def test_synonyms_can_be_switched_off(self, stores, expense_account):
        quick = QuickEntryFlow(
            category_store=stores["categories"],
            extractor_settings=ExtractorSettings(use_builtin_synonyms=False),
        )
        parsed = run(quick.parse_text("petrol 30", "user-1", expense_account))
        assert parsed.category == ""

    def test_receipt_total_overrides_sum(self, flows, stores, expense_account):
        text = "SPINNEYS\nMilk 2.50\nBread 1.25\nTotal USD 3.75"
        parsed = run(flows["quick"].parse_receipt_text(text, "user-1", expense_account))
        assert parsed.amount == Decimal("3.75")
        assert parsed.category == "Shopping"
        assert AuditEventType.RECEIPT_TEMPLATE_MATCHED in event_types(stores)

    def test_long_receipt_goes_from_parse_to_save(self, flows, stores, expense_account):
        """A receipt well over a kilobyte validates and is stored verbatim."""
        text = "SPINNEYS\n" + "ITEM 1.00\n" * 150 + "Rate USD 89500\nTotal USD 12.50\n"
        assert len(text) > 1500
        quick = flows["quick"]

        parsed = run(quick.parse_receipt_text(text, "user-1", expense_account))
        assert parsed.amount == Decimal("12.50")
        assert (parsed.category, parsed.subcategory) == ("Shopping", "Supermarket")

        categories = run(quick.load_categories("user-1", expense_account))
        result, _ = run(quick.validate(parsed, categories, expense_account, date.today()))
        assert result.can_save

        saved = run(quick.confirm_and_save(
            parsed, "user-1", expense_account, date.today(), TransactionSource.RECEIPT
        ))
        assert saved.amount == Decimal("-12.50")
        assert saved.description == text
        stored = run(stores["transactions"].list_transactions("user-1"))
        assert stored[0].description == text

    @pytest.mark.parametrize("text", [
        "xq Rate USD Total USD 0",
        "xq Rate USD Total USD",
    ])
    def test_receipt_without_amount_or_category_is_not_parsed(self, flows, expense_account, text):
        """A zero or unreadable total does not turn an empty guess into one."""
        assert run(flows["quick"].parse_receipt_text(text, "user-1", expense_account)) is None

    def test_unknown_receipt_uses_generic_amount(self, flows, expense_account):
        parsed = run(flows["quick"].parse_receipt_text("fuel 20 5", "user-1", expense_account))
        assert parsed.amount == Decimal("25.00")

    def test_validate(self, flows, stores, expense_account):
        categories = run(flows["quick"].load_categories("user-1", expense_account))
        parsed = ParsedTransaction(amount=Decimal("40.00"), category="Pets", description="x")
        result, message = run(flows["quick"].validate(parsed, categories, expense_account))
        assert not result.can_save
        assert "Pets" in message
        assert AuditEventType.VALIDATION_FAILED in event_types(stores)

    def test_expense_saved_negative(self, flows, stores, expense_account):
        parsed = ParsedTransaction(
            amount=Decimal("40.00"), category="Car", subcategory="Fuel", description="fuel 40"
        )
        saved = run(flows["quick"].confirm_and_save(
            parsed, "user-1", expense_account, date(2024, 3, 1), TransactionSource.VOICE
        ))
        assert saved.amount == Decimal("-40.00")
        assert saved.source == TransactionSource.VOICE

        stored = run(stores["transactions"].list_transactions("user-1"))
        assert [t.id for t in stored] == [saved.id]
        assert {
            AuditEventType.USER_CONFIRMED,
            AuditEventType.TRANSACTION_SAVED,
        } <= event_types(stores)

    def test_income_saved_positive(self, flows, income_account):
        parsed = ParsedTransaction(amount=Decimal("1500.00"), category="Salary")
        saved = run(flows["quick"].confirm_and_save(parsed, "user-1", income_account))
        assert saved.amount == Decimal("1500.00")
        assert saved.transaction_date == date.today()

    def test_cannot_save_to_someone_elses_account(self, flows, expense_account):
        parsed = ParsedTransaction(amount=Decimal("1.00"), category="Car")
        with pytest.raises(NotFoundError):
            run(flows["quick"].confirm_and_save(parsed, "user-2", expense_account))

    def test_save_failure_is_audited_and_raised(self, stores, expense_account):
        quick = QuickEntryFlow(
            transaction_store=FailingTransactionStore(),
            audit_logger=AuditLogger(stores["audit"]),
            extractor_settings=ExtractorSettings(),
        )
        parsed = ParsedTransaction(amount=Decimal("1.00"), category="Car")
        with pytest.raises(StorageError):
            run(quick.confirm_and_save(parsed, "user-1", expense_account))
        assert AuditEventType.SAVE_FAILED in event_types(stores)

    def test_category_load_failure_is_audited_and_raised(self, stores, expense_account):
        quick = QuickEntryFlow(
            category_store=FailingCategoryStore(),
            audit_logger=AuditLogger(stores["audit"]),
            extractor_settings=ExtractorSettings(),
        )
        with pytest.raises(StorageError):
            run(quick.parse_text("fuel 40", "user-1", expense_account))
        assert AuditEventType.EXTERNAL_SERVICE_ERROR in event_types(stores)

    def test_reject_is_audited(self, flows, stores):
        run(flows["quick"].reject(ParsedTransaction(), "user-1", reason="wrong"))
        assert AuditEventType.USER_REJECTED in event_types(stores)


class TestCategoryFlow:
    """Tests for category management."""

    def test_defaults_until_saved(self, flows, expense_account, income_account):
        expense = run(flows["categories"].list_categories("user-1", expense_account))
        income = run(flows["categories"].list_categories("user-1", income_account))
        assert expense[0].name == "Shopping"
        assert [c.name for c in income] == ["Salary", "Bonus", "Gift"]

    def test_create_category(self, flows, expense_account):
        new = CategoryCreate(name="Pets", icon="🐶", color="#000", subs=["Vet"])
        categories = run(flows["categories"].create_category("user-1", expense_account, new))
        assert categories[-1].name == "Pets"

        reloaded = run(flows["categories"].list_categories("user-1", expense_account))
        assert [c.name for c in reloaded] == [c.name for c in categories]

    def test_create_duplicate_category(self, flows, expense_account):
        new = CategoryCreate(name="Car", icon="🚗", color="#000")
        with pytest.raises(DuplicateError):
            run(flows["categories"].create_category("user-1", expense_account, new))

    def test_add_subcategory(self, flows, expense_account):
        added = run(flows["categories"].add_subcategory("user-1", expense_account, "Car", "Parking"))
        assert added is True
        categories = run(flows["categories"].list_categories("user-1", expense_account))
        car = next(c for c in categories if c.name == "Car")
        assert car.subs[-1] == "Parking"

    @pytest.mark.parametrize("category,sub", [
        ("Car", "Fuel"),
        ("Pets", "Vet"),
        ("Car", "   "),
    ])
    def test_add_subcategory_no_op(self, flows, stores, expense_account, category, sub):
        added = run(flows["categories"].add_subcategory("user-1", expense_account, category, sub))
        assert added is False
        assert run(stores["categories"].list_categories("user-1", expense_account.id)) == []

    def test_lists_are_per_account(self, flows, expense_account):
        other = run(flows["accounts"].create_account("user-1", "Trip", AccountType.EXPENSE))
        run(flows["categories"].save_categories("user-1", expense_account, [{"name": "Only"}]))
        assert run(flows["categories"].list_categories("user-1", other))[0].name == "Shopping"


class TestAccountFlow:
    """Tests for accounts."""

    def test_accounts_are_per_user(self, flows, expense_account):
        run(flows["accounts"].create_account("user-2", "Other", AccountType.EXPENSE))
        accounts = run(flows["accounts"].list_accounts("user-1"))
        assert [a.id for a in accounts] == [expense_account.id]

    def test_get_account(self, flows, expense_account):
        assert run(flows["accounts"].get_account("user-1", expense_account.id)) == expense_account
        with pytest.raises(NotFoundError):
            run(flows["accounts"].get_account("user-2", expense_account.id))
        with pytest.raises(NotFoundError):
            run(flows["accounts"].get_account("user-1", uuid4()))


class TestDashboardFlow:
    """Tests for the dashboard summary."""

    def test_summarise_with_filters(self, flows, expense_account, income_account):
        quick = flows["quick"]
        for amount, category, day in [
            ("40.00", "Car", date(2024, 3, 1)),
            ("10.00", "Home", date(2024, 3, 2)),
        ]:
            run(quick.confirm_and_save(
                ParsedTransaction(amount=Decimal(amount), category=category),
                "user-1", expense_account, day,
            ))
        run(quick.confirm_and_save(
            ParsedTransaction(amount=Decimal("1500.00"), category="Salary"),
            "user-1", income_account, date(2024, 3, 5),
        ))

        summary = run(flows["dashboard"].summarise("user-1"))
        assert summary.totals.total_spent == Decimal("50.00")
        assert summary.totals.total_income == Decimal("1500.00")
        assert summary.grouped_transactions[0].day == date(2024, 3, 5)
        assert len(summary.accounts) == 2

        filtered = run(flows["dashboard"].summarise(
            "user-1", DashboardFilters(account_id=expense_account.id, categories="Car")
        ))
        assert filtered.totals.transactions_count == 1
        assert filtered.top_categories[0].category == "Car"

    def test_summarise_nothing(self, flows):
        summary = run(flows["dashboard"].summarise("nobody"))
        assert summary.totals.transactions_count == 0


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_in_memory_components(self):
        quick, categories, accounts, dashboard, sheets_client = create_app_components(
            use_storage=False
        )
        assert sheets_client is None
        account = run(accounts.create_account("user-1", "Daily", AccountType.EXPENSE))
        assert run(accounts.list_accounts("user-1")) == [account]

    def test_falls_back_when_sheets_not_configured(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        *_, sheets_client = create_app_components(use_storage=True)
        assert sheets_client is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
