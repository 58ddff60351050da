"""
Tests for Personal Budgeting

Test strategy:
1. Unit tests for individual components (models, extractor, validator)
2. Integration tests for flows (with in-memory storage)
3. No real API calls in tests (use fakes)
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from budgeting.models import (
    DEFAULT_CATEGORIES_BY_TYPE,
    Account,
    AccountType,
    Category,
    CategoryCreate,
    DashboardFilters,
    ParsedTransaction,
    Transaction,
    TransactionSource,
    ValidationIssue,
    ValidationResult,
    get_default_categories,
)
from budgeting.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestCategoryModels:
    """Tests for category-related Pydantic models."""

    def test_category_creation(self):
        """Test Category model creation."""
        category = Category(name="Car", icon="Car", color="#ff6347", subs=["Fuel"])
        assert category.name == "Car"
        assert category.subs == ["Fuel"]

    def test_category_strips_whitespace(self):
        """Test that whitespace is stripped from labels."""
        category = Category(name="  Car  ", subs=["  Fuel "])
        assert category.name == "Car"
        assert category.subs == ["Fuel"]

    def test_category_coerces_missing_fields(self):
        """Missing labels become empty strings, missing subs an empty list."""
        category = Category(name=None, subs=None)
        assert category.name == ""
        assert category.icon == ""
        assert category.subs == []

    def test_category_subs_drop_junk_and_duplicates(self):
        category = Category(name="Home", subs=["Water", None, "Water", 42])
        assert category.subs == ["Water", "42"]

    def test_from_raw_never_raises(self):
        assert Category.from_raw("nonsense") == Category()
        assert Category.from_raw(None) == Category()
        assert Category.from_raw({"name": "Rent"}).name == "Rent"

    def test_from_raw_passes_models_through(self):
        category = Category(name="Rent")
        assert Category.from_raw(category) is category

    def test_category_create_requires_presentation_fields(self):
        """Test that created categories need name, icon and color."""
        with pytest.raises(ValueError):
            CategoryCreate(name="Pets", icon="", color="#000")

    def test_category_create_to_category(self):
        created = CategoryCreate(name="Pets", icon="🐶", color="#000", subs=["Vet"])
        assert created.to_category() == Category(name="Pets", icon="🐶", color="#000", subs=["Vet"])


class TestTransactionModels:
    """Tests for parsed and confirmed transactions."""

    def test_parsed_transaction_defaults(self):
        parsed = ParsedTransaction()
        assert parsed.amount == Decimal("0.00")
        assert parsed.category == ""
        assert parsed.subcategory == ""

    def test_parsed_transaction_rejects_negative_amount(self):
        """Test that a guess can't carry a negative amount."""
        with pytest.raises(ValueError):
            ParsedTransaction(amount=Decimal("-1.00"))

    def test_parsed_transaction_rejects_sub_cent_precision(self):
        with pytest.raises(ValueError):
            ParsedTransaction(amount=Decimal("1.234"))

    def test_account_creation(self):
        account = Account(user_id="user-1", name="Daily", type=AccountType.EXPENSE)
        assert account.type == AccountType.EXPENSE
        assert isinstance(account.created_at, datetime)

    def test_account_requires_name(self):
        with pytest.raises(ValueError):
            Account(user_id="user-1", name="   ", type="expense")

    def test_transaction_amount_is_signed(self):
        """Test that confirmed transactions keep the sign."""
        transaction = Transaction(
            user_id="user-1",
            account_id=uuid4(),
            transaction_date=date(2024, 3, 1),
            amount=Decimal("-40.00"),
        )
        assert transaction.amount == Decimal("-40.00")
        assert transaction.source == TransactionSource.MANUAL

    def test_transaction_keeps_long_text_verbatim(self):
        """Receipt text of any length is stored as entered."""
        text = "  SPINNEYS\n" + "ITEM 1.00\n" * 300
        transaction = Transaction(
            user_id="user-1",
            account_id=uuid4(),
            transaction_date=date(2024, 3, 1),
            amount=Decimal("1.00"),
            category="C" * 150,
            description=text,
        )
        assert transaction.description == text
        assert len(transaction.category) == 150


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.TEXT_PARSED,
            description="Parsed voice input",
        )
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            user_id="user-1",
            description="Test error",
            error_message="Something broke",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "system_error"
        assert log_dict["severity"] == "error"
        assert log_dict["user_id"] == "user-1"
        assert log_dict["error_message"] == "Something broke"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            description="Saved",
            details={"amount": "-40.00"},
        )
        row = event.to_sheets_row()
        assert len(row) == 12
        assert row[2] == "transaction_saved"
        assert row[9] == '{"amount": "-40.00"}'
        assert row[11] == "False"

    def test_audit_event_builder_text_parsed(self):
        """Test AuditEventBuilder for text parsing."""
        correlation_id = uuid4()
        event = AuditEventBuilder.text_parsed(
            user_id="user-1",
            source="voice",
            amount="4.50",
            category="Shopping",
            subcategory="Supermarket",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.TEXT_PARSED
        assert event.correlation_id == correlation_id
        assert event.details["category"] == "Shopping"

    def test_audit_event_builder_user_confirmed(self):
        """Test AuditEventBuilder for user confirmation."""
        transaction_id = uuid4()
        event = AuditEventBuilder.user_confirmed(
            transaction_id=transaction_id,
            user_id="user-1",
        )
        assert event.event_type == AuditEventType.USER_CONFIRMED
        assert event.entity_id == transaction_id
        assert event.is_user_action is True

    def test_audit_event_builder_save_failed(self):
        event = AuditEventBuilder.save_failed(
            user_id="user-1",
            entity_type="transaction",
            error_message="sheet offline",
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "sheet offline"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            is_valid=False,
            can_save=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="No amount",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test result with only warnings."""
        result = ValidationResult(
            is_valid=False,
            can_save=True,
            issues=[
                ValidationIssue(
                    field="description",
                    issue_type="missing",
                    message="Description is empty",
                    severity="warning",
                ),
            ],
            warnings=["Description is empty"],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_validation_issue_severity_pattern(self):
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="x", message="x", severity="fatal")


class TestDashboardFilters:
    """Tests for dashboard filter parsing."""

    def test_comma_separated_categories(self):
        filters = DashboardFilters(categories="Car, Home,,")
        assert filters.categories == ["Car", "Home"]

    def test_blank_categories_mean_no_filter(self):
        assert DashboardFilters(categories=" , ").categories is None
        assert DashboardFilters().categories is None


class TestDefaultCategories:
    """Tests for default category sets."""

    def test_every_account_type_has_defaults(self):
        """Test that every account type has a default set."""
        for account_type in AccountType:
            assert account_type in DEFAULT_CATEGORIES_BY_TYPE

    def test_expense_defaults(self):
        names = [c.name for c in get_default_categories(AccountType.EXPENSE)]
        assert names == [
            "Shopping", "Car", "Home", "Entertainment",
            "Personal", "Gifts", "Healthcare", "Travel",
        ]

    def test_income_defaults_have_no_subs(self):
        for category in get_default_categories(AccountType.INCOME):
            assert category.subs == []

    def test_defaults_are_fresh_copies(self):
        first = get_default_categories(AccountType.EXPENSE)
        first[0].subs.append("Changed")
        second = get_default_categories(AccountType.EXPENSE)
        assert "Changed" not in second[0].subs


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
