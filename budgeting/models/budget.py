"""
Core Data Models for Personal Budgeting

These models define the schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Support the audit trail

DESIGN DECISION: Category lists come from user-edited JSON and are
COERCED (missing name -> "", missing subs -> []). Everything the user
confirms (accounts, transactions, new categories) is validated STRICTLY.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """
    Account kinds.

    The type decides the default category set and the sign of saved amounts.
    """
    INCOME = "income"
    EXPENSE = "expense"


class TransactionSource(str, Enum):
    """How a transaction entered the system."""
    MANUAL = "manual"
    VOICE = "voice"
    RECEIPT = "receipt"


# =============================================================================
# CATEGORY TAXONOMY
# =============================================================================

class Category(BaseModel):
    """
    A user-defined category with its ordered subcategories.

    `name` is the join key used everywhere; there is no surrogate id.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        default="",
        description="Unique display label"
    )
    icon: str = Field(
        default="",
        description="Icon name or emoji (presentation only)"
    )
    color: str = Field(
        default="",
        description="Hex / CSS color (presentation only)"
    )
    subs: list[str] = Field(
        default_factory=list,
        description="Ordered subcategory names, unique within the category"
    )

    @field_validator('name', 'icon', 'color', mode='before')
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        """Missing labels become empty strings instead of failing."""
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator('subs', mode='before')
    @classmethod
    def coerce_subs(cls, v: Any) -> list[str]:
        """Drop junk and duplicates, keep first-seen order."""
        if not isinstance(v, (list, tuple)):
            return []
        seen: list[str] = []
        for sub in v:
            if sub is None:
                continue
            label = (sub if isinstance(sub, str) else str(sub)).strip()
            if label not in seen:
                seen.append(label)
        return seen

    @classmethod
    def from_raw(cls, raw: Any) -> "Category":
        """
        Build a Category from whatever the store handed back.

        Never raises: anything that is not a mapping becomes an empty category.
        """
        if isinstance(raw, Category):
            return raw
        if not isinstance(raw, dict):
            return cls()
        return cls(
            name=raw.get("name"),
            icon=raw.get("icon"),
            color=raw.get("color"),
            subs=raw.get("subs"),
        )


class CategoryCreate(BaseModel):
    """
    A category created through category management.

    Unlike Category, every presentation field is required here.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(..., min_length=1, max_length=50)
    color: str = Field(..., min_length=1, max_length=30)
    subs: list[str] = Field(default_factory=list)

    def to_category(self) -> Category:
        return Category(
            name=self.name,
            icon=self.icon,
            color=self.color,
            subs=self.subs,
        )


# =============================================================================
# EXTRACTOR OUTPUT
# =============================================================================

class ParsedTransaction(BaseModel):
    """
    Best-effort structured guess produced from speech or OCR text.

    CRITICAL: This is PROPOSED data, NOT verified.
    The caller decides whether and how to save it.
    """

    amount: Annotated[
        Decimal,
        Field(ge=0, decimal_places=2, description="Extracted amount (0 when none found)")
    ] = Decimal("0.00")
    category: str = Field(
        default="",
        description="Matched category name, empty when unmatched"
    )
    subcategory: str = Field(
        default="",
        description="Matched subcategory name, empty when unmatched"
    )
    description: str = Field(
        default="",
        description="The original input text, verbatim"
    )


# =============================================================================
# ACCOUNTS AND TRANSACTIONS
# =============================================================================

class Account(BaseModel):
    """A user's income or expense account."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique account ID"
    )
    user_id: str = Field(
        ...,
        min_length=1,
        description="Opaque authenticated user identity"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Account display name"
    )
    type: AccountType = Field(
        ...,
        description="Income or expense"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the account was created"
    )


class Transaction(BaseModel):
    """
    A transaction that has been CONFIRMED by the user.

    CRITICAL: Only Transaction objects are persisted to storage.
    Amount is signed: negative = money spent, positive = money received.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    user_id: str = Field(..., min_length=1)
    account_id: UUID = Field(
        ...,
        description="Account this transaction belongs to"
    )
    transaction_date: date = Field(
        ...,
        description="Date the money moved"
    )
    category: str = ""
    subcategory: str = ""
    amount: Annotated[
        Decimal,
        Field(decimal_places=2, description="Signed amount")
    ]
    description: str = Field(
        default="",
        description="Free text, usually the recognised utterance or receipt text"
    )
    source: TransactionSource = Field(
        default=TransactionSource.MANUAL,
        description="How the transaction was entered"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the transaction was saved"
    )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'unknown_category', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating a candidate transaction before it is saved."""

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    is_valid: bool = Field(
        ...,
        description="No errors and no warnings"
    )
    can_save: bool = Field(
        ...,
        description="No error-level issues; warnings are allowed"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")


# =============================================================================
# DASHBOARD MODELS
# =============================================================================

class DashboardFilters(BaseModel):
    """Filters applied before aggregating transactions."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    account_id: Optional[UUID] = None
    categories: Optional[list[str]] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None

    @field_validator('categories', mode='before')
    @classmethod
    def split_categories(cls, v: Any) -> Optional[list[str]]:
        """Accept the comma-separated form used in query strings."""
        if v is None:
            return None
        if isinstance(v, str):
            v = v.split(",")
        cleaned = [str(c).strip() for c in v if str(c).strip()]
        return cleaned or None


class DashboardTotals(BaseModel):
    total_spent: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    net: Decimal = Decimal("0")
    transactions_count: int = Field(default=0, ge=0)


class CategoryTotal(BaseModel):
    category: str
    total: Decimal


class MonthlyTotal(BaseModel):
    month: str = Field(..., description="YYYY-MM")
    total: Decimal


class DayGroup(BaseModel):
    """Transactions of one calendar day."""

    day: date
    total: Decimal
    items: list[Transaction] = Field(default_factory=list)


class DashboardSummary(BaseModel):
    """Everything the dashboard page renders."""

    totals: DashboardTotals = Field(default_factory=DashboardTotals)
    top_categories: list[CategoryTotal] = Field(default_factory=list)
    monthly_series: list[MonthlyTotal] = Field(default_factory=list)
    grouped_transactions: list[DayGroup] = Field(default_factory=list)
    accounts: list[Account] = Field(default_factory=list)
    filters: DashboardFilters = Field(default_factory=DashboardFilters)
