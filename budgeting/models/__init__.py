"""
Data Models Package

This package contains all Pydantic models used in the Personal Budgeting system.
All data flowing through the system must conform to these schemas.
"""

from budgeting.models.budget import (
    Account,
    AccountType,
    Category,
    CategoryCreate,
    CategoryTotal,
    DashboardFilters,
    DashboardSummary,
    DashboardTotals,
    DayGroup,
    MonthlyTotal,
    ParsedTransaction,
    Transaction,
    TransactionSource,
    ValidationIssue,
    ValidationResult,
)
from budgeting.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from budgeting.models.defaults import (
    DEFAULT_CATEGORIES_BY_TYPE,
    get_default_categories,
)

__all__ = [
    # Budget models
    "Account",
    "AccountType",
    "Category",
    "CategoryCreate",
    "CategoryTotal",
    "DashboardFilters",
    "DashboardSummary",
    "DashboardTotals",
    "DayGroup",
    "MonthlyTotal",
    "ParsedTransaction",
    "Transaction",
    "TransactionSource",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Defaults
    "DEFAULT_CATEGORIES_BY_TYPE",
    "get_default_categories",
]
