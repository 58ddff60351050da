"""Dashboard query package."""

from budgeting.queries.dashboard import (
    compute_totals,
    group_by_day,
    monthly_series,
    summarise_transactions,
    top_categories,
)

__all__ = [
    "compute_totals",
    "group_by_day",
    "monthly_series",
    "summarise_transactions",
    "top_categories",
]
