"""
Dashboard Aggregation

DESIGN DECISION: Aggregation is DETERMINISTIC and runs over stored data only.
The stores filter; this module only sums and groups what they returned.
Nothing here estimates or fills gaps.
"""

from collections import OrderedDict
from decimal import Decimal
from typing import Optional

from budgeting.models.budget import (
    Account,
    CategoryTotal,
    DashboardFilters,
    DashboardSummary,
    DashboardTotals,
    DayGroup,
    MonthlyTotal,
    Transaction,
)

TOP_CATEGORY_LIMIT = 8
MONTHLY_SERIES_LIMIT = 12
UNCATEGORIZED = "Uncategorized"


def compute_totals(transactions: list[Transaction]) -> DashboardTotals:
    """Negative amounts count as spent (absolute value), the rest as income."""
    spent = Decimal("0")
    income = Decimal("0")
    for tx in transactions:
        if tx.amount < 0:
            spent += abs(tx.amount)
        else:
            income += tx.amount
    return DashboardTotals(
        total_spent=spent,
        total_income=income,
        net=income - spent,
        transactions_count=len(transactions),
    )


def top_categories(
    transactions: list[Transaction],
    limit: int = TOP_CATEGORY_LIMIT,
) -> list[CategoryTotal]:
    """Signed totals per category, largest magnitude first."""
    by_category: "OrderedDict[str, Decimal]" = OrderedDict()
    for tx in transactions:
        key = tx.category or UNCATEGORIZED
        by_category[key] = by_category.get(key, Decimal("0")) + tx.amount

    # sorted() is stable, so equal magnitudes keep first-seen order
    ranked = sorted(by_category.items(), key=lambda item: abs(item[1]), reverse=True)
    return [CategoryTotal(category=name, total=total) for name, total in ranked[:limit]]


def monthly_series(
    transactions: list[Transaction],
    limit: int = MONTHLY_SERIES_LIMIT,
) -> list[MonthlyTotal]:
    """Signed totals per YYYY-MM, oldest first, last `limit` months only."""
    by_month: dict[str, Decimal] = {}
    for tx in transactions:
        key = tx.transaction_date.strftime("%Y-%m")
        by_month[key] = by_month.get(key, Decimal("0")) + tx.amount

    months = sorted(by_month)[-limit:]
    return [MonthlyTotal(month=m, total=by_month[m]) for m in months]


def group_by_day(transactions: list[Transaction]) -> list[DayGroup]:
    """One group per calendar day, newest day first; items keep input order."""
    groups: "OrderedDict[object, list[Transaction]]" = OrderedDict()
    for tx in transactions:
        groups.setdefault(tx.transaction_date, []).append(tx)

    result = [
        DayGroup(
            day=day,
            total=sum((tx.amount for tx in items), Decimal("0")),
            items=items,
        )
        for day, items in groups.items()
    ]
    result.sort(key=lambda g: g.day, reverse=True)
    return result


def summarise_transactions(
    transactions: list[Transaction],
    accounts: Optional[list[Account]] = None,
    filters: Optional[DashboardFilters] = None,
) -> DashboardSummary:
    """
    Build everything the dashboard renders from already-filtered rows.

    Args:
        transactions: The user's transactions after filtering
        accounts: The user's accounts (for the filter dropdown)
        filters: The filters that produced `transactions`, echoed back
    """
    return DashboardSummary(
        totals=compute_totals(transactions),
        top_categories=top_categories(transactions),
        monthly_series=monthly_series(transactions),
        grouped_transactions=group_by_day(transactions),
        accounts=accounts or [],
        filters=filters or DashboardFilters(),
    )
