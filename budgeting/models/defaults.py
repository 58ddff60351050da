"""
Default category sets keyed by account type.

Used whenever a user has not saved a category list for an account yet.
"""

from budgeting.models.budget import AccountType, Category


DEFAULT_CATEGORIES_BY_TYPE: dict[AccountType, tuple[dict, ...]] = {
    AccountType.EXPENSE: (
        {"name": "Shopping", "icon": "Cart", "color": "#1e90ff",
         "subs": ["Supermarket", "Home utilities"]},
        {"name": "Car", "icon": "Car", "color": "#ff6347",
         "subs": ["Fuel", "Insurance", "Repairs"]},
        {"name": "Home", "icon": "Home", "color": "#32cd32",
         "subs": ["Electricity", "Generator", "Maintenance", "Water"]},
        {"name": "Entertainment", "icon": "Film", "color": "#ff1493",
         "subs": ["Dining Out", "Movies", "Outing"]},
        {"name": "Personal", "icon": "User", "color": "#ffa500",
         "subs": ["Shopping", "Selfcare"]},
        {"name": "Gifts", "icon": "Gift", "color": "#8a2be2",
         "subs": ["Birthday", "Wedding", "Christmas"]},
        {"name": "Healthcare", "icon": "Heart", "color": "#20b2aa",
         "subs": ["Doctor Visit", "Pharmacy", "Skincare", "Health Insurance"]},
        {"name": "Travel", "icon": "Airplane", "color": "#ff4500",
         "subs": ["Flight", "Hotel", "Car Rental"]},
    ),
    AccountType.INCOME: (
        {"name": "Salary", "icon": "💰", "color": "#10b981"},
        {"name": "Bonus", "icon": "🎉", "color": "#3b82f6"},
        {"name": "Gift", "icon": "🎁", "color": "#f59e0b"},
    ),
}


def get_default_categories(account_type: AccountType) -> list[Category]:
    """Fresh copies of the defaults for an account type (empty if unknown)."""
    raw = DEFAULT_CATEGORIES_BY_TYPE.get(AccountType(account_type), ())
    return [Category.from_raw(entry) for entry in raw]
