"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the persistent backend; the in-memory stores back tests and
unconfigured runs. Both honour the same interfaces.
"""

from budgeting.services.storage.interface import (
    AccountStoreInterface,
    AuditStorageInterface,
    CategoryStoreInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    StorageError,
    TransactionStoreInterface,
    filter_transactions,
)
from budgeting.services.storage.google_sheets import (
    GoogleSheetsAccountStore,
    GoogleSheetsAuditStorage,
    GoogleSheetsCategoryStore,
    GoogleSheetsClient,
    GoogleSheetsTransactionStore,
)
from budgeting.services.storage.memory import (
    InMemoryAccountStore,
    InMemoryAuditStorage,
    InMemoryCategoryStore,
    InMemoryTransactionStore,
)

__all__ = [
    # Interfaces
    "AccountStoreInterface",
    "AuditStorageInterface",
    "CategoryStoreInterface",
    "TransactionStoreInterface",
    "filter_transactions",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Google Sheets implementation
    "GoogleSheetsAccountStore",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsCategoryStore",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStore",
    # In-memory implementation
    "InMemoryAccountStore",
    "InMemoryAuditStorage",
    "InMemoryCategoryStore",
    "InMemoryTransactionStore",
]
