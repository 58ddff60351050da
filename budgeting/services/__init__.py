"""Services package."""

from budgeting.services.receipts import (
    RECEIPT_TEMPLATES,
    ReceiptMatch,
    ReceiptTemplate,
    SpinneysReceipt,
    detect_receipt,
)
from budgeting.services.storage import (
    AccountStoreInterface,
    AuditStorageInterface,
    CategoryStoreInterface,
    ConnectionError,
    DuplicateError,
    GoogleSheetsAccountStore,
    GoogleSheetsAuditStorage,
    GoogleSheetsCategoryStore,
    GoogleSheetsClient,
    GoogleSheetsTransactionStore,
    InMemoryAccountStore,
    InMemoryAuditStorage,
    InMemoryCategoryStore,
    InMemoryTransactionStore,
    NotFoundError,
    StorageError,
    TransactionStoreInterface,
)

__all__ = [
    # Receipt templates
    "RECEIPT_TEMPLATES",
    "ReceiptMatch",
    "ReceiptTemplate",
    "SpinneysReceipt",
    "detect_receipt",
    # Storage services
    "AccountStoreInterface",
    "AuditStorageInterface",
    "CategoryStoreInterface",
    "ConnectionError",
    "DuplicateError",
    "GoogleSheetsAccountStore",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsCategoryStore",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStore",
    "InMemoryAccountStore",
    "InMemoryAuditStorage",
    "InMemoryCategoryStore",
    "InMemoryTransactionStore",
    "NotFoundError",
    "StorageError",
    "TransactionStoreInterface",
]
