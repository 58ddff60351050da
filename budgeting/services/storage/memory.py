"""
In-Memory Storage

Used by tests and when Google Sheets is not configured. Data lives for the
lifetime of the process only.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from budgeting.models.audit import AuditEvent
from budgeting.models.budget import Account, Category, Transaction
from budgeting.services.storage.interface import (
    AccountStoreInterface,
    AuditStorageInterface,
    CategoryStoreInterface,
    DuplicateError,
    TransactionStoreInterface,
    filter_transactions,
)


class InMemoryCategoryStore(CategoryStoreInterface):

    def __init__(self):
        self._lists: dict[tuple[str, UUID], list[Category]] = {}

    async def list_categories(self, user_id: str, account_id: UUID) -> list[Category]:
        saved = self._lists.get((user_id, account_id), [])
        # Copies, so callers can't mutate the stored snapshot
        return [category.model_copy(deep=True) for category in saved]

    async def save_categories(
        self,
        user_id: str,
        account_id: UUID,
        categories: list[Category],
    ) -> bool:
        self._lists[(user_id, account_id)] = [
            Category.from_raw(category).model_copy(deep=True) for category in categories
        ]
        return True


class InMemoryTransactionStore(TransactionStoreInterface):

    def __init__(self):
        self._transactions: dict[UUID, Transaction] = {}

    async def create_transaction(self, transaction: Transaction) -> Transaction:
        if transaction.id in self._transactions:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        self._transactions[transaction.id] = transaction
        return transaction

    async def list_transactions(
        self,
        user_id: str,
        account_id: Optional[UUID] = None,
        categories: Optional[list[str]] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        min_amount: Optional[Decimal] = None,
        max_amount: Optional[Decimal] = None,
    ) -> list[Transaction]:
        return filter_transactions(
            list(self._transactions.values()),
            user_id=user_id,
            account_id=account_id,
            categories=categories,
            date_from=date_from,
            date_to=date_to,
            min_amount=min_amount,
            max_amount=max_amount,
        )


class InMemoryAccountStore(AccountStoreInterface):

    def __init__(self):
        self._accounts: list[Account] = []

    async def list_accounts(self, user_id: str) -> list[Account]:
        return [account for account in self._accounts if account.user_id == user_id]

    async def create_account(self, account: Account) -> Account:
        if any(existing.id == account.id for existing in self._accounts):
            raise DuplicateError(f"Account already exists: {account.id}")
        self._accounts.append(account)
        return account


class InMemoryAuditStorage(AuditStorageInterface):

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]
