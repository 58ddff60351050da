"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a hosted database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - simple get/save calls scoped by
the authenticated user id. Authentication itself happens elsewhere; the
stores only ever see an opaque `user_id` string.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from budgeting.models.audit import AuditEvent
from budgeting.models.budget import Account, Category, Transaction


class CategoryStoreInterface(ABC):
    """
    Per-(user, account) category lists.

    The whole list is read and written at once; there is no per-category row.
    """

    @abstractmethod
    async def list_categories(self, user_id: str, account_id: UUID) -> list[Category]:
        """
        Get the saved category list.

        Returns:
            The saved list, or [] when nothing was saved yet
            (callers fall back to the defaults for the account type).
        """
        pass

    @abstractmethod
    async def save_categories(
        self,
        user_id: str,
        account_id: UUID,
        categories: list[Category],
    ) -> bool:
        """
        Insert or replace the whole category list.

        Raises:
            StorageError: If save fails
        """
        pass


class TransactionStoreInterface(ABC):
    """Confirmed transactions."""

    @abstractmethod
    async def create_transaction(self, transaction: Transaction) -> Transaction:
        """
        Persist a confirmed transaction.

        Raises:
            DuplicateError: If a transaction with the same id exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
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
        """
        List a user's transactions with optional filters.

        Args:
            user_id: Owner
            account_id: Only this account
            categories: Only these category names
            date_from: On or after this date
            date_to: On or before this date
            min_amount: Signed amount >= this
            max_amount: Signed amount <= this

        Returns:
            Matching transactions, newest date first
        """
        pass


class AccountStoreInterface(ABC):
    """A user's income/expense accounts."""

    @abstractmethod
    async def list_accounts(self, user_id: str) -> list[Account]:
        """All accounts of the user in creation order."""
        pass

    @abstractmethod
    async def create_account(self, account: Account) -> Account:
        """
        Persist a new account.

        Raises:
            DuplicateError: If the account id already exists
            StorageError: If save fails
        """
        pass

    async def get_account(self, user_id: str, account_id: UUID) -> Account:
        """
        Fetch one of the user's accounts.

        Raises:
            NotFoundError: If the user has no such account
        """
        for account in await self.list_accounts(user_id):
            if account.id == account_id:
                return account
        raise NotFoundError(f"Account not found: {account_id}")


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


def filter_transactions(
    transactions: list[Transaction],
    user_id: str,
    account_id: Optional[UUID] = None,
    categories: Optional[list[str]] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None,
) -> list[Transaction]:
    """Apply the list_transactions filters in Python, newest first."""
    matched = []
    for tx in transactions:
        if tx.user_id != user_id:
            continue
        if account_id and tx.account_id != account_id:
            continue
        if categories and tx.category not in categories:
            continue
        if date_from and tx.transaction_date < date_from:
            continue
        if date_to and tx.transaction_date > date_to:
            continue
        if min_amount is not None and tx.amount < min_amount:
            continue
        if max_amount is not None and tx.amount > max_amount:
            continue
        matched.append(tx)

    matched.sort(key=lambda t: (t.transaction_date, t.created_at), reverse=True)
    return matched


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
