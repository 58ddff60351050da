"""
Main Orchestrator for Personal Budgeting

This module ties together all the components and defines the
end-to-end flows for:
1. Quick entry (speech/typed text or receipt OCR text -> parse -> validate -> confirm -> save)
2. Category management (per-account lists, defaults on first use)
3. Accounts
4. Dashboard (filter -> aggregate)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No transaction persists without human confirmation
- The extractor only proposes; it never writes
- Every step is audited

Authentication happens outside this package. Every flow takes the
already-authenticated user id as an opaque string.
"""

from datetime import date
from typing import Optional
from uuid import UUID

import structlog

from budgeting.audit import AuditLogger, configure_logging, create_correlation_id
from budgeting.config import ExtractorSettings, get_settings
from budgeting.extraction import KeywordIndex, build_keyword_index, parse_transaction
from budgeting.models.budget import (
    Account,
    AccountType,
    Category,
    CategoryCreate,
    DashboardFilters,
    DashboardSummary,
    ParsedTransaction,
    Transaction,
    TransactionSource,
    ValidationResult,
)
from budgeting.models.defaults import get_default_categories
from budgeting.queries import summarise_transactions
from budgeting.services.receipts import detect_receipt
from budgeting.services.storage import (
    AccountStoreInterface,
    CategoryStoreInterface,
    DuplicateError,
    GoogleSheetsAccountStore,
    GoogleSheetsAuditStorage,
    GoogleSheetsCategoryStore,
    GoogleSheetsClient,
    GoogleSheetsTransactionStore,
    InMemoryAccountStore,
    InMemoryCategoryStore,
    InMemoryTransactionStore,
    NotFoundError,
    StorageError,
    TransactionStoreInterface,
)
from budgeting.validation import TransactionValidator

logger = structlog.get_logger(__name__)


async def _load_categories(
    store: Optional[CategoryStoreInterface],
    user_id: str,
    account: Account,
) -> list[Category]:
    """The saved list, or the defaults for the account type when none was saved."""
    saved = await store.list_categories(user_id, account.id) if store else []
    return saved or get_default_categories(account.type)


class QuickEntryFlow:
    """
    Orchestrates the quick entry flow.

    Flow:
    1. Parse -> Best-effort guess from the recognised text
    2. Validate -> Two-stage validation against the account's categories
    3. Review -> Present to user (PAUSE - require confirmation)
    4. Confirm -> User explicitly approves (possibly after editing)
    5. Save -> Persist to storage

    Human confirmation (step 4) is MANDATORY.
    The system NEVER auto-saves.
    """

    def __init__(
        self,
        category_store: Optional[CategoryStoreInterface] = None,
        transaction_store: Optional[TransactionStoreInterface] = None,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        extractor_settings: Optional[ExtractorSettings] = None,
    ):
        self._category_store = category_store
        self._transaction_store = transaction_store
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger
        self._extractor_settings = extractor_settings or get_settings().extractor

    async def load_categories(
        self,
        user_id: str,
        account: Account,
        correlation_id: Optional[UUID] = None,
    ) -> list[Category]:
        try:
            return await _load_categories(self._category_store, user_id, account)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="category_store",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

    def build_index(self, categories: list[Category]) -> KeywordIndex:
        """Keyword index for one category list, honouring the synonym setting."""
        synonyms = None if self._extractor_settings.use_builtin_synonyms else {}
        return build_keyword_index(categories, synonyms=synonyms)

    async def parse_text(
        self,
        text: str,
        user_id: str,
        account: Account,
        source: TransactionSource = TransactionSource.VOICE,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[ParsedTransaction]:
        """
        Turn recognised text into a proposed transaction.

        Returns:
            The guess, or None when neither an amount nor a category was found
        """
        correlation_id = correlation_id or create_correlation_id()

        categories = await self.load_categories(user_id, account, correlation_id)
        parsed = parse_transaction(
            text,
            self.build_index(categories),
            max_window=self._extractor_settings.max_window_tokens,
        )

        if self._audit_logger:
            if parsed is None:
                await self._audit_logger.log_text_not_parsed(
                    user_id=user_id,
                    source=source.value,
                    text_length=len(text or ""),
                    correlation_id=correlation_id,
                )
            else:
                await self._audit_logger.log_text_parsed(
                    user_id=user_id,
                    source=source.value,
                    amount=str(parsed.amount),
                    category=parsed.category,
                    subcategory=parsed.subcategory,
                    correlation_id=correlation_id,
                )

        return parsed

    async def parse_receipt_text(
        self,
        ocr_text: str,
        user_id: str,
        account: Account,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[ParsedTransaction]:
        """
        Parse OCR text of a receipt.

        When a known receipt layout is recognised and its total can be read,
        that total replaces the generic amount guess. A zero total with no
        category match is still "could not parse" (None).
        """
        correlation_id = correlation_id or create_correlation_id()

        parsed = await self.parse_text(
            ocr_text,
            user_id,
            account,
            source=TransactionSource.RECEIPT,
            correlation_id=correlation_id,
        )

        match = detect_receipt(ocr_text or "")
        if match is None:
            return parsed

        if self._audit_logger:
            await self._audit_logger.log_receipt_matched(
                user_id=user_id,
                template=match.template,
                total=str(match.total) if match.total is not None else None,
                correlation_id=correlation_id,
            )

        if match.total is None:
            return parsed

        if parsed is None:
            parsed = ParsedTransaction(description=ocr_text or "")
        parsed = parsed.model_copy(update={"amount": match.total})

        # Same rule as the generic parser: no amount and no category is no guess
        if not parsed.amount and not parsed.category:
            return None
        return parsed

    async def validate(
        self,
        parsed: ParsedTransaction,
        categories: list[Category],
        account: Account,
        transaction_date: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[ValidationResult, str]:
        """
        Validate a (possibly edited) guess.

        Returns:
            (validation_result, user_message)
        """
        result = self._validator.validate(parsed, categories, transaction_date)
        message = self._validator.get_user_friendly_summary(result)

        if self._audit_logger and not result.can_save:
            issues = [
                {"field": i.field, "type": i.issue_type, "message": i.message}
                for i in result.issues
            ]
            await self._audit_logger.log_validation_failed(
                user_id=account.user_id,
                issues=issues,
                correlation_id=correlation_id,
            )

        return result, message

    async def confirm_and_save(
        self,
        parsed: ParsedTransaction,
        user_id: str,
        account: Account,
        transaction_date: Optional[date] = None,
        source: TransactionSource = TransactionSource.MANUAL,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Confirm and save the transaction.

        CRITICAL: This is called ONLY after explicit user confirmation.

        The stored amount is signed by account type: expense accounts store
        negative amounts, income accounts positive ones.

        Raises:
            NotFoundError: If the account does not belong to the user
            StorageError: If the save fails
        """
        correlation_id = correlation_id or create_correlation_id()

        if account.user_id != user_id:
            raise NotFoundError(f"Account not found: {account.id}")

        magnitude = abs(parsed.amount)
        amount = -magnitude if account.type == AccountType.EXPENSE else magnitude

        transaction = Transaction(
            user_id=user_id,
            account_id=account.id,
            transaction_date=transaction_date or date.today(),
            category=parsed.category,
            subcategory=parsed.subcategory,
            amount=amount,
            description=parsed.description,
            source=source,
        )

        if self._audit_logger:
            await self._audit_logger.log_user_confirmed(
                transaction_id=transaction.id,
                user_id=user_id,
                correlation_id=correlation_id,
            )

        if self._transaction_store:
            try:
                await self._transaction_store.create_transaction(transaction)
            except StorageError as e:
                if self._audit_logger:
                    await self._audit_logger.log_save_failed(
                        user_id=user_id,
                        entity_type="transaction",
                        error_message=str(e),
                        correlation_id=correlation_id,
                    )
                raise

            if self._audit_logger:
                await self._audit_logger.log_transaction_saved(
                    transaction_id=transaction.id,
                    user_id=user_id,
                    amount=str(transaction.amount),
                    category=transaction.category,
                    correlation_id=correlation_id,
                )

        return transaction

    async def reject(
        self,
        parsed: Optional[ParsedTransaction],
        user_id: str,
        reason: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Record that user rejected the guess.

        This is called when user chooses not to save after reviewing.
        """
        correlation_id = correlation_id or create_correlation_id()

        if self._audit_logger:
            await self._audit_logger.log_user_rejected(
                user_id=user_id,
                reason=reason,
                correlation_id=correlation_id,
            )


class CategoryFlow:
    """Per-account category lists."""

    def __init__(
        self,
        category_store: Optional[CategoryStoreInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._category_store = category_store
        self._audit_logger = audit_logger

    async def list_categories(self, user_id: str, account: Account) -> list[Category]:
        return await _load_categories(self._category_store, user_id, account)

    async def save_categories(
        self,
        user_id: str,
        account: Account,
        categories: list[Category],
    ) -> bool:
        """Replace the whole list."""
        if not self._category_store:
            return False

        saved = await self._category_store.save_categories(user_id, account.id, categories)
        if self._audit_logger:
            await self._audit_logger.log_categories_saved(
                user_id=user_id,
                account_id=account.id,
                category_count=len(categories),
            )
        return saved

    async def create_category(
        self,
        user_id: str,
        account: Account,
        new_category: CategoryCreate,
    ) -> list[Category]:
        """
        Append a category to the account's list.

        Raises:
            DuplicateError: If a category with that name exists
        """
        categories = await self.list_categories(user_id, account)
        if any(c.name == new_category.name for c in categories):
            raise DuplicateError(f"Category already exists: {new_category.name}")

        categories.append(new_category.to_category())
        await self.save_categories(user_id, account, categories)

        if self._audit_logger:
            await self._audit_logger.log_category_created(
                user_id=user_id,
                account_id=account.id,
                name=new_category.name,
            )
        return categories

    async def add_subcategory(
        self,
        user_id: str,
        account: Account,
        category_name: str,
        subcategory: str,
    ) -> bool:
        """
        Append a subcategory.

        Returns False (and saves nothing) when the category is unknown, the
        label is blank or the subcategory already exists.
        """
        label = (subcategory or "").strip()
        categories = await self.list_categories(user_id, account)
        target = next((c for c in categories if c.name == category_name), None)
        if target is None or not label or label in target.subs:
            return False

        target.subs.append(label)
        await self.save_categories(user_id, account, categories)

        if self._audit_logger:
            await self._audit_logger.log_subcategory_added(
                user_id=user_id,
                account_id=account.id,
                category=category_name,
                subcategory=label,
            )
        return True


class AccountFlow:
    """A user's income and expense accounts."""

    def __init__(
        self,
        account_store: Optional[AccountStoreInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._account_store = account_store
        self._audit_logger = audit_logger

    async def list_accounts(self, user_id: str) -> list[Account]:
        if not self._account_store:
            return []
        return await self._account_store.list_accounts(user_id)

    async def get_account(self, user_id: str, account_id: UUID) -> Account:
        if not self._account_store:
            raise NotFoundError(f"Account not found: {account_id}")
        return await self._account_store.get_account(user_id, account_id)

    async def create_account(
        self,
        user_id: str,
        name: str,
        account_type: AccountType,
    ) -> Account:
        account = Account(user_id=user_id, name=name, type=account_type)

        if self._account_store:
            await self._account_store.create_account(account)

        if self._audit_logger:
            await self._audit_logger.log_account_created(
                account_id=account.id,
                user_id=user_id,
                name=account.name,
                account_type=account.type.value,
            )
        return account


class DashboardFlow:
    """Filtered totals and groupings of a user's transactions."""

    def __init__(
        self,
        transaction_store: Optional[TransactionStoreInterface] = None,
        account_store: Optional[AccountStoreInterface] = None,
    ):
        self._transaction_store = transaction_store
        self._account_store = account_store

    async def summarise(
        self,
        user_id: str,
        filters: Optional[DashboardFilters] = None,
    ) -> DashboardSummary:
        filters = filters or DashboardFilters()

        accounts = await self._account_store.list_accounts(user_id) if self._account_store else []
        transactions = []
        if self._transaction_store:
            transactions = await self._transaction_store.list_transactions(
                user_id,
                account_id=filters.account_id,
                categories=filters.categories,
                date_from=filters.start_date,
                date_to=filters.end_date,
                min_amount=filters.min_amount,
                max_amount=filters.max_amount,
            )

        return summarise_transactions(transactions, accounts=accounts, filters=filters)


def create_app_components(
    use_storage: bool = True,
) -> tuple[QuickEntryFlow, CategoryFlow, AccountFlow, DashboardFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    When False, or when Sheets is not configured,
                    in-memory stores are used instead.

    Returns:
        (quick_entry_flow, category_flow, account_flow, dashboard_flow, sheets_client)
    """
    configure_logging(get_settings().app.log_level)

    sheets_client = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            account_store = GoogleSheetsAccountStore(sheets_client)
            category_store = GoogleSheetsCategoryStore(sheets_client)
            transaction_store = GoogleSheetsTransactionStore(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None

    if sheets_client is None:
        account_store = InMemoryAccountStore()
        category_store = InMemoryCategoryStore()
        transaction_store = InMemoryTransactionStore()
        audit_logger = AuditLogger()  # Local-only logging

    quick_entry_flow = QuickEntryFlow(
        category_store=category_store,
        transaction_store=transaction_store,
        audit_logger=audit_logger,
    )
    category_flow = CategoryFlow(
        category_store=category_store,
        audit_logger=audit_logger,
    )
    account_flow = AccountFlow(
        account_store=account_store,
        audit_logger=audit_logger,
    )
    dashboard_flow = DashboardFlow(
        transaction_store=transaction_store,
        account_store=account_store,
    )

    return quick_entry_flow, category_flow, account_flow, dashboard_flow, sheets_client
