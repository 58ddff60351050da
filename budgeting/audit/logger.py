"""
Audit Logger

Writes every AuditEvent twice: as a structlog line on stderr, and as a
row in the audit store when one is configured. A failing audit store is
reported in the local log and otherwise ignored, so a quick entry is
never lost because its audit row could not be written.

Pass the same correlation id to every call made for one user action.
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from budgeting.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from budgeting.services.storage import AuditStorageInterface


# JSON lines through the stdlib logging module
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output to stderr at the configured level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )


_LOG_METHOD = {
    AuditSeverity.CRITICAL: "error",
    AuditSeverity.ERROR: "error",
    AuditSeverity.WARNING: "warning",
}


class AuditLogger:
    """Local structured log plus optional persistent audit trail."""

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Args:
            storage: Where audit rows go. None keeps the trail in the
                     local log only.
        """
        self._storage = storage
        self._logger = structlog.get_logger("budgeting.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Record one event.

        Returns:
            False only when the audit store rejected or failed the write
        """
        emit = getattr(self._logger, _LOG_METHOD.get(event.severity, "info"))
        emit("audit_event", **event.to_log_dict())

        if self._storage is None:
            return True

        try:
            return await self._storage.append_event(event)
        except Exception as e:
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    async def log_text_parsed(
        self,
        user_id: str,
        source: str,
        amount: str,
        category: str,
        subcategory: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a successful parse."""
        await self.log(AuditEventBuilder.text_parsed(
            user_id=user_id,
            source=source,
            amount=amount,
            category=category,
            subcategory=subcategory,
            correlation_id=correlation_id,
        ))

    async def log_text_not_parsed(
        self,
        user_id: str,
        source: str,
        text_length: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log input that yielded neither amount nor category."""
        await self.log(AuditEventBuilder.text_not_parsed(
            user_id=user_id,
            source=source,
            text_length=text_length,
            correlation_id=correlation_id,
        ))

    async def log_receipt_matched(
        self,
        user_id: str,
        template: str,
        total: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.receipt_template_matched(
            user_id=user_id,
            template=template,
            total=total,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        user_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log validation failure."""
        await self.log(AuditEventBuilder.validation_failed(
            user_id=user_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_user_confirmed(
        self,
        transaction_id: UUID,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log user confirmation."""
        await self.log(AuditEventBuilder.user_confirmed(
            transaction_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    async def log_user_rejected(
        self,
        user_id: str,
        reason: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log user rejection."""
        await self.log(AuditEventBuilder.user_rejected(
            user_id=user_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_transaction_saved(
        self,
        transaction_id: UUID,
        user_id: str,
        amount: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log transaction save."""
        await self.log(AuditEventBuilder.transaction_saved(
            transaction_id=transaction_id,
            user_id=user_id,
            amount=amount,
            category=category,
            correlation_id=correlation_id,
        ))

    async def log_save_failed(
        self,
        user_id: str,
        entity_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.save_failed(
            user_id=user_id,
            entity_type=entity_type,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_categories_saved(
        self,
        user_id: str,
        account_id: UUID,
        category_count: int,
    ) -> None:
        await self.log(AuditEventBuilder.categories_saved(
            user_id=user_id,
            account_id=account_id,
            category_count=category_count,
        ))

    async def log_category_created(
        self,
        user_id: str,
        account_id: UUID,
        name: str,
    ) -> None:
        await self.log(AuditEventBuilder.category_created(
            user_id=user_id,
            account_id=account_id,
            name=name,
        ))

    async def log_subcategory_added(
        self,
        user_id: str,
        account_id: UUID,
        category: str,
        subcategory: str,
    ) -> None:
        await self.log(AuditEventBuilder.subcategory_added(
            user_id=user_id,
            account_id=account_id,
            category=category,
            subcategory=subcategory,
        ))

    async def log_account_created(
        self,
        account_id: UUID,
        user_id: str,
        name: str,
        account_type: str,
    ) -> None:
        await self.log(AuditEventBuilder.account_created(
            account_id=account_id,
            user_id=user_id,
            name=name,
            account_type=account_type,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """New id for one user action, e.g. one quick entry from parse to save."""
    return uuid4()
