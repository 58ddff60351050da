"""
Audit trail models.

Each step of a quick entry (parse, validate, confirm or reject, save) and
each change to accounts or category lists produces one AuditEvent. Events
that belong to the same user action share a correlation id, so a saved
transaction can be traced back to the phrase it was parsed from.

Audit rows are only ever appended, never edited.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    # Text understanding
    TEXT_PARSED = "text_parsed"
    TEXT_NOT_PARSED = "text_not_parsed"
    RECEIPT_TEMPLATE_MATCHED = "receipt_template_matched"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Human decision on a guess
    USER_CONFIRMED = "user_confirmed"
    USER_REJECTED = "user_rejected"

    # Persistence
    TRANSACTION_SAVED = "transaction_saved"
    CATEGORIES_SAVED = "categories_saved"
    CATEGORY_CREATED = "category_created"
    SUBCATEGORY_ADDED = "subcategory_added"
    ACCOUNT_CREATED = "account_created"
    SAVE_FAILED = "save_failed"

    # Failures outside the flows
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


# Column order of the audit worksheet
SHEET_FIELDS = (
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "user_id",
    "correlation_id",
    "description",
    "details",
    "error_message",
    "is_user_action",
)


class AuditEvent(BaseModel):
    """One audited step. Immutable once written."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="UTC, naive"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What the event is about
    entity_type: Optional[str] = Field(
        default=None,
        description="'transaction', 'account', 'categories', ..."
    )
    entity_id: Optional[UUID] = None
    user_id: Optional[str] = Field(
        default=None,
        description="Authenticated user the event belongs to"
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Shared by every event of one user action (parse -> confirm -> save)"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="True when a person, not the system, caused the event"
    )

    def to_log_dict(self) -> dict:
        """JSON-safe dict for structlog."""
        data = self.model_dump(mode="json")
        data["timestamp"] = self.timestamp.isoformat()
        return data

    def to_sheets_row(self) -> list:
        """
        One audit worksheet row, in SHEET_FIELDS order.

        Empty values become "", details are JSON-encoded and the user
        action flag is written as "True"/"False".
        """
        data = self.to_log_dict()
        data["details"] = json.dumps(self.details, default=str) if self.details else ""
        data["is_user_action"] = str(self.is_user_action)
        return ["" if data[field] is None else data[field] for field in SHEET_FIELDS]


class AuditEventBuilder:
    """Factory methods for the events the flows emit."""

    @staticmethod
    def text_parsed(
        user_id: str,
        source: str,
        amount: str,
        category: str,
        subcategory: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TEXT_PARSED,
            entity_type="parsed_transaction",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Parsed {source} input: {amount} / {category or '-'}",
            details={
                "source": source,
                "amount": amount,
                "category": category,
                "subcategory": subcategory,
            },
        )

    @staticmethod
    def text_not_parsed(
        user_id: str,
        source: str,
        text_length: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TEXT_NOT_PARSED,
            severity=AuditSeverity.WARNING,
            entity_type="parsed_transaction",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Could not parse {source} input",
            details={
                "source": source,
                "text_length": text_length,
            },
        )

    @staticmethod
    def receipt_template_matched(
        user_id: str,
        template: str,
        total: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_TEMPLATE_MATCHED,
            entity_type="receipt",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Receipt recognised as {template}",
            details={
                "template": template,
                "total": total,
            },
        )

    @staticmethod
    def validation_failed(
        user_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="parsed_transaction",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Validation failed with {len(issues)} issues",
            details={
                "issues": issues,
            },
        )

    @staticmethod
    def user_confirmed(
        transaction_id: UUID,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CONFIRMED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="User confirmed parsed transaction",
            is_user_action=True,
        )

    @staticmethod
    def user_rejected(
        user_id: str,
        reason: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REJECTED,
            entity_type="parsed_transaction",
            user_id=user_id,
            correlation_id=correlation_id,
            description="User rejected parsed transaction",
            details={
                "reason": reason or "No reason provided",
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_saved(
        transaction_id: UUID,
        user_id: str,
        amount: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Transaction saved: {category or 'Uncategorized'} {amount}",
            details={
                "amount": amount,
                "category": category,
            },
        )

    @staticmethod
    def categories_saved(
        user_id: str,
        account_id: UUID,
        category_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORIES_SAVED,
            entity_type="account",
            entity_id=account_id,
            user_id=user_id,
            description=f"Category list saved ({category_count} categories)",
            details={
                "category_count": category_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def category_created(
        user_id: str,
        account_id: UUID,
        name: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_CREATED,
            entity_type="account",
            entity_id=account_id,
            user_id=user_id,
            description=f"Category created: {name}",
            details={
                "name": name,
            },
            is_user_action=True,
        )

    @staticmethod
    def subcategory_added(
        user_id: str,
        account_id: UUID,
        category: str,
        subcategory: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBCATEGORY_ADDED,
            entity_type="account",
            entity_id=account_id,
            user_id=user_id,
            description=f"Subcategory added: {category} / {subcategory}",
            details={
                "category": category,
                "subcategory": subcategory,
            },
            is_user_action=True,
        )

    @staticmethod
    def account_created(
        account_id: UUID,
        user_id: str,
        name: str,
        account_type: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            entity_type="account",
            entity_id=account_id,
            user_id=user_id,
            description=f"Account created: {name} ({account_type})",
            details={
                "name": name,
                "type": account_type,
            },
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        user_id: str,
        entity_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=entity_type,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Failed to save {entity_type}",
            error_message=error_message,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
