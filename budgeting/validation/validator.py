"""
Two-Stage Validation Pipeline

DESIGN DECISION: A parsed guess is validated before it is saved, in two
distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Amount present and positive
- Category chosen
- This catches input the extractor could not understand

STAGE 2 - SEMANTIC VALIDATION:
- Category and subcategory exist in the account's list
- Absurd amount detection
- Future / very old date detection
- This catches logically impossible or suspicious data

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from budgeting.config import AppSettings, get_settings
from budgeting.models.budget import (
    Category,
    ParsedTransaction,
    ValidationIssue,
    ValidationResult,
)


class TransactionValidator:
    """
    Validates a parsed transaction against the user's categories.

    Stage 1: Schema validation
    Stage 2: Semantic validation (only when stage 1 passes)
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        candidate: ParsedTransaction,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if candidate.amount is None or candidate.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="No amount was recognised",
                severity="error",
                suggested_fix="Say or type the amount, e.g. '12.50'",
            ))

        if not candidate.category:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="No category was recognised",
                severity="error",
                suggested_fix="Pick a category from the list",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        candidate: ParsedTransaction,
        categories: list[Category],
        transaction_date: Optional[date],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        known = {c.name: c for c in categories if c.name}
        category = known.get(candidate.category)
        if category is None:
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message=f"'{candidate.category}' is not one of your categories",
                severity="error",
                suggested_fix="Pick an existing category or create it first",
            ))
        elif candidate.subcategory and candidate.subcategory not in category.subs:
            issues.append(ValidationIssue(
                field="subcategory",
                issue_type="unknown_subcategory",
                message=(
                    f"'{candidate.subcategory}' is not a subcategory of "
                    f"'{candidate.category}'"
                ),
                severity="error",
                suggested_fix="Pick an existing subcategory or add it first",
            ))

        # Absurd amount check
        max_amount = Decimal(str(self._settings.max_transaction_amount))
        if candidate.amount > max_amount:
            symbol = self._settings.currency_symbol
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({symbol}{candidate.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if transaction_date is not None:
            today = date.today()
            max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
            if transaction_date > max_future_date:
                issues.append(ValidationIssue(
                    field="transaction_date",
                    issue_type="future_date",
                    message=f"Date ({transaction_date}) is in the future",
                    severity="warning",
                    suggested_fix="Please verify the date is correct",
                ))

            min_reasonable_date = today - timedelta(days=365 * 2)  # 2 years ago
            if transaction_date < min_reasonable_date:
                issues.append(ValidationIssue(
                    field="transaction_date",
                    issue_type="suspicious_date",
                    message=f"Date ({transaction_date}) seems unusually old",
                    severity="warning",
                    suggested_fix="Please verify the date",
                ))

        if not candidate.description.strip():
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is empty",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(
        self,
        candidate: ParsedTransaction,
        categories: list[Category],
        transaction_date: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            candidate: The parsed (possibly user-edited) transaction
            categories: The account's category list
            transaction_date: Date the user chose, if any

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(candidate)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(
                candidate, categories, transaction_date
            )
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]
        can_save = schema_valid and semantic_valid

        return ValidationResult(
            is_valid=can_save and not warnings,
            can_save=can_save,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show next to the confirm button.
        """
        if result.is_valid:
            return "✅ Looks good! Confirm to save."

        lines = []

        if result.has_errors:
            lines.append("❌ This entry can't be saved yet:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        lines.append("")
        if result.can_save:
            lines.append("You can still save, but please review carefully.")
        else:
            lines.append("Please fix the issues above before saving.")

        return "\n".join(lines).strip()
