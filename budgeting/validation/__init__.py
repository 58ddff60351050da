"""Validation package."""

from budgeting.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
