"""
Receipt Templates Package

Registry of retailer receipt layouts. Add new templates to
RECEIPT_TEMPLATES; the first template that matches wins.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from budgeting.services.receipts.base import ReceiptTemplate, parse_receipt_number
from budgeting.services.receipts.spinneys import SpinneysReceipt

RECEIPT_TEMPLATES: tuple[ReceiptTemplate, ...] = (
    SpinneysReceipt(),
)


@dataclass(frozen=True)
class ReceiptMatch:
    template: str
    total: Optional[Decimal]


def detect_receipt(
    text: str,
    templates: Sequence[ReceiptTemplate] = RECEIPT_TEMPLATES,
) -> Optional[ReceiptMatch]:
    """First template that recognises the text, with its total (may be None)."""
    for template in templates:
        if template.matches(text):
            return ReceiptMatch(template=template.name, total=template.extract_total(text))
    return None


__all__ = [
    "RECEIPT_TEMPLATES",
    "ReceiptMatch",
    "ReceiptTemplate",
    "SpinneysReceipt",
    "detect_receipt",
    "parse_receipt_number",
]
