"""Spinneys (Lebanon) cash-register receipts."""

import re
from decimal import Decimal
from typing import Optional

from budgeting.services.receipts.base import ReceiptTemplate, parse_receipt_number

# "spinneys" plus the OCR slips seen in practice: 1 for i, a dropped e, $ for s.
_NAME_PATTERN = re.compile(r"spinneys|sp1nne?ys|spinney\$")
_RATE_USD = re.compile(r"rate\s*usd", re.IGNORECASE)
_TOTAL_USD = re.compile(r"total\s*usd", re.IGNORECASE)
_TOTAL_LINE = re.compile(r"total\s*usd[^\d\-]*([0-9][0-9.,]*)", re.IGNORECASE)


class SpinneysReceipt(ReceiptTemplate):
    """
    Spinneys receipts print both a "Rate USD" and a "Total USD" block;
    other stores print "Exchange Rate" instead.
    """

    name = "Spinneys"

    def matches(self, text: str) -> bool:
        text = text or ""
        flat = re.sub(r"\s+", "", text).lower()
        if _NAME_PATTERN.search(flat):
            return True
        return bool(_RATE_USD.search(text) and _TOTAL_USD.search(text))

    def extract_total(self, text: str) -> Optional[Decimal]:
        """Amount after the FIRST "Total USD"."""
        match = _TOTAL_LINE.search(text or "")
        if not match:
            return None
        return parse_receipt_number(match.group(1))
