"""
Receipt Template Interface

A receipt template recognises one retailer's receipt layout in OCR text and
pulls the printed total out of it. Receipts carry many numbers (prices,
quantities, exchange rates) so the generic amount extractor's sum fallback
is wrong for them; a matched template's total replaces it.
"""

import re
from abc import ABC, abstractmethod
from decimal import Decimal, localcontext
from typing import Optional

_DECIMAL_COMMA = re.compile(r",(?=\d{2}$)")
_LEADING_NUMBER = re.compile(r"[0-9]+(?:\.[0-9]*)?")


class ReceiptTemplate(ABC):
    """Detects one receipt layout and extracts its total."""

    name: str = ""

    @abstractmethod
    def matches(self, text: str) -> bool:
        """Does this OCR text look like this retailer's receipt?"""
        pass

    @abstractmethod
    def extract_total(self, text: str) -> Optional[Decimal]:
        """The receipt total, or None when it can't be read."""
        pass


def parse_receipt_number(raw: str) -> Optional[Decimal]:
    """
    Parse a printed amount.

    Spaces inside the number are removed, a comma followed by exactly two
    final digits is a decimal separator, any other comma is a thousands
    separator. Trailing junk after the leading number is ignored
    ("3.75." reads as 3.75).
    """
    cleaned = re.sub(r"\s+", "", raw or "")
    cleaned = _DECIMAL_COMMA.sub(".", cleaned)
    cleaned = cleaned.replace(",", "")
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return None
    with localcontext() as ctx:
        ctx.prec = 28 + len(cleaned)
        return Decimal(match.group(0)).quantize(Decimal("0.01"))
