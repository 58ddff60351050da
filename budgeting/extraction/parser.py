"""
Extraction Orchestrator

Combines the amount extractor and the category matcher into one
best-effort ParsedTransaction.

CRITICAL: The result is a SUGGESTION. Nothing here saves anything.
Malformed or empty input resolves to None ("could not parse"), never to
an exception.
"""

from typing import Any, Iterable, Mapping, Optional

from budgeting.extraction.amount import extract_amount
from budgeting.extraction.keywords import KeywordIndex, build_keyword_index
from budgeting.extraction.matcher import DEFAULT_MAX_WINDOW, match_category
from budgeting.models.budget import ParsedTransaction


def parse_transaction(
    text: Any,
    index: KeywordIndex,
    max_window: int = DEFAULT_MAX_WINDOW,
) -> Optional[ParsedTransaction]:
    """
    Turn recognised speech/OCR text into a candidate transaction.

    Args:
        text: Raw recognised text (None is treated as empty)
        index: Keyword index built from the caller's current categories
        max_window: Widest token window used by the category matcher

    Returns:
        ParsedTransaction when an amount or a category was found,
        None otherwise.
    """
    if text is None:
        raw = ""
    else:
        raw = text if isinstance(text, str) else str(text)
    lowered = raw.lower()

    amount = extract_amount(lowered)
    match = match_category(lowered, index, max_window)
    category = match.category if match else ""
    subcategory = match.subcategory if match else ""

    if not amount and not category:
        return None

    return ParsedTransaction(
        amount=amount,
        category=category,
        subcategory=subcategory,
        description=raw,
    )


def parse_text(
    text: Any,
    categories: Optional[Iterable[Any]],
    synonyms: Optional[Mapping[str, Iterable[str]]] = None,
    max_window: int = DEFAULT_MAX_WINDOW,
) -> Optional[ParsedTransaction]:
    """Convenience wrapper: build the index from `categories` and parse."""
    index = build_keyword_index(categories, synonyms=synonyms)
    return parse_transaction(text, index, max_window=max_window)
