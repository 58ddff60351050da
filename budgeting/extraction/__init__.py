"""
Offline text-to-transaction extraction.

Pure, synchronous functions: no I/O, no shared mutable state.
"""

from budgeting.extraction.amount import (
    REFUND_KEYWORDS,
    extract_amount,
    find_numbers,
    words_to_number,
)
from budgeting.extraction.keywords import (
    KEYWORD_SYNONYMS,
    KeywordEntry,
    KeywordForm,
    KeywordIndex,
    build_keyword_index,
    index_triples,
)
from budgeting.extraction.matcher import (
    CategoryMatch,
    match_category,
    within_one_edit,
)
from budgeting.extraction.normalize import keyword_forms, normalize_token, tokenize
from budgeting.extraction.parser import parse_text, parse_transaction

__all__ = [
    "CategoryMatch",
    "KEYWORD_SYNONYMS",
    "KeywordEntry",
    "KeywordForm",
    "KeywordIndex",
    "REFUND_KEYWORDS",
    "build_keyword_index",
    "extract_amount",
    "find_numbers",
    "index_triples",
    "keyword_forms",
    "match_category",
    "normalize_token",
    "parse_text",
    "parse_transaction",
    "tokenize",
    "within_one_edit",
    "words_to_number",
]
