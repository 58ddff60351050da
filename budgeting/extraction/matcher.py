"""
Category Matcher

Lightweight fuzzy matching of free text against the keyword index.

DESIGN DECISION: This is NOT a classifier. It must run synchronously,
offline, with no model weights, while tolerating the usual speech/OCR
slips (missing letters, merged or split words). It does that with three
cheap tests per (window, keyword form) pair:
1. exact equality
2. either string contains the other
3. the two strings are at most one edit apart

Scoring favours long, multi-word keywords matched through wide windows:

    score = len(normalized form) + 10 * words in form + 2 * window size

The single best score wins; ties keep the first candidate in index order.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from budgeting.extraction.keywords import KeywordIndex
from budgeting.extraction.normalize import tokenize

DEFAULT_MAX_WINDOW = 4


@dataclass(frozen=True)
class CategoryMatch:
    """The winning (category, subcategory) guess and why it won."""

    category: str
    subcategory: str
    keyword: str
    window: str
    score: int


def within_one_edit(a: str, b: str) -> bool:
    """
    True if a and b differ by at most one substitution, insertion or deletion.

    Single pass; strings whose lengths differ by more than one never match.
    """
    if a == b:
        return True
    if abs(len(a) - len(b)) > 1:
        return False
    if len(a) > len(b):
        a, b = b, a

    i = j = edits = 0
    while i < len(a) and j < len(b):
        if a[i] == b[j]:
            i += 1
            j += 1
            continue
        edits += 1
        if edits > 1:
            return False
        if len(a) == len(b):
            i += 1
        j += 1

    edits += (len(a) - i) + (len(b) - j)
    return edits <= 1


def is_keyword_match(candidate: str, keyword: str) -> bool:
    if not candidate or not keyword:
        return False
    return (
        candidate == keyword
        or keyword in candidate
        or candidate in keyword
        or within_one_edit(candidate, keyword)
    )


def iter_windows(tokens: list[str], max_window: int = DEFAULT_MAX_WINDOW) -> Iterator[tuple[str, int]]:
    """Yield (joined window, window size) for every contiguous run of 1..max_window tokens."""
    widest = min(max_window, len(tokens))
    for start in range(len(tokens)):
        for size in range(1, widest + 1):
            if start + size > len(tokens):
                break
            yield "".join(tokens[start:start + size]), size


def score_match(normalized_keyword: str, keyword_words: int, window_size: int) -> int:
    return len(normalized_keyword) + 10 * keyword_words + 2 * window_size


def match_category(
    text: str,
    index: KeywordIndex,
    max_window: int = DEFAULT_MAX_WINDOW,
) -> Optional[CategoryMatch]:
    """
    Best (category, subcategory) guess for the text, or None.

    Args:
        text: Lowercased input text
        index: Keyword index from build_keyword_index()
        max_window: Widest run of tokens to try as one candidate

    Entries of a nameless category, including its named subcategories,
    stay in the index but are never reported: a guess needs a category
    name for the subcategory to belong to.

    Returns:
        CategoryMatch with subcategory "" when a category itself won,
        None when nothing matched.
    """
    windows = list(iter_windows(tokenize(text), max_window))
    if not windows:
        return None

    best: Optional[CategoryMatch] = None
    for entry in index:
        if not entry.category:
            continue
        for form in entry.forms:
            for window, size in windows:
                if not is_keyword_match(window, form.normalized):
                    continue
                score = score_match(form.normalized, form.word_count, size)
                if best is None or score > best.score:
                    best = CategoryMatch(
                        category=entry.category,
                        subcategory=entry.subcategory or "",
                        keyword=form.text,
                        window=window,
                        score=score,
                    )
    return best
