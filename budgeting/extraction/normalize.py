"""
Text normalization shared by the keyword index and the category matcher.

DESIGN DECISION: Normalization is an explicit pipeline
(decompose -> drop diacritics -> case-fold -> keep alphanumerics)
instead of a regex character class, so "Café", "cafe" and "CAFE!" all
land on the same string regardless of locale or regex engine.
"""

import re
import unicodedata

_SEPARATOR_RUN = re.compile(r"[-_\s]+")


def normalize_token(value: str) -> str:
    """Decompose, strip diacritics, lowercase and keep only letters/digits."""
    decomposed = unicodedata.normalize("NFKD", value or "")
    without_marks = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return "".join(ch for ch in without_marks.lower() if ch.isalnum())


def tokenize(text: str) -> list[str]:
    """
    Split text on whitespace and normalize every token.

    Tokens that normalize to nothing (pure punctuation) are dropped.
    """
    tokens = (normalize_token(part) for part in (text or "").split())
    return [token for token in tokens if token]


def keyword_forms(label: str) -> list[str]:
    """
    All keyword forms of a category or subcategory label.

    Forms, in order: the lowercased trimmed label, the label with every
    non-alphanumeric removed, the label with runs of hyphens/underscores/
    spaces collapsed to a single space, then each whitespace-delimited word.
    Duplicates are dropped, first occurrence wins.
    """
    raw = (label or "").lower().strip()
    candidates = [
        raw,
        "".join(ch for ch in raw if ch.isalnum()),
        _SEPARATOR_RUN.sub(" ", raw).strip(),
        *raw.split(),
    ]

    forms: list[str] = []
    for form in candidates:
        if form not in forms:
            forms.append(form)
    return forms
