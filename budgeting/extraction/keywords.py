"""
Keyword Index Builder

Turns the user's current category list into a flat, ordered index of
keyword forms that the category matcher scans.

DESIGN DECISION: The index is rebuilt from scratch from whatever category
list the caller has right now. There is no global registry and no
incremental update: `build_keyword_index(categories)` is a pure function
and its result is an immutable value passed explicitly to the matcher.

Scan order = index order = category-list order, each category directly
followed by its own subcategories. The matcher relies on this order to
break score ties, so reordering categories in the UI can change which
category an ambiguous keyword resolves to.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from budgeting.extraction.normalize import keyword_forms, normalize_token
from budgeting.models.budget import Category


# Built-in vocabulary that widens well-known labels.
# Keyed by the alphanumeric-only form of a category/subcategory name.
# Synonyms only ever widen labels the user actually has; they never add
# categories of their own.
KEYWORD_SYNONYMS: dict[str, tuple[str, ...]] = {
    "coffeeshops": ("coffee", "starbucks", "cafe"),
    "supermarket": ("grocery", "groceries", "supermarket", "spinneys"),
    "fuel": ("fuel", "gas", "petrol"),
    "rent": ("rent",),
    "electricity": ("electric", "electricity", "power"),
    "movies": ("movie", "cinema", "netflix"),
    "diningout": ("restaurant", "dinner", "lunch"),
    "pharmacy": ("pharmacy", "drugstore", "medicine"),
    "salary": ("salary", "payroll", "paycheck"),
}


@dataclass(frozen=True)
class KeywordForm:
    """One match target: the form as generated plus its precomputed pieces."""

    text: str
    normalized: str
    word_count: int

    @classmethod
    def from_text(cls, text: str) -> "KeywordForm":
        return cls(
            text=text,
            normalized=normalize_token(text),
            word_count=len(text.split()),
        )


@dataclass(frozen=True)
class KeywordEntry:
    """All keyword forms of one category or one subcategory."""

    forms: tuple[KeywordForm, ...]
    category: str
    subcategory: Optional[str] = None

    @property
    def form_texts(self) -> frozenset[str]:
        return frozenset(form.text for form in self.forms)


KeywordIndex = tuple[KeywordEntry, ...]


def _entry(
    label: str,
    category: str,
    subcategory: Optional[str],
    synonyms: Mapping[str, Iterable[str]],
) -> KeywordEntry:
    texts = keyword_forms(label)
    key = "".join(ch for ch in (label or "").lower() if ch.isalnum())
    for synonym in synonyms.get(key, ()):
        form = synonym.lower().strip()
        if form and form not in texts:
            texts.append(form)
    return KeywordEntry(
        forms=tuple(KeywordForm.from_text(text) for text in texts),
        category=category,
        subcategory=subcategory,
    )


def build_keyword_index(
    categories: Optional[Iterable[Any]],
    synonyms: Optional[Mapping[str, Iterable[str]]] = None,
) -> KeywordIndex:
    """
    Build the keyword index for a category list.

    Args:
        categories: Ordered Category models or raw dicts ({name, subs}).
                    Malformed entries are coerced, never rejected.
        synonyms: Extra vocabulary keyed by alphanumeric label form.
                  Defaults to KEYWORD_SYNONYMS; pass {} to disable.

    Returns:
        Tuple of entries: one per category, each followed by one per
        subcategory, in input order.
    """
    vocabulary = KEYWORD_SYNONYMS if synonyms is None else synonyms
    entries: list[KeywordEntry] = []

    for raw in categories or ():
        category = Category.from_raw(raw)
        entries.append(_entry(category.name, category.name, None, vocabulary))
        for sub in category.subs:
            entries.append(_entry(sub, category.name, sub, vocabulary))

    return tuple(entries)


def index_triples(index: KeywordIndex) -> set[tuple[str, str, Optional[str]]]:
    """Flatten an index to (keyword form, category, subcategory) triples."""
    return {
        (form.text, entry.category, entry.subcategory)
        for entry in index
        for form in entry.forms
    }
