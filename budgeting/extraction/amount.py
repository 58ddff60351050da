"""
Amount Extractor

Finds the most plausible transaction amount in recognised speech or OCR text.

Rules, applied to the lowercased text:
1. Collect every decimal number (digits, optionally "." and 1-2 digits).
2. No digits at all -> read the first English number phrase
   ("twenty-three", "seventeen") by summing its word values.
3. One number -> that number.
   Several numbers and a refund keyword ("paid 100, got 67 back") ->
   largest minus smallest.
   Several numbers otherwise -> their sum.

KNOWN LIMITATIONS (kept on purpose, the word grammar is additive only):
- "one hundred" reads as 1, not 100.
- "-5" reads as 5; "1,000" reads as the two numbers 1 and 0.

Number words must stand alone and the longest word wins, so "seventeen"
reads as 17 and "phone" contains no "one". This is stricter than a plain
substring search on purpose.
"""

import re
from decimal import Decimal, localcontext

_CENT = Decimal("0.01")

NUMBER_PATTERN = re.compile(r"[0-9]+(?:\.[0-9]{1,2})?")

REFUND_KEYWORDS: tuple[str, ...] = ("change", "returned", "refund", "cashback", "got back")

ONES: dict[str, int] = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4,
    "five": 5, "six": 6, "seven": 7, "eight": 8, "nine": 9,
}
TEENS: dict[str, int] = {
    "ten": 10, "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14,
    "fifteen": 15, "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
}
TENS: dict[str, int] = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}
WORD_VALUES: dict[str, int] = {**ONES, **TEENS, **TENS}


def _alternation(words) -> str:
    # Longest first so "seventeen" is not read as "seven".
    return "|".join(sorted(words, key=len, reverse=True))


WORD_NUMBER_PATTERN = re.compile(
    r"\b(?:%s)(?:[\s-](?:%s))?\b"
    % (_alternation(WORD_VALUES), _alternation(w for w in ONES if w != "zero"))
)


def words_to_number(phrase: str) -> int:
    """Sum the value of every recognised number word in the phrase."""
    return sum(WORD_VALUES.get(word, 0) for word in re.split(r"[\s-]+", phrase.lower()))


def find_numbers(text: str) -> list[Decimal]:
    """Every decimal number in the text, in order of appearance."""
    return [Decimal(match) for match in NUMBER_PATTERN.findall(text or "")]


def has_refund_keyword(text: str) -> bool:
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in REFUND_KEYWORDS)


def extract_amount(text: str) -> Decimal:
    """
    Most plausible amount in the text, quantized to cents.

    Returns Decimal("0.00") when no number is found. Never raises.
    """
    lowered = (text or "").lower()

    # Enough precision that no run of digits in the text can overflow.
    with localcontext() as ctx:
        ctx.prec = 28 + len(lowered)

        numbers = find_numbers(lowered)
        if not numbers:
            match = WORD_NUMBER_PATTERN.search(lowered)
            if match:
                numbers.append(Decimal(words_to_number(match.group(0))))

        if not numbers:
            amount = Decimal(0)
        elif len(numbers) == 1:
            amount = numbers[0]
        elif has_refund_keyword(lowered):
            amount = max(numbers) - min(numbers)
        else:
            amount = sum(numbers, Decimal(0))

        return amount.quantize(_CENT)
