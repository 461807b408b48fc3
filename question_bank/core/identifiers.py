"""
Identifier normalization.

Each category keeps its own canonical identifier convention:

    WFD  ->  "#418 WFD"
    RS   ->  "#123 RS"
    RA   ->  "RA007"   (zero-padded to three digits, longer numbers kept)

Operators type all sorts of things ("418", "WFD001", "ra7", "#123 RS") and
normalize() maps them onto one of those forms. The conventions live in a
small strategy table so a new category only needs a pattern and a formatter.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Pattern, Tuple

from .config import get_default_category
from .errors import NormalizationError, NormalizationErrorKind
from .schema import Category

_DIGIT_RUN = re.compile(r"\d+")
_LETTER_RUN = re.compile(r"[A-Z]+")
_TOKEN_SEPARATORS = re.compile(r"[,;\r\n]+")


@dataclass(frozen=True)
class IdentifierStrategy:
    category: Category
    pattern: Pattern
    formatter: Callable[[str], str]

    def is_canonical(self, value: str) -> bool:
        return bool(self.pattern.match(value))

    def format(self, digits: str) -> str:
        return self.formatter(digits)


STRATEGIES: Dict[Category, IdentifierStrategy] = {
    Category.WFD: IdentifierStrategy(
        Category.WFD, re.compile(r"^#\d+ WFD$"), lambda digits: f"#{digits} WFD"
    ),
    Category.RS: IdentifierStrategy(
        Category.RS, re.compile(r"^#\d+ RS$"), lambda digits: f"#{digits} RS"
    ),
    Category.RA: IdentifierStrategy(
        Category.RA, re.compile(r"^RA\d{3,}$"), lambda digits: f"RA{digits.zfill(3)}"
    ),
}


def _explicit_tags(upper: str) -> List[Category]:
    tags = []
    for word in _LETTER_RUN.findall(upper):
        if word in Category.__members__ and Category(word) not in tags:
            tags.append(Category(word))
    return tags


def normalize(raw: str, category_hint: Optional[Category] = None) -> Tuple[Category, str]:
    """Map a raw operator token to (category, canonical identifier).

    Raises NormalizationError when the token has no digits, or when it names a
    category that conflicts with another tag or with the hint.
    """
    text = (raw or "").strip()
    upper = text.upper()
    hint = Category.parse(category_hint) if category_hint else None

    for strategy in STRATEGIES.values():
        if strategy.is_canonical(upper):
            return strategy.category, upper

    digit_runs = _DIGIT_RUN.findall(upper)
    if not digit_runs:
        raise NormalizationError(NormalizationErrorKind.NO_DIGITS_FOUND, text)
    # max() keeps the first of equally long runs
    digits = max(digit_runs, key=len)

    tags = _explicit_tags(upper)
    if len(tags) > 1:
        raise NormalizationError(
            NormalizationErrorKind.AMBIGUOUS_CATEGORY, text,
            f"tags {', '.join(t.value for t in tags)}"
        )
    explicit = tags[0] if tags else None
    if hint and explicit and hint != explicit:
        raise NormalizationError(
            NormalizationErrorKind.AMBIGUOUS_CATEGORY, text,
            f"tag {explicit.value} conflicts with {hint.value}"
        )

    category = hint or explicit or Category.parse(get_default_category())
    return category, STRATEGIES[category].format(digits)


def try_normalize(raw: str, category_hint: Optional[Category] = None) -> Tuple[Category, str, Optional[NormalizationError]]:
    """Best-effort normalize for batch use.

    Never raises; on failure the hinted (or default) formatter is applied to
    whatever digits exist, or the trimmed upper-case token is returned as is.
    """
    try:
        category, identifier = normalize(raw, category_hint)
        return category, identifier, None
    except NormalizationError as e:
        category = Category.parse(category_hint) if category_hint else Category.parse(get_default_category())
        return category, format_digits(raw, category) or (raw or "").strip().upper(), e


def format_digits(raw: str, category: Category) -> Optional[str]:
    """Apply the category's formatter to the longest digit run of raw, if any."""
    digit_runs = _DIGIT_RUN.findall((raw or "").upper())
    if not digit_runs:
        return None
    return STRATEGIES[Category.parse(category)].format(max(digit_runs, key=len))


def is_canonical(identifier: str, category: Category) -> bool:
    return STRATEGIES[Category.parse(category)].is_canonical(identifier or "")


def split_tokens(text: str) -> List[str]:
    """Split comma / semicolon / newline separated operator input, dropping blanks."""
    if not text:
        return []
    return [token.strip() for token in _TOKEN_SEPARATORS.split(text) if token.strip()]


def identifier_sort_key(identifier: str) -> Tuple[int, int, str]:
    """Sort by the number inside the identifier; identifiers without one go last."""
    digits = "".join(_DIGIT_RUN.findall(identifier or ""))
    if not digits:
        return (1, 0, identifier or "")
    return (0, int(digits), identifier)
