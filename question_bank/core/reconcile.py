"""
Reconciliation of wanted question numbers against stored questions.

Given what the operator typed ("1, 2, 3") and a category, split the request
into questions that already exist and identifiers that are still missing.
Order follows the request; repeated tokens collapse to one lookup.
"""

from typing import Dict, Iterable, List, Sequence, Union

from .errors import NormalizationErrorKind
from .identifiers import format_digits, split_tokens, try_normalize
from .schema import Category, QuestionRecord, ReconcileResult
from ..util.logging import logger


def normalize_tokens(raw_tokens: Iterable[str], category_hint: Category):
    """Normalize and deduplicate tokens (first occurrence wins).

    Returns (identifiers, errors) where errors maps raw token -> error kind for
    tokens that only got a best-effort identifier. A token that is canonical
    for another category is kept as its digits under the hinted category.
    """
    hint = Category.parse(category_hint) if category_hint else None
    identifiers: List[str] = []
    seen = set()
    errors: Dict[str, str] = {}

    for raw in raw_tokens:
        if raw is None or not str(raw).strip():
            continue
        token = str(raw).strip()
        category, identifier, error = try_normalize(token, hint)
        if error is not None:
            errors[token] = error.kind.value
        elif hint is not None and category != hint:
            errors[token] = NormalizationErrorKind.AMBIGUOUS_CATEGORY.value
            identifier = format_digits(token, hint)
        if identifier in seen:
            continue
        seen.add(identifier)
        identifiers.append(identifier)

    return identifiers, errors


def reconcile(raw_tokens: Sequence[str], category_hint: Category,
              existing: Iterable[QuestionRecord]) -> ReconcileResult:
    """Partition the requested tokens into found records and missing identifiers."""
    category = Category.parse(category_hint)
    identifiers, errors = normalize_tokens(raw_tokens, category)

    by_identifier: Dict[str, QuestionRecord] = {}
    for record in existing:
        if record.category != category:
            continue
        # First match wins when the store holds duplicates
        by_identifier.setdefault(record.identifier, record)

    result = ReconcileResult(category=category, errors=errors)
    for identifier in identifiers:
        record = by_identifier.get(identifier)
        if record is not None:
            result.found.append(record)
        else:
            result.missing.append(identifier)

    return result


def reconcile_against_repository(raw_tokens: Union[str, Sequence[str]], category_hint: Category,
                                 repository=None) -> ReconcileResult:
    """Load candidate records from the repository and reconcile.

    raw_tokens may be the operator's comma-separated text or a list of tokens.
    The repository defaults to the SQLite DAO; anything with
    query_by_membership(field, values) works.
    """
    if repository is None:
        from . import dao as repository

    category = Category.parse(category_hint)
    tokens = split_tokens(raw_tokens) if isinstance(raw_tokens, str) else list(raw_tokens)
    identifiers, _ = normalize_tokens(tokens, category)

    existing: List[QuestionRecord] = []
    if identifiers:
        existing = repository.query_by_membership("identifier", identifiers)

    result = reconcile(tokens, category, existing)
    logger.log_reconcile(category.value, result.requested, len(result.found),
                         len(result.missing), len(result.errors))
    return result
