"""
Catalog operations used by the API and the console: listing with search,
single and multi-number creation, and edits that re-normalize identifiers.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from .errors import DuplicateIdentifierError, NormalizationError, ValidationError
from .identifiers import identifier_sort_key, normalize, split_tokens
from .schema import Category, QuestionRecord
from ..util.logging import logger


def _repository(repository):
    if repository is None:
        from . import dao as repository
    return repository


def list_questions(category: Optional[Category] = None, search_term: str = "",
                   repository=None) -> List[QuestionRecord]:
    """Questions of one category (or all), filtered and sorted by number.

    The search term matches case-insensitively anywhere in the content or
    the identifier.
    """
    repository = _repository(repository)
    records = repository.list_all(Category.parse(category) if category else None)

    term = (search_term or "").strip().lower()
    if term:
        records = [
            r for r in records
            if term in r.content.lower() or term in r.identifier.lower()
        ]

    return sorted(records, key=lambda r: identifier_sort_key(r.identifier))


def add_question(category: Category, raw_identifier: str, content: str,
                 repository=None) -> QuestionRecord:
    """Create one question; refuses an identifier that already exists."""
    repository = _repository(repository)
    category = Category.parse(category)
    if not (content or "").strip():
        raise ValidationError("content cannot be empty")

    try:
        resolved, identifier = normalize(raw_identifier, category)
    except NormalizationError as e:
        raise ValidationError(f"Invalid question number: {e}") from e
    if resolved != category:
        raise ValidationError(f"Question number {identifier} is not a {category.value} number")

    if repository.find_by_identifier(category, identifier) is not None:
        raise DuplicateIdentifierError(category.value, identifier)

    record = QuestionRecord(category=category, identifier=identifier, content=content.strip())
    record.id = repository.insert(record)
    return repository.get(record.id)


@dataclass
class BatchCreateResult:
    created: List[QuestionRecord] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)


def add_questions(raw_identifiers: Union[str, Sequence[str]], content: str,
                  category_hint: Optional[Category] = None,
                  repository=None) -> BatchCreateResult:
    """Create the same content under several question numbers.

    Numbers that already exist are skipped; numbers that cannot be
    normalized are reported in errors. Inserts run one after another.
    """
    repository = _repository(repository)
    if not (content or "").strip():
        raise ValidationError("content cannot be empty")

    tokens = split_tokens(raw_identifiers) if isinstance(raw_identifiers, str) else list(raw_identifiers)
    if not tokens:
        raise ValidationError("Please enter at least one question number")

    hint = Category.parse(category_hint) if category_hint else None
    result = BatchCreateResult()
    seen = set()

    for token in tokens:
        try:
            category, identifier = normalize(token, hint)
        except NormalizationError as e:
            result.errors[token] = e.kind.value
            continue

        if (category, identifier) in seen:
            continue
        seen.add((category, identifier))

        if repository.find_by_identifier(category, identifier) is not None:
            result.skipped.append(identifier)
            continue

        record = QuestionRecord(category=category, identifier=identifier, content=content.strip())
        record.id = repository.insert(record)
        result.created.append(repository.get(record.id))

    logger.log_operation("question.batch_create", "success", {
        "created": len(result.created),
        "skipped": len(result.skipped),
        "errors": len(result.errors),
    })
    return result


def edit_question(record_id: int, content: Optional[str] = None, raw_identifier: Optional[str] = None,
                  expected_version: Optional[int] = None, repository=None) -> QuestionRecord:
    """Change content and/or identifier; the identifier is normalized for the record's category."""
    repository = _repository(repository)
    partial = {}

    if content is not None:
        if not content.strip():
            raise ValidationError("content cannot be empty")
        partial["content"] = content.strip()

    if raw_identifier is not None:
        current = repository.get(record_id)
        try:
            resolved, identifier = normalize(raw_identifier, current.category)
        except NormalizationError as e:
            raise ValidationError(f"Invalid question number: {e}") from e
        if resolved != current.category:
            raise ValidationError(f"Question number {identifier} is not a {current.category.value} number")
        if identifier != current.identifier:
            other = repository.find_by_identifier(current.category, identifier)
            if other is not None and other.id != record_id:
                raise DuplicateIdentifierError(current.category.value, identifier)
        partial["identifier"] = identifier

    return repository.update(record_id, partial, expected_version=expected_version)


def remove_question(record_id: int, repository=None) -> bool:
    return _repository(repository).delete(record_id)
