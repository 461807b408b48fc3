"""
Record repository over the questions table.

insert / get / list_all / query_by_equality / query_by_membership / update /
delete, plus count and lookup helpers. Store failures are logged and raised
as StoreError so callers can show them to the operator.
"""

import sqlite3
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from .db import get_db, init_db
from .config import get_membership_chunk_size
from .errors import ConflictError, RecordNotFound, StoreError, ValidationError
from .identifiers import is_canonical
from .schema import Category, QuestionRecord
from ..api.schemas import QuestionCreateRequest
from ..util.logging import logger

# Initialize database on module import
init_db()

QUERYABLE_FIELDS = ("id", "category", "identifier", "content", "version")
UPDATABLE_FIELDS = ("identifier", "content")

_COLUMNS = "id, category, identifier, content, version, created_at, updated_at"


def _parse_ts(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def _row_to_record(row) -> QuestionRecord:
    record_id, category, identifier, content, version, created_at, updated_at = row
    return QuestionRecord(
        id=record_id,
        category=Category(category),
        identifier=identifier,
        content=content,
        version=version,
        created_at=_parse_ts(created_at),
        updated_at=_parse_ts(updated_at),
    )


def _check_field(field: str) -> str:
    if field not in QUERYABLE_FIELDS:
        raise ValidationError(f"Cannot query on field '{field}'. Allowed: {', '.join(QUERYABLE_FIELDS)}")
    return field


def _query_value(field: str, value):
    # Category enums are stored by tag
    return value.value if isinstance(value, Category) else value


def validate_record(record: QuestionRecord) -> QuestionRecord:
    """Check required fields and the category's identifier form before a write."""
    try:
        request = QuestionCreateRequest(
            category=record.category.value if isinstance(record.category, Category) else (record.category or ""),
            identifier=record.identifier or "",
            content=record.content or "",
        )
    except PydanticValidationError as e:
        messages = "; ".join(err["msg"].replace("Value error, ", "") for err in e.errors())
        raise ValidationError(messages) from e

    category = Category(request.category)
    if not is_canonical(request.identifier, category):
        raise ValidationError(f"Identifier '{request.identifier}' is not in {category.value} form")

    return QuestionRecord(category=category, identifier=request.identifier, content=request.content)


def insert(record: QuestionRecord) -> int:
    """Insert a new question and return its id. The record's own id is ignored."""
    clean = validate_record(record)
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO questions (category, identifier, content) VALUES (?, ?, ?)",
                (clean.category.value, clean.identifier, clean.content)
            )
            conn.commit()
            record_id = cursor.lastrowid
    except sqlite3.Error as e:
        logger.error(f"Database error during insert of '{clean.identifier}': {e}")
        raise StoreError(f"Failed to save question {clean.identifier}: {e}") from e

    logger.log_record_operation("insert", clean.category.value, clean.identifier, record_id, content=clean.content)
    return record_id


def get(record_id: int) -> QuestionRecord:
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {_COLUMNS} FROM questions WHERE id = ?", (record_id,))
            row = cursor.fetchone()
    except sqlite3.Error as e:
        logger.error(f"Failed to get question {record_id}: {e}")
        raise StoreError(f"Failed to load question {record_id}: {e}") from e

    if row is None:
        raise RecordNotFound(record_id)
    return _row_to_record(row)


def list_all(category: Optional[Category] = None) -> List[QuestionRecord]:
    """Every question (optionally one category), in insertion order."""
    if category is not None:
        return query_by_equality("category", Category.parse(category))

    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {_COLUMNS} FROM questions ORDER BY id")
            return [_row_to_record(row) for row in cursor.fetchall()]
    except sqlite3.Error as e:
        logger.error(f"Failed to list questions: {e}")
        raise StoreError(f"Failed to load questions: {e}") from e


def query_by_equality(field: str, value: Any) -> List[QuestionRecord]:
    _check_field(field)
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_COLUMNS} FROM questions WHERE {field} = ? ORDER BY id",
                (_query_value(field, value),)
            )
            return [_row_to_record(row) for row in cursor.fetchall()]
    except sqlite3.Error as e:
        logger.error(f"Failed to query questions by {field}: {e}")
        raise StoreError(f"Failed to query questions: {e}") from e


def query_by_membership(field: str, values: Iterable[Any], chunk_size: Optional[int] = None) -> List[QuestionRecord]:
    """Records whose field is in values.

    The value list is sent in chunks of MEMBERSHIP_CHUNK_SIZE, the way the
    hosted store requires; results from all chunks are merged by id.
    """
    _check_field(field)
    wanted = list(dict.fromkeys(_query_value(field, v) for v in values))
    if not wanted:
        return []

    size = chunk_size or get_membership_chunk_size()
    records: Dict[int, QuestionRecord] = {}
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            for start in range(0, len(wanted), size):
                chunk = wanted[start:start + size]
                placeholders = ", ".join("?" for _ in chunk)
                cursor.execute(
                    f"SELECT {_COLUMNS} FROM questions WHERE {field} IN ({placeholders})",
                    chunk
                )
                for row in cursor.fetchall():
                    record = _row_to_record(row)
                    records[record.id] = record
    except sqlite3.Error as e:
        logger.error(f"Failed to query questions by {field} membership: {e}")
        raise StoreError(f"Failed to query questions: {e}") from e

    return [records[k] for k in sorted(records)]


def find_by_identifier(category: Category, identifier: str) -> Optional[QuestionRecord]:
    """First stored record with this identifier in the category, if any."""
    category = Category.parse(category)
    for record in query_by_equality("identifier", identifier):
        if record.category == category:
            return record
    return None


def update(record_id: int, partial: Dict[str, Any], expected_version: Optional[int] = None) -> QuestionRecord:
    """Apply a partial update and bump the version.

    With expected_version set, the write only happens if the stored version
    still matches; otherwise ConflictError. Without it, last write wins.
    """
    changes = {k: v for k, v in partial.items() if v is not None}
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
    if not changes:
        raise ValidationError("Nothing to update")

    current = get(record_id)
    candidate = QuestionRecord(
        category=current.category,
        identifier=changes.get("identifier", current.identifier),
        content=changes.get("content", current.content),
    )
    clean = validate_record(candidate)

    if expected_version is not None and expected_version != current.version:
        raise ConflictError(record_id, expected_version, current.version)

    sql = (
        "UPDATE questions SET identifier = ?, content = ?, version = version + 1, "
        "updated_at = CURRENT_TIMESTAMP WHERE id = ?"
    )
    params = [clean.identifier, clean.content, record_id]
    if expected_version is not None:
        sql += " AND version = ?"
        params.append(expected_version)

    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(sql, params)
            conn.commit()
            rowcount = cursor.rowcount
    except sqlite3.Error as e:
        logger.error(f"Database error during update of question {record_id}: {e}")
        raise StoreError(f"Failed to update question {record_id}: {e}") from e

    if rowcount == 0:
        # Someone else wrote (or deleted) between our read and our write
        latest = get(record_id)
        raise ConflictError(record_id, expected_version, latest.version)

    logger.log_record_operation("update", clean.category.value, clean.identifier, record_id)
    return get(record_id)


def delete(record_id: int) -> bool:
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM questions WHERE id = ?", (record_id,))
            conn.commit()
            deleted = cursor.rowcount
    except sqlite3.Error as e:
        logger.error(f"Database error during delete of question {record_id}: {e}")
        raise StoreError(f"Failed to delete question {record_id}: {e}") from e

    if not deleted:
        raise RecordNotFound(record_id)

    logger.log_operation("question.delete", "success", {"id": record_id})
    return True


def count(category: Optional[Category] = None) -> int:
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            if category is None:
                cursor.execute("SELECT COUNT(*) FROM questions")
            else:
                cursor.execute("SELECT COUNT(*) FROM questions WHERE category = ?", (Category.parse(category).value,))
            return cursor.fetchone()[0]
    except sqlite3.Error as e:
        logger.error(f"Failed to count questions: {e}")
        return 0
