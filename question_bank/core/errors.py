"""
Error taxonomy for the question catalog.

Parse and normalization failures are recovered close to where they happen
(a dropped line, a token reported as missing). Validation and store errors
travel up to the API / console and are shown to the operator verbatim.
"""

from enum import Enum
from typing import Optional


class QuestionBankError(Exception):
    """Base class for all catalog errors."""


class ParseError(QuestionBankError):
    """A text line did not match any recognised record shape."""

    def __init__(self, line: str, line_no: Optional[int] = None):
        self.line = line
        self.line_no = line_no
        where = f"line {line_no}" if line_no is not None else "line"
        super().__init__(f"Unrecognised {where}: {line[:80]}")


class NormalizationErrorKind(str, Enum):
    NO_DIGITS_FOUND = "NoDigitsFound"
    AMBIGUOUS_CATEGORY = "AmbiguousCategory"


class NormalizationError(QuestionBankError):
    """A raw token could not be turned into a canonical identifier."""

    def __init__(self, kind: NormalizationErrorKind, raw: str, detail: str = ""):
        self.kind = kind
        self.raw = raw
        message = f"{kind.value}: '{raw}'"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class ValidationError(QuestionBankError):
    """A required field is missing or malformed before a write."""


class DuplicateIdentifierError(ValidationError):
    def __init__(self, category: str, identifier: str):
        self.category = category
        self.identifier = identifier
        super().__init__(f"Question number already exists: {identifier} ({category})")


class StoreError(QuestionBankError):
    """The record store failed or is unavailable."""


class RecordNotFound(StoreError):
    def __init__(self, record_id):
        self.record_id = record_id
        super().__init__(f"Question not found: {record_id}")


class ConflictError(StoreError):
    """Update carried a version that no longer matches the stored record."""

    def __init__(self, record_id, expected_version: int, actual_version: int):
        self.record_id = record_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Question {record_id} was modified by someone else "
            f"(expected version {expected_version}, found {actual_version})"
        )
