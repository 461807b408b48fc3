"""
Sequential bulk import.

Records are inserted one after another so progress can be reported as
completed / total. Each item gets an outcome (succeeded, failed with a
reason, or skipped after an abort). Already inserted records are never
rolled back.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from .config import bulk_stop_on_error
from .errors import NormalizationError, QuestionBankError, ValidationError
from .identifiers import normalize
from .schema import Category, QuestionRecord
from ..util.logging import logger

ProgressCallback = Callable[[int, int], None]


class ItemStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ItemOutcome:
    index: int
    identifier: str
    category: Optional[str]
    status: ItemStatus
    reason: Optional[str] = None
    id: Optional[int] = None


@dataclass
class BulkImportReport:
    total: int
    outcomes: List[ItemOutcome] = field(default_factory=list)
    aborted: bool = False

    def _count(self, status: ItemStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def succeeded(self) -> int:
        return self._count(ItemStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(ItemStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(ItemStatus.SKIPPED)

    @property
    def message(self) -> str:
        if self.aborted:
            first = next(o for o in self.outcomes if o.status == ItemStatus.FAILED)
            return (f"Import stopped at item {first.index}: {first.reason}. "
                    f"{self.succeeded} of {self.total} questions were imported.")
        if self.failed:
            return f"Imported {self.succeeded} of {self.total} questions ({self.failed} failed)"
        return f"Successfully imported {self.succeeded} questions"


def coerce_record(item: Union[QuestionRecord, Mapping[str, Any]]) -> QuestionRecord:
    """Turn an import item into a record with a canonical identifier.

    Accepts QuestionRecord or a mapping with identifier / category / content
    (questionNo / type are accepted too, as exported by older tools).
    """
    if isinstance(item, QuestionRecord):
        raw_identifier, raw_category, content = item.identifier, item.category, item.content
    elif isinstance(item, Mapping):
        raw_identifier = item.get("identifier") or item.get("questionNo") or ""
        raw_category = item.get("category") or item.get("type")
        content = item.get("content") or ""
    else:
        raise ValidationError(f"Unsupported import item: {type(item).__name__}")

    if not str(raw_identifier).strip() or not str(content).strip():
        raise ValidationError("missing required fields (identifier, content)")

    try:
        hint = Category.parse(raw_category) if raw_category else None
    except ValueError as e:
        raise ValidationError(str(e)) from e

    try:
        category, identifier = normalize(str(raw_identifier), hint)
    except NormalizationError as e:
        raise ValidationError(f"invalid identifier: {e}") from e

    if hint is not None and category != hint:
        raise ValidationError(f"identifier {identifier} does not belong to category {hint.value}")

    return QuestionRecord(category=category, identifier=identifier, content=str(content).strip())


def import_records(items: Iterable[Union[QuestionRecord, Mapping[str, Any]]],
                   stop_on_error: Optional[bool] = None,
                   progress: Optional[ProgressCallback] = None,
                   repository=None) -> BulkImportReport:
    """Insert items one at a time and return the per-item outcome log.

    stop_on_error=True aborts the remaining items after the first failure
    (they are reported as skipped); the default comes from BULK_STOP_ON_ERROR.
    """
    if repository is None:
        from . import dao as repository
    if stop_on_error is None:
        stop_on_error = bulk_stop_on_error()

    items = list(items)
    report = BulkImportReport(total=len(items))

    for index, item in enumerate(items):
        if report.aborted:
            report.outcomes.append(ItemOutcome(
                index=index,
                identifier=_raw_identifier(item),
                category=None,
                status=ItemStatus.SKIPPED,
                reason="import stopped after an earlier failure",
            ))
            continue

        try:
            record = coerce_record(item)
            record_id = repository.insert(record)
        except QuestionBankError as e:
            report.outcomes.append(ItemOutcome(
                index=index,
                identifier=_raw_identifier(item),
                category=None,
                status=ItemStatus.FAILED,
                reason=str(e),
            ))
            logger.warning(f"Bulk import item {index} failed: {e}")
            if stop_on_error:
                report.aborted = True
                if progress:
                    progress(0, report.total)
            elif progress:
                progress(index + 1, report.total)
            continue

        report.outcomes.append(ItemOutcome(
            index=index,
            identifier=record.identifier,
            category=record.category.value,
            status=ItemStatus.SUCCEEDED,
            id=record_id,
        ))
        completed = index + 1
        logger.log_bulk_progress(completed, report.total, report.failed)
        if progress:
            progress(completed, report.total)

    logger.log_bulk_summary(report.total, report.succeeded, report.failed, report.skipped, report.aborted)
    return report


def _raw_identifier(item) -> str:
    if isinstance(item, QuestionRecord):
        return item.identifier or ""
    if isinstance(item, Mapping):
        return str(item.get("identifier") or item.get("questionNo") or "")
    return ""
