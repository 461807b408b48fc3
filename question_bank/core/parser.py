"""
Text-block parser: pasted text -> question records.

One record per line:

    #418 WFD University graduates lose their time finding jobs.
    #123 RS Please close the door when you leave.
    RA001 This is a repeat after question.

Lines that fit neither shape are dropped; their absence from the output is
the only signal. The identifiers produced here are already canonical.
"""

import json
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

from .errors import ParseError
from .schema import Category, QuestionRecord
from ..util.logging import logger

_HASH_LINE = re.compile(r"^#(?P<digits>\d+)\s*(?P<tag>WFD|RS)\s+(?P<rest>.+)$")
_RA_LINE = re.compile(r"^(?P<identifier>RA\d{3})\s+(?P<rest>.+)$")


@dataclass
class ParseOutcome:
    line_no: int
    raw: str
    record: Optional[QuestionRecord] = None
    error: Optional[ParseError] = None

    @property
    def matched(self) -> bool:
        return self.record is not None


def parse_line(line: str) -> Optional[QuestionRecord]:
    """Parse a single line, or return None if it has no recognised shape."""
    text = line.strip()
    if not text:
        return None

    match = _HASH_LINE.match(text)
    if match:
        tag = match.group("tag")
        content = match.group("rest").strip()
        if content:
            return QuestionRecord(
                category=Category(tag),
                identifier=f"#{match.group('digits')} {tag}",
                content=content,
            )

    match = _RA_LINE.match(text)
    if match:
        content = match.group("rest").strip()
        if content:
            return QuestionRecord(
                category=Category.RA,
                identifier=match.group("identifier"),
                content=content,
            )

    return None


def parse_lines(text: str) -> Iterator[ParseOutcome]:
    """Yield an outcome for every non-blank line, matched or not."""
    for line_no, line in enumerate((text or "").splitlines(), start=1):
        if not line.strip():
            continue
        record = parse_line(line)
        error = None
        if record is None:
            error = ParseError(line, line_no)
            logger.log_parse_drop(error)
        yield ParseOutcome(line_no=line_no, raw=line, record=record, error=error)


def parse_block(text: str) -> Iterator[QuestionRecord]:
    """Lazily yield the records found in a text block, in line order.

    Stateless: calling it again on the same text gives the same records.
    """
    for outcome in parse_lines(text):
        if outcome.record is not None:
            yield outcome.record


def records_to_json(records: Iterable[QuestionRecord]) -> str:
    """Pretty-printed JSON array ready for the bulk import box."""
    payload: List[dict] = [
        {"identifier": r.identifier, "category": r.category.value, "content": r.content}
        for r in records
    ]
    return json.dumps(payload, indent=2, ensure_ascii=False)
