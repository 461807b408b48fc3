"""
CSV export of a question view.

    Identifier,Category,Content
    #418 WFD,WFD,"University graduates lose their time finding jobs."

Content is always quoted with embedded quotes doubled; identifier and
category are written as they are. Search-result views used by spreadsheet
users get a UTF-8 byte-order mark.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from .schema import QuestionRecord

HEADER = "Identifier,Category,Content"
BOM = "﻿"


@dataclass(frozen=True)
class ExportView:
    filename: str
    bom: bool = False


EXPORT_VIEWS: Dict[str, ExportView] = {
    "all": ExportView("questions.csv"),
    "wfd": ExportView("wfd_questions.csv"),
    "rs": ExportView("rs_questions.csv"),
    "ra": ExportView("ra_questions.csv"),
    "search": ExportView("search_results.csv"),
    "rs_search": ExportView("rs_search_results.csv", bom=True),
    "ra_search": ExportView("ra_search_results.csv", bom=True),
}


@dataclass
class CsvExport:
    filename: str
    text: str
    bom: bool = False

    def to_bytes(self) -> bytes:
        return ((BOM if self.bom else "") + self.text).encode("utf-8")


def quote_field(value: str) -> str:
    return '"' + (value or "").replace('"', '""') + '"'


def format_row(record: QuestionRecord) -> str:
    return ",".join([record.identifier, record.category.value, quote_field(record.content)])


def to_csv(records: Iterable[QuestionRecord]) -> str:
    return "\n".join([HEADER] + [format_row(r) for r in records])


def export_view(records: Iterable[QuestionRecord], view: str = "all", bom: Optional[bool] = None) -> CsvExport:
    """Render records for a named view; bom overrides the view's default."""
    try:
        export_spec = EXPORT_VIEWS[view]
    except KeyError:
        raise ValueError(f"Unknown export view '{view}'. Known: {', '.join(EXPORT_VIEWS)}") from None

    return CsvExport(
        filename=export_spec.filename,
        text=to_csv(records),
        bom=export_spec.bom if bom is None else bom,
    )
