"""
Console helpers: result formatting and the event-loop debounce scheduler.
"""

from unittest.mock import MagicMock

from question_bank.core.bulk import BulkImportReport, ItemOutcome, ItemStatus
from question_bank.core.debounce import Debouncer
from question_bank.core.parser import parse_lines
from question_bank.core.schema import Category, QuestionRecord, ReconcileResult
from question_bank.tui.app import (
    format_catalog,
    format_import_preview,
    format_import_report,
    format_results,
    textual_scheduler,
)


def test_format_results():
    assert format_results(None) == "No search yet"

    result = ReconcileResult(
        category=Category.WFD,
        found=[QuestionRecord(category=Category.WFD, identifier="#1 WFD", content="One", id=1)],
        missing=["#2 WFD"],
        errors={"abc": "NoDigitsFound"},
    )
    assert format_results(result).split("\n") == [
        "Found (1):",
        "  #1 WFD  One",
        "Missing (1):",
        "  #2 WFD",
        "Could not read: abc (NoDigitsFound)",
    ]


def test_format_import_preview():
    outcomes = list(parse_lines("#1 RS First.\njunk\nRA002 Second."))

    lines = format_import_preview(outcomes).split("\n")
    assert lines[0] == "2 question(s) ready, 1 line(s) ignored"
    assert lines[1] == "  #1 RS [RS] First."
    assert lines[-1] == "Ignored lines: 2"


def test_format_import_report_lists_failures():
    report = BulkImportReport(total=2, outcomes=[
        ItemOutcome(index=0, identifier="#1 WFD", category="WFD", status=ItemStatus.SUCCEEDED, id=1),
        ItemOutcome(index=1, identifier="", category=None, status=ItemStatus.FAILED, reason="missing required fields"),
    ])

    assert format_import_report(report).split("\n") == [
        "Imported 1 of 2 questions (1 failed)",
        "  #1 ?: failed - missing required fields",
    ]


def test_textual_scheduler_uses_set_timer():
    owner = MagicMock()
    schedule = textual_scheduler(owner)
    callback = MagicMock()

    handle = schedule(0.5, callback)
    owner.set_timer.assert_called_once_with(0.5, callback)

    handle.cancel()
    owner.set_timer.return_value.stop.assert_called_once()


def test_debouncer_on_textual_timers():
    owner = MagicMock()
    debouncer = Debouncer(0.5, scheduler=textual_scheduler(owner))

    debouncer.schedule(lambda: None)
    debouncer.schedule(lambda: None)

    assert owner.set_timer.call_count == 2
    owner.set_timer.return_value.stop.assert_called_once()


def test_format_catalog():
    records = [QuestionRecord(category=Category.RA, identifier=f"RA{n:03d}", content=f"Item {n}") for n in range(1, 4)]

    assert format_catalog([]) == "No questions"
    assert format_catalog(records).split("\n")[0] == "RA001      Item 1"
    assert format_catalog(records, limit=2).split("\n")[-1] == "... and 1 more"
