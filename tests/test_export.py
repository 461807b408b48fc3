"""
CSV export tests.
"""

import pytest

from question_bank.core.export import BOM, EXPORT_VIEWS, export_view, to_csv
from question_bank.core.schema import Category, QuestionRecord


def test_content_quotes_are_doubled():
    records = [QuestionRecord(category=Category.WFD, identifier="#1 WFD", content='He said "hi"')]

    assert to_csv(records) == 'Identifier,Category,Content\n#1 WFD,WFD,"He said ""hi"""'


def test_commas_stay_inside_the_quoted_content():
    records = [
        QuestionRecord(category=Category.RA, identifier="RA001", content="First, second"),
        QuestionRecord(category=Category.RS, identifier="#2 RS", content="plain"),
    ]
    lines = to_csv(records).split("\n")
    assert lines == ["Identifier,Category,Content", 'RA001,RA,"First, second"', '#2 RS,RS,"plain"']


def test_empty_view_is_just_the_header():
    assert to_csv([]) == "Identifier,Category,Content"


@pytest.mark.parametrize("view,filename,bom", [
    ("all", "questions.csv", False),
    ("ra", "ra_questions.csv", False),
    ("search", "search_results.csv", False),
    ("rs_search", "rs_search_results.csv", True),
    ("ra_search", "ra_search_results.csv", True),
])
def test_views(view, filename, bom):
    export = export_view([], view)
    assert export.filename == filename
    assert export.to_bytes().startswith(BOM.encode("utf-8")) is bom


def test_bom_override_and_unknown_view():
    assert export_view([], "all", bom=True).to_bytes().startswith(b"\xef\xbb\xbf")
    with pytest.raises(ValueError):
        export_view([], "nope")
    assert set(EXPORT_VIEWS) >= {"all", "wfd", "rs", "ra"}
