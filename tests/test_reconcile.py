"""
Reconciliation tests: found vs missing, order, deduplication and
best-effort handling of unreadable tokens.
"""

from unittest.mock import MagicMock

import pytest

from question_bank.core.reconcile import normalize_tokens, reconcile, reconcile_against_repository
from question_bank.core.schema import Category, QuestionRecord


def rec(identifier, category=Category.WFD, record_id=1, content="text"):
    return QuestionRecord(category=category, identifier=identifier, content=content, id=record_id)


def test_found_and_missing_keep_input_order():
    existing = [rec("#2 WFD")]
    result = reconcile(["1", "2", "3"], Category.WFD, existing)

    assert [r.identifier for r in result.found] == ["#2 WFD"]
    assert result.missing == ["#1 WFD", "#3 WFD"]


def test_duplicate_tokens_collapse_to_one_lookup():
    assert reconcile(["1", "1"], Category.WFD, []).missing == ["#1 WFD"]

    result = reconcile(["1", "1"], Category.WFD, [rec("#1 WFD")])
    assert len(result.found) == 1
    assert result.missing == []


def test_equivalent_spellings_deduplicate_after_normalization():
    result = reconcile(["1", "#1 WFD", "wfd1"], Category.WFD, [])
    assert result.missing == ["#1 WFD"]


def test_other_categories_do_not_match():
    existing = [rec("#2 RS", Category.RS)]
    result = reconcile(["2"], Category.WFD, existing)
    assert result.found == []
    assert result.missing == ["#2 WFD"]


def test_first_stored_duplicate_wins():
    existing = [rec("#2 WFD", record_id=5), rec("#2 WFD", record_id=9)]
    result = reconcile(["2"], Category.WFD, existing)
    assert [r.id for r in result.found] == [5]


def test_repeat_answer_tokens_are_padded():
    existing = [rec("RA007", Category.RA)]
    result = reconcile(["7", "RA8"], Category.RA, existing)
    assert [r.identifier for r in result.found] == ["RA007"]
    assert result.missing == ["RA008"]


def test_unreadable_tokens_are_reported_missing_not_raised():
    result = reconcile(["abc", "5", ""], Category.RA, [])
    assert result.missing == ["ABC", "RA005"]
    assert result.errors == {"abc": "NoDigitsFound"}


@pytest.mark.parametrize("tokens", [
    ["1", "2", "2", "3", "#3 WFD", "x"],
    ["10", "9", "8", "10"],
    [],
])
def test_every_token_accounted_for_exactly_once(tokens):
    existing = [rec("#2 WFD"), rec("#9 WFD", record_id=2)]
    result = reconcile(tokens, Category.WFD, existing)
    identifiers, _ = normalize_tokens(tokens, Category.WFD)

    accounted = [r.identifier for r in result.found] + result.missing
    assert sorted(accounted) == sorted(identifiers)
    assert len(accounted) == len(set(accounted))


def test_repository_lookup_uses_membership_query():
    repository = MagicMock()
    repository.query_by_membership.return_value = [rec("#2 RS", Category.RS)]

    result = reconcile_against_repository("1, 2", Category.RS, repository)

    repository.query_by_membership.assert_called_once_with("identifier", ["#1 RS", "#2 RS"])
    assert [r.identifier for r in result.found] == ["#2 RS"]
    assert result.missing == ["#1 RS"]


def test_repository_not_called_without_tokens():
    repository = MagicMock()
    result = reconcile_against_repository(" , ", Category.WFD, repository)

    repository.query_by_membership.assert_not_called()
    assert result.found == [] and result.missing == []


def test_token_canonical_for_another_category_is_kept_under_the_hint():
    existing = [rec("RA001", Category.RA), rec("#001 WFD", record_id=2)]
    result = reconcile(["RA001", "2", "#5 RS"], Category.WFD, existing)

    assert [r.identifier for r in result.found] == ["#001 WFD"]
    assert result.missing == ["#2 WFD", "#5 WFD"]
    assert result.errors == {"RA001": "AmbiguousCategory", "#5 RS": "AmbiguousCategory"}
