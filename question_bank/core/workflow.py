"""
Operator search workflow.

    IDLE -> SEARCHING -> RESULTS(found, missing) -> ADDING_MISSING -> RESULTS'
                                                 +-> IDLE (reset)

After a missing question is added the search is run again against the
store; results are never patched locally.
"""

from enum import Enum
from typing import List, Optional, Sequence, Union

from .errors import QuestionBankError
from .identifiers import split_tokens
from .reconcile import normalize_tokens, reconcile_against_repository
from .schema import Category, QuestionRecord, ReconcileResult


class SessionState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    RESULTS = "results"
    ADDING_MISSING = "adding_missing"


class SearchSession:
    """One operator's search box for a single category."""

    def __init__(self, category: Category, repository=None):
        if repository is None:
            from . import dao as repository
        self.category = Category.parse(category)
        self.repository = repository
        self.state = SessionState.IDLE
        self.tokens: List[str] = []
        self.result: Optional[ReconcileResult] = None
        self.selected_missing: Optional[str] = None
        self.error: Optional[str] = None
        self.message: Optional[str] = None
        self.last_exception: Optional[QuestionBankError] = None

    @property
    def found(self) -> List[QuestionRecord]:
        return list(self.result.found) if self.result else []

    @property
    def missing(self) -> List[str]:
        return list(self.result.missing) if self.result else []

    def search(self, text: Union[str, Sequence[str]]) -> Optional[ReconcileResult]:
        tokens = split_tokens(text) if isinstance(text, str) else [t.strip() for t in text if t and t.strip()]
        self.message = None
        self.last_exception = None
        if not tokens:
            self.error = "Please enter valid numbers"
            if self.result is None:
                self.state = SessionState.IDLE
            return None

        previous = self.state
        self.state = SessionState.SEARCHING
        self.error = None
        try:
            result = reconcile_against_repository(tokens, self.category, self.repository)
        except QuestionBankError as e:
            self.error = str(e)
            self.last_exception = e
            self.state = previous if previous != SessionState.SEARCHING else SessionState.IDLE
            return None

        self.tokens = tokens
        self.result = result
        self.selected_missing = None
        self.state = SessionState.RESULTS
        return result

    def select_missing(self, identifier: str) -> bool:
        """Pick a missing number; "1" is accepted for "#1 WFD" in the WFD session."""
        candidate = (identifier or "").strip()
        if self.result is not None and candidate not in self.result.missing:
            normalized, _ = normalize_tokens([candidate], self.category)
            candidate = normalized[0] if normalized else candidate
        if self.result is None or candidate not in self.result.missing:
            self.error = f"{identifier} is not in the missing list"
            return False
        self.selected_missing = candidate
        self.error = None
        self.state = SessionState.ADDING_MISSING
        return True

    def cancel_adding(self) -> None:
        self.selected_missing = None
        if self.state == SessionState.ADDING_MISSING:
            self.state = SessionState.RESULTS

    def add_missing(self, content: str) -> bool:
        """Insert the selected missing question, then search again."""
        if self.state != SessionState.ADDING_MISSING or not self.selected_missing:
            self.error = "Select a missing question number first"
            return False
        if not (content or "").strip():
            self.error = "Please enter the question content"
            return False

        identifier = self.selected_missing
        try:
            self.repository.insert(QuestionRecord(
                category=self.category,
                identifier=identifier,
                content=content.strip(),
            ))
        except QuestionBankError as e:
            self.error = str(e)
            self.last_exception = e
            return False

        self.selected_missing = None
        self.state = SessionState.RESULTS
        if self.search(self.tokens) is None:
            return False
        self.message = f"Added {identifier}"
        return True

    def reset(self) -> None:
        self.state = SessionState.IDLE
        self.tokens = []
        self.result = None
        self.selected_missing = None
        self.error = None
        self.message = None
