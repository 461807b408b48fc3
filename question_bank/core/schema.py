"""
Typed records passed between the parser, the reconciler and the DAO.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Category(str, Enum):
    WFD = "WFD"  # Write-From-Dictation
    RS = "RS"    # Repeat-Sentence
    RA = "RA"    # Repeat-Answer

    @classmethod
    def parse(cls, value) -> "Category":
        """Accept a Category, its tag, or a lower-case tag."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"category must be one of: {[c.value for c in cls]}") from None


@dataclass
class QuestionRecord:
    category: Category
    identifier: str
    content: str
    id: Optional[int] = None
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category.value,
            "identifier": self.identifier,
            "content": self.content,
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class ReconcileResult:
    """Found records and missing identifiers, both in request order."""
    category: Category
    found: List[QuestionRecord] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)  # raw token -> error kind

    @property
    def requested(self) -> int:
        return len(self.found) + len(self.missing)
