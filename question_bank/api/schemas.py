"""
Request/response models for the question catalog API.
"""

from pydantic import BaseModel, field_validator, model_validator
from typing import Optional, List, Dict, Union
from datetime import datetime

VALID_CATEGORIES = ['WFD', 'RS', 'RA']


def _check_category(v):
    if v is None:
        return v
    value = str(v).strip().upper()
    if value not in VALID_CATEGORIES:
        raise ValueError(f'category must be one of: {VALID_CATEGORIES}')
    return value


class QuestionCreateRequest(BaseModel):
    category: str
    identifier: str
    content: str

    @field_validator('category')
    @classmethod
    def category_must_be_valid(cls, v):
        return _check_category(v)

    @field_validator('identifier')
    @classmethod
    def identifier_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('identifier cannot be empty')
        return v.strip()

    @field_validator('content')
    @classmethod
    def content_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('content cannot be empty')
        return v.strip()


class QuestionBatchCreateRequest(BaseModel):
    """Several question numbers sharing one content (comma-separated or a list)."""
    identifiers: Union[str, List[str]]
    content: str
    category: Optional[str] = None

    @field_validator('category')
    @classmethod
    def category_must_be_valid(cls, v):
        return _check_category(v)

    @field_validator('content')
    @classmethod
    def content_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('content cannot be empty')
        return v.strip()


class QuestionUpdateRequest(BaseModel):
    content: Optional[str] = None
    identifier: Optional[str] = None
    version: Optional[int] = None

    @model_validator(mode='after')
    def something_to_update(self):
        if self.content is None and self.identifier is None:
            raise ValueError('provide content and/or identifier')
        if self.content is not None and not self.content.strip():
            raise ValueError('content cannot be empty')
        if self.identifier is not None and not self.identifier.strip():
            raise ValueError('identifier cannot be empty')
        return self


class QuestionResponse(BaseModel):
    id: int
    category: str
    identifier: str
    content: str
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class QuestionListResponse(BaseModel):
    items: List[QuestionResponse]
    count: int


class BatchCreateResponse(BaseModel):
    created: List[QuestionResponse]
    skipped: List[str]
    errors: Dict[str, str]


class ConvertRequest(BaseModel):
    text: str


class ParsedRecord(BaseModel):
    identifier: str
    category: str
    content: str


class ConvertResponse(BaseModel):
    records: List[ParsedRecord]
    dropped_lines: List[int]
    json_text: str


class ImportRecord(BaseModel):
    # Lenient on purpose: bad items become per-item failures instead of a 422 for the batch
    identifier: str = ""
    category: Optional[str] = None
    content: str = ""


class ImportRequest(BaseModel):
    records: List[ImportRecord]
    stop_on_error: Optional[bool] = None


class ImportTextRequest(BaseModel):
    text: str
    stop_on_error: Optional[bool] = None


class ItemOutcomeResponse(BaseModel):
    index: int
    identifier: str
    category: Optional[str] = None
    status: str
    reason: Optional[str] = None
    id: Optional[int] = None


class ImportResponse(BaseModel):
    total: int
    succeeded: int
    failed: int
    skipped: int
    aborted: bool
    outcomes: List[ItemOutcomeResponse]


class ReconcileRequest(BaseModel):
    tokens: Union[str, List[str]]
    category: str

    @field_validator('category')
    @classmethod
    def category_must_be_valid(cls, v):
        return _check_category(v)


class ReconcileResponse(BaseModel):
    category: str
    found: List[QuestionResponse]
    missing: List[str]
    errors: Dict[str, str]


class AddMissingRequest(ReconcileRequest):
    identifier: str
    content: str

    @field_validator('content')
    @classmethod
    def content_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('content cannot be empty')
        return v.strip()


class HealthResponse(BaseModel):
    status: str
    version: str
    db_health: bool
    question_count: int


class DebugResponse(BaseModel):
    message: str
    timestamp: datetime
    config_issues: List[str]
