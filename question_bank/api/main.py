"""
HTTP API for the question catalog admin front end.
"""

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional
from datetime import datetime

from .schemas import (
    QuestionCreateRequest,
    QuestionBatchCreateRequest,
    QuestionUpdateRequest,
    QuestionResponse,
    QuestionListResponse,
    BatchCreateResponse,
    ConvertRequest,
    ConvertResponse,
    ParsedRecord,
    ImportRequest,
    ImportTextRequest,
    ImportResponse,
    ItemOutcomeResponse,
    ReconcileRequest,
    ReconcileResponse,
    AddMissingRequest,
    HealthResponse,
    DebugResponse,
)
from ..core import dao
from ..core.bulk import import_records
from ..core.catalog import add_question, add_questions, edit_question, list_questions, remove_question
from ..core.config import VERSION, CORS_ORIGINS, debug_enabled, validate_config
from ..core.db import health_check
from ..core.errors import (
    ConflictError,
    DuplicateIdentifierError,
    QuestionBankError,
    RecordNotFound,
    StoreError,
    ValidationError,
)
from ..core.export import export_view
from ..core.parser import parse_block, parse_lines, records_to_json
from ..core.reconcile import reconcile_against_repository
from ..core.schema import Category, QuestionRecord
from ..core.workflow import SearchSession
from ..util.logging import logger

# Initialize the FastAPI application
app = FastAPI(
    title="Question Catalog API",
    version=VERSION,
    description="Admin API for WFD / RS / RA practice questions",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)

# Add CORS middleware to allow the browser front end
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _http_error(e: QuestionBankError) -> HTTPException:
    """Map catalog errors onto HTTP status codes; the message goes through verbatim."""
    if isinstance(e, (DuplicateIdentifierError, ConflictError)):
        status = 409
    elif isinstance(e, ValidationError):
        status = 400
    elif isinstance(e, RecordNotFound):
        status = 404
    elif isinstance(e, StoreError):
        status = 503
    else:
        status = 400
    return HTTPException(status_code=status, detail=str(e))


def _category_param(category: Optional[str]) -> Optional[Category]:
    if not category:
        return None
    try:
        return Category.parse(category)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _question_response(record: QuestionRecord) -> QuestionResponse:
    return QuestionResponse(
        id=record.id,
        category=record.category.value,
        identifier=record.identifier,
        content=record.content,
        version=record.version,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint():
    """Check system health."""
    db_health = health_check()

    return HealthResponse(
        status="healthy" if db_health else "unhealthy",
        version=VERSION,
        db_health=db_health,
        question_count=dao.count() if db_health else 0
    )


@app.get("/questions", response_model=QuestionListResponse)
def list_questions_endpoint(category: Optional[str] = None, search: str = ""):
    """List questions, optionally for one category and filtered by a search term."""
    try:
        records = list_questions(_category_param(category), search)
    except QuestionBankError as e:
        raise _http_error(e)

    return QuestionListResponse(items=[_question_response(r) for r in records], count=len(records))


@app.get("/questions/{question_id}", response_model=QuestionResponse)
def get_question_endpoint(question_id: int):
    try:
        return _question_response(dao.get(question_id))
    except QuestionBankError as e:
        raise _http_error(e)


@app.post("/questions", response_model=QuestionResponse, status_code=201)
def create_question_endpoint(request: QuestionCreateRequest):
    """Add a single question. Existing question numbers are rejected with 409."""
    try:
        record = add_question(Category(request.category), request.identifier, request.content)
    except QuestionBankError as e:
        raise _http_error(e)

    return _question_response(record)


@app.post("/questions/batch", response_model=BatchCreateResponse)
def create_questions_batch_endpoint(request: QuestionBatchCreateRequest):
    """Add one content under several question numbers; existing numbers are skipped."""
    hint = Category(request.category) if request.category else None
    try:
        result = add_questions(request.identifiers, request.content, hint)
    except QuestionBankError as e:
        raise _http_error(e)

    return BatchCreateResponse(
        created=[_question_response(r) for r in result.created],
        skipped=result.skipped,
        errors=result.errors,
    )


@app.patch("/questions/{question_id}", response_model=QuestionResponse)
def update_question_endpoint(question_id: int, request: QuestionUpdateRequest):
    """Edit content and/or question number. Pass version to guard against concurrent edits."""
    try:
        record = edit_question(
            question_id,
            content=request.content,
            raw_identifier=request.identifier,
            expected_version=request.version,
        )
    except QuestionBankError as e:
        raise _http_error(e)

    return _question_response(record)


@app.delete("/questions/{question_id}")
def delete_question_endpoint(question_id: int):
    try:
        remove_question(question_id)
    except QuestionBankError as e:
        raise _http_error(e)

    return {"ok": True, "id": question_id}


@app.post("/convert", response_model=ConvertResponse)
def convert_text_endpoint(request: ConvertRequest):
    """Turn pasted text into records without saving anything."""
    outcomes = list(parse_lines(request.text))
    records = [o.record for o in outcomes if o.record is not None]

    return ConvertResponse(
        records=[
            ParsedRecord(identifier=r.identifier, category=r.category.value, content=r.content)
            for r in records
        ],
        dropped_lines=[o.line_no for o in outcomes if o.record is None],
        json_text=records_to_json(records),
    )


def _import_response(report) -> ImportResponse:
    return ImportResponse(
        total=report.total,
        succeeded=report.succeeded,
        failed=report.failed,
        skipped=report.skipped,
        aborted=report.aborted,
        outcomes=[
            ItemOutcomeResponse(
                index=o.index,
                identifier=o.identifier,
                category=o.category,
                status=o.status.value,
                reason=o.reason,
                id=o.id,
            )
            for o in report.outcomes
        ],
    )


@app.post("/import", response_model=ImportResponse)
def import_records_endpoint(request: ImportRequest):
    """Insert records one by one and report the outcome of each."""
    if not request.records:
        raise HTTPException(status_code=400, detail="Input must be a non-empty array of questions")

    report = import_records(
        [r.model_dump() for r in request.records],
        stop_on_error=request.stop_on_error,
    )
    return _import_response(report)


@app.post("/import/text", response_model=ImportResponse)
def import_text_endpoint(request: ImportTextRequest):
    """Parse pasted text and import every recognised line."""
    records = list(parse_block(request.text))
    if not records:
        raise HTTPException(status_code=400, detail="No question lines recognised in the text")

    report = import_records(records, stop_on_error=request.stop_on_error)
    return _import_response(report)


def _reconcile_response(result) -> ReconcileResponse:
    return ReconcileResponse(
        category=result.category.value,
        found=[_question_response(r) for r in result.found],
        missing=result.missing,
        errors=result.errors,
    )


def _session_error(session: SearchSession) -> HTTPException:
    """Store and validation failures keep their status; input problems are 400."""
    if session.last_exception is not None:
        return _http_error(session.last_exception)
    return HTTPException(status_code=400, detail=session.error)


@app.post("/reconcile", response_model=ReconcileResponse)
def reconcile_endpoint(request: ReconcileRequest):
    """Split requested question numbers into existing questions and missing numbers."""
    session = SearchSession(Category(request.category))
    if session.search(request.tokens) is None:
        raise _session_error(session)

    return _reconcile_response(session.result)


@app.post("/reconcile/add-missing", response_model=ReconcileResponse)
def add_missing_endpoint(request: AddMissingRequest):
    """Add content for one missing number, then return the refreshed reconciliation."""
    session = SearchSession(Category(request.category))
    if session.search(request.tokens) is None:
        raise _session_error(session)
    if not session.select_missing(request.identifier):
        raise _session_error(session)
    identifier = session.selected_missing
    if not session.add_missing(request.content):
        raise _session_error(session)

    logger.log_record_operation("add_missing", session.category.value, identifier)
    return _reconcile_response(session.result)


@app.get("/export")
def export_endpoint(
    category: Optional[str] = None,
    search: str = "",
    tokens: Optional[str] = Query(None, description="Comma-separated numbers; exports the found questions of a reconcile"),
    view: Optional[str] = Query(None, description="all, wfd, rs, ra, search, rs_search, ra_search"),
    bom: Optional[bool] = None,
):
    """Download the current view as CSV."""
    cat = _category_param(category)
    try:
        if tokens:
            if cat is None:
                raise HTTPException(status_code=400, detail="category is required with tokens")
            records = reconcile_against_repository(tokens, cat).found
            default_view = "search" if cat == Category.WFD else f"{cat.value.lower()}_search"
        else:
            records = list_questions(cat, search)
            default_view = "search" if search else (cat.value.lower() if cat else "all")
        export = export_view(records, view or default_view, bom)
    except QuestionBankError as e:
        raise _http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return Response(
        content=export.to_bytes(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@app.get("/debug", response_model=DebugResponse)
def debug_endpoint():
    """Debug information (only available in DEBUG mode)."""
    if not debug_enabled():
        raise HTTPException(status_code=403, detail="Debug endpoint disabled")

    return DebugResponse(
        message="Debug endpoint active",
        timestamp=datetime.now(),
        config_issues=validate_config(),
    )
