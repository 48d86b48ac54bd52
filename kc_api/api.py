from __future__ import annotations
from http import HTTPStatus

import structlog
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import require_bearer
from .errors import AIQueueError
from .metrics import metrics
from .models import (
    ErrorResponse,
    KeywordsInput,
    MessageResponse,
    NormalizeInput,
    SubmitTaskResponse,
    SummarizeInput,
    TaskInput,
    TaskStatusResponse,
)
from .service import TaskService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/ai", tags=["ai"], dependencies=[Depends(require_bearer)])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    500: {"model": ErrorResponse, "description": "Broker unreachable"},
    503: {"model": ErrorResponse, "description": "AI queue not configured"},
}


def get_task_service(request: Request) -> TaskService:
    return request.app.state.task_service


async def _submit(service: TaskService, task: TaskInput, label: str) -> SubmitTaskResponse:
    try:
        task_id = await service.submit(task)
    except AIQueueError as e:
        if e.status_code >= 500:
            await metrics.inc("task_submit_failures", 1)
        raise
    await metrics.inc("tasks_submitted", 1)
    return SubmitTaskResponse(task_id=task_id, message=f"{label} task submitted successfully")


@router.post("/summarize", status_code=202, response_model=SubmitTaskResponse, responses=_ERROR_RESPONSES)
async def summarize(req: SummarizeInput, service: TaskService = Depends(get_task_service)):
    return await _submit(service, req, "Summarization")


@router.post("/keywords", status_code=202, response_model=SubmitTaskResponse, responses=_ERROR_RESPONSES)
async def extract_keywords(req: KeywordsInput, service: TaskService = Depends(get_task_service)):
    return await _submit(service, req, "Keyword extraction")


@router.post("/normalize", status_code=202, response_model=SubmitTaskResponse, responses=_ERROR_RESPONSES)
async def normalize_request(req: NormalizeInput, service: TaskService = Depends(get_task_service)):
    return await _submit(service, req, "Normalization")


@router.get(
    "/tasks/{task_id}",
    response_model=TaskStatusResponse,
    response_model_exclude_none=True,
    responses={**_ERROR_RESPONSES, 404: {"model": ErrorResponse, "description": "Task not found"}},
)
async def get_task(task_id: str, service: TaskService = Depends(get_task_service)):
    result = await service.get_task_result(task_id)
    await metrics.inc("task_polls", 1)
    return TaskStatusResponse.from_result(result)


@router.delete("/tasks/{task_id}", response_model=MessageResponse, responses=_ERROR_RESPONSES)
async def delete_task(task_id: str, service: TaskService = Depends(get_task_service)):
    await service.delete_task_result(task_id)
    await metrics.inc("task_deletes", 1)
    return MessageResponse(message="Task result deleted successfully")


# An empty id never matches the routes above; answer it like a blank id.
@router.get("/tasks/", include_in_schema=False)
async def get_task_without_id(service: TaskService = Depends(get_task_service)):
    return await get_task("", service)


@router.delete("/tasks/", include_in_schema=False)
async def delete_task_without_id(service: TaskService = Depends(get_task_service)):
    return await delete_task("", service)


def _error_body(status_code: int, error: str, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message},
        headers=headers,
    )


async def ai_queue_error_handler(request: Request, exc: AIQueueError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request failed",
            method=request.method,
            path=request.url.path,
            status_code=exc.status_code,
            error_class=type(exc).__name__,
            error=exc.message,
        )
    return _error_body(exc.status_code, exc.error, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        field = ".".join(str(loc) for loc in err.get("loc", ()) if loc != "body")
        problems.append(f"{field}: {err.get('msg', 'invalid')}" if field else err.get("msg", "invalid"))
    return _error_body(400, "Invalid request body", "; ".join(problems) or "Invalid request body")


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    try:
        phrase = HTTPStatus(exc.status_code).phrase
    except ValueError:
        phrase = "Error"
    return _error_body(exc.status_code, phrase, str(exc.detail), getattr(exc, "headers", None))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AIQueueError, ai_queue_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
