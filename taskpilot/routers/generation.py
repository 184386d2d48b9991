# =============================================
# File: taskpilot/routers/generation.py
# Purpose: Text-generation endpoints: /decompose, /weekly-report, /resource-detail
# =============================================
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response
from loguru import logger
from pydantic import Field, field_validator

from .common import CamelModel, client_key, consume_quota, require_generator
from ..services.generation import decompose_task, describe_resource, empty_weekly_report, write_weekly_report
from ..utils.errors import ParseError, RemoteError
from ..utils import slog
from ..utils.metrics import record_method, record_remote_error
from ..utils.taxonomy import TaskType

router = APIRouter(tags=["generation"])

MARKDOWN = "text/markdown; charset=utf-8"


def _unavailable(e: RemoteError) -> HTTPException:
    record_remote_error()
    return HTTPException(status_code=503, detail={"error": "AI service unavailable", "details": str(e)})


# --------- /decompose ---------

class DecomposeRequest(CamelModel):
    task_title: str = Field(..., max_length=500)
    description: Optional[str] = Field(None, max_length=4000)
    user_id: Optional[str] = Field(None, max_length=128)

    @field_validator("task_title")
    @classmethod
    def _trim_title(cls, v: str) -> str:
        v = (v or "").strip()
        if len(v) < 2:
            raise ValueError("taskTitle must be at least 2 characters")
        return v


class DecomposeResponse(CamelModel):
    subtasks: List[str]
    remaining: int


@router.post("/decompose", response_model=DecomposeResponse)
def post_decompose(req: DecomposeRequest, request: Request) -> DecomposeResponse:
    generator = require_generator(request)
    remaining = consume_quota(request, client_key(request, req.user_id), "decompose")

    try:
        subtasks = decompose_task(generator, req.task_title, req.description)
    except RemoteError as e:
        raise _unavailable(e)
    except ParseError as e:
        logger.error(f"[decompose] unparseable model output: {e.raw[:200]!r}")
        raise HTTPException(
            status_code=502,
            detail={"error": "Failed to generate valid subtasks", "rawResponse": e.raw},
        )

    slog.bind(request, subtasks=len(subtasks))
    return DecomposeResponse(subtasks=subtasks, remaining=remaining)


# --------- /weekly-report ---------

class CompletedTask(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)
    type: TaskType = "other"
    completed_at: Optional[str] = None


class WeeklyReportRequest(CamelModel):
    tasks: List[CompletedTask]
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    team_name: Optional[str] = Field(None, max_length=200)
    user_id: Optional[str] = Field(None, max_length=128)


@router.post("/weekly-report", response_class=Response)
def post_weekly_report(req: WeeklyReportRequest, request: Request) -> Response:
    """Markdown body; the X-Report-Method header says how it was produced."""
    if not req.tasks:
        slog.bind(request, engine="empty")
        return Response(
            content=empty_weekly_report(req.start_date, req.end_date),
            media_type=MARKDOWN,
            headers={"X-Report-Method": "empty"},
        )

    generator = require_generator(request)
    consume_quota(request, client_key(request, req.user_id), "weeklyReport")

    tasks = [t.model_dump(by_alias=True) for t in req.tasks]
    report, method = write_weekly_report(generator, tasks, req.start_date, req.end_date, req.team_name)

    record_method(method, fallback=method == "fallback")
    slog.bind(request, engine=method, tasks=len(tasks))
    return Response(content=report, media_type=MARKDOWN, headers={"X-Report-Method": method})


# --------- /resource-detail ---------

class ResourceDetailRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1, max_length=4000)
    type: Optional[str] = None


class ResourceDetailResponse(CamelModel):
    detail: str


@router.post("/resource-detail", response_model=ResourceDetailResponse)
def post_resource_detail(req: ResourceDetailRequest, request: Request) -> ResourceDetailResponse:
    generator = require_generator(request)
    try:
        detail = describe_resource(generator, req.title, req.description, req.type)
    except RemoteError as e:
        raise _unavailable(e)
    slog.bind(request, chars=len(detail))
    return ResourceDetailResponse(detail=detail)
