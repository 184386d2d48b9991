# =============================================
# File: taskpilot/routers/prioritize.py
# Purpose: POST /prioritize: order tasks (model override validated, baseline fallback)
# =============================================
from __future__ import annotations

from typing import List, Optional, Union

from fastapi import APIRouter, Request
from pydantic import Field, field_validator

from .common import CamelModel
from ..utils import slog
from ..utils.metrics import record_method
from ..utils.taxonomy import TaskType

router = APIRouter(tags=["prioritize"])


class TaskIn(CamelModel):
    id: Union[int, str]
    title: str = Field(..., min_length=1, max_length=500)
    type: TaskType = "other"
    due_date: Optional[str] = None

    @field_validator("id")
    @classmethod
    def _non_empty_id(cls, v):
        if isinstance(v, str) and not v.strip():
            raise ValueError("Each task must have a valid id")
        return v


class PrioritizeRequest(CamelModel):
    tasks: List[TaskIn]


class PrioritizeResponse(CamelModel):
    prioritized_ids: List[Union[int, str]]
    reasoning: str
    method: str


@router.post("/prioritize", response_model=PrioritizeResponse)
def post_prioritize(req: PrioritizeRequest, request: Request) -> PrioritizeResponse:
    tasks = [t.model_dump(by_alias=True) for t in req.tasks]
    result = request.app.state.prioritizer.prioritize(tasks)

    if len(tasks) > 1:
        record_method(result.method, fallback=result.method == "baseline")
    slog.bind(request, engine=result.method, tasks=len(tasks))
    return PrioritizeResponse(prioritized_ids=result.ids, reasoning=result.reasoning, method=result.method)
