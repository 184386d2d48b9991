# =============================================
# File: taskpilot/routers/recommend.py
# Purpose: POST /recommend: quota-gated resource ranking with exclusions
# =============================================
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import Field, field_validator

from .common import CamelModel, client_key, consume_quota
from ..services.recommender import RankQuery
from ..utils.errors import CatalogUnavailable
from ..utils import slog
from ..utils.metrics import record_method
from ..utils.taxonomy import TaskType

router = APIRouter(tags=["recommend"])


class RecommendRequest(CamelModel):
    """
    - task_title: at least 2 characters after trimming.
    - user_id: quota key; also used to pull liked tags from the ledger.
    - liked_tags: explicit personalization tags (overrides the ledger).
    - exclude_ids: resources already shown to the caller.
    """
    task_title: str = Field(..., max_length=500)
    task_type: TaskType
    description: str = Field("", max_length=4000)
    user_id: Optional[str] = Field(None, max_length=128)
    liked_tags: Optional[List[str]] = None
    exclude_ids: List[int] = Field(default_factory=list)

    @field_validator("task_title")
    @classmethod
    def _trim_title(cls, v: str) -> str:
        v = (v or "").strip()
        if len(v) < 2:
            raise ValueError("taskTitle must be at least 2 characters")
        return v


class ResourceOut(CamelModel):
    id: int
    title: str
    url: str
    description: str
    tags: List[str]


class RecommendResponse(CamelModel):
    resources: List[ResourceOut]
    method: Optional[str] = None
    message: Optional[str] = None
    remaining: int


@router.post("/recommend", response_model=RecommendResponse)
def post_recommend(req: RecommendRequest, request: Request) -> RecommendResponse:
    key = client_key(request, req.user_id)
    remaining = consume_quota(request, key, "recommend")

    liked = req.liked_tags
    if liked is None and req.user_id:
        liked = sorted(request.app.state.ledger.liked_tags(req.user_id))

    query = RankQuery(
        title=req.task_title,
        task_type=req.task_type,
        description=req.description,
        liked_tags=set(liked or []),
    )
    try:
        result = request.app.state.ranker.rank(query, exclude_ids=req.exclude_ids)
    except CatalogUnavailable as e:
        raise HTTPException(status_code=503, detail={"error": str(e)})

    record_method(result.method, fallback=result.method == "heuristic")
    slog.bind(request, engine=result.method, results=len(result.items), exhausted=result.exhausted)

    return RecommendResponse(
        resources=[ResourceOut(**it.public_dict()) for it in result.items],
        method=result.method,
        message="All resources have been shown" if result.exhausted else None,
        remaining=remaining,
    )
