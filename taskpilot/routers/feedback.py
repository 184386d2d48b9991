# =============================================
# File: taskpilot/routers/feedback.py
# Purpose: /user/feedback: server-side like/dislike store (toggle + filtered listing)
# =============================================
from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Query, Request
from pydantic import Field

from .common import CamelModel
from ..utils import slog

router = APIRouter(tags=["feedback"])


class FeedbackRequest(CamelModel):
    resource_id: int = Field(..., gt=0)
    action: Literal["like", "dislike"]
    user_id: str = Field(..., min_length=1, max_length=128)


@router.post("/user/feedback")
def post_feedback(req: FeedbackRequest, request: Request):
    row = request.app.state.feedback.apply(req.user_id, req.resource_id, req.action)
    slog.bind(request, user=slog.uhash(req.user_id), action=req.action, active=row is not None)
    return {
        "success": True,
        "message": "Feedback recorded" if row is not None else "Feedback removed",
        "resourceId": req.resource_id,
        "action": req.action,
        "userId": req.user_id,
        "active": row is not None,
    }


@router.get("/user/feedback")
def get_feedback(
    request: Request,
    user_id: Optional[str] = Query(None, alias="userId"),
    resource_id: Optional[int] = Query(None, alias="resourceId"),
):
    rows = request.app.state.feedback.list(user_id=user_id, resource_id=resource_id)
    return {
        "success": True,
        "count": len(rows),
        "feedbacks": [r.to_api() for r in rows],
    }
