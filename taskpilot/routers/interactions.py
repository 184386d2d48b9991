# =============================================
# File: taskpilot/routers/interactions.py
# Purpose: Interaction ledger endpoints (record toggles/clicks, read a user's history)
# =============================================
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Request
from pydantic import Field

from .common import CamelModel
from ..services.profiles import Action
from ..utils import slog

router = APIRouter(tags=["interactions"])


class InteractionRequest(CamelModel):
    user_id: str = Field(..., min_length=1, max_length=128)
    resource_id: int = Field(..., gt=0)
    action: Action
    tags: Optional[List[str]] = None


class InteractionResponse(CamelModel):
    user_id: str
    resource_id: int
    action: str
    active: Optional[str] = None


@router.post("/interactions", response_model=InteractionResponse)
def post_interaction(req: InteractionRequest, request: Request) -> InteractionResponse:
    tags = req.tags
    if tags is None:
        # Tags are needed later for liked-tag personalization; take them from the catalog.
        item = request.app.state.store.get(req.resource_id)
        tags = list(item.tags) if item else None

    active = request.app.state.ledger.record(req.user_id, req.resource_id, req.action, tags=tags)
    slog.bind(request, user=slog.uhash(req.user_id), action=req.action, active=active)
    return InteractionResponse(user_id=req.user_id, resource_id=req.resource_id, action=req.action, active=active)


@router.get("/interactions/{user_id}")
def get_interactions(user_id: str, request: Request):
    ledger = request.app.state.ledger
    return {
        "userId": user_id,
        "interactions": ledger.interactions(user_id),
        "likedTags": sorted(ledger.liked_tags(user_id)),
        "stats": ledger.stats(user_id),
    }
