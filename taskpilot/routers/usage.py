# =============================================
# File: taskpilot/routers/usage.py
# Purpose: Monthly quota status per user
# =============================================
from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["usage"])


@router.get("/usage/{user_id}")
def get_usage(user_id: str, request: Request):
    """Used / limit / remaining for every gated feature in the current month."""
    return {"userId": user_id, **request.app.state.quota.status(user_id)}
