# =============================================
# File: taskpilot/routers/common.py
# Purpose: Shared request schema base + app.state accessors used by the routers
# =============================================
from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Request
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..services.generation import TextGenerator
from ..utils import slog
from ..utils.metrics import record_quota_denied


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys (taskTitle, userId, ...)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def client_key(request: Request, user_id: Optional[str]) -> str:
    """Quota key: the user id, falling back to the client IP."""
    if user_id and user_id.strip():
        return user_id.strip()
    return request.client.host if request.client else "anon"


def consume_quota(request: Request, key: str, feature: str) -> int:
    """Consume one unit or raise 429. Returns what is left this month."""
    quota = request.app.state.quota
    if not quota.try_consume(key, feature):
        record_quota_denied(feature)
        slog.bind(request, user=slog.uhash(key), feature=feature, quota_exceeded=True)
        raise HTTPException(
            status_code=429,
            detail={
                "error": "Monthly quota exceeded",
                "feature": feature,
                "limit": quota.limit(feature),
                "remaining": 0,
            },
        )
    remaining = quota.remaining(key, feature)
    slog.bind(request, user=slog.uhash(key), feature=feature, quota_exceeded=False, remaining=remaining)
    return remaining


def require_generator(request: Request) -> TextGenerator:
    generator = getattr(request.app.state, "generator", None)
    if generator is None:
        raise HTTPException(status_code=500, detail={"error": "AI API is not configured properly"})
    return generator
