# =============================================
# File: taskpilot/utils/slog.py
# Purpose: Structured JSON request/event logging for the FastAPI layer
# =============================================
from __future__ import annotations
import json
import logging
import uuid
import hashlib
from typing import Any, Dict

_LOGGER_NAME = "taskpilot"

# Written by the middleware; route context may not overwrite them.
_BASE_FIELDS = ("event", "request_id", "method", "path", "status", "latency_ms", "client_ip")

_logger = logging.getLogger(_LOGGER_NAME)
if not _logger.handlers:
    _logger.setLevel(logging.INFO)
    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter("%(message)s"))
    _logger.addHandler(_handler)
    _logger.propagate = True  # pytest caplog


def set_level(level: str) -> None:
    _logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def uhash(user_id: str | None) -> str:
    """Short hash of a user id so request logs never carry the raw id."""
    if not user_id:
        return ""
    return hashlib.sha256(user_id.strip().encode("utf-8")).hexdigest()[:10]


def new_request_id() -> str:
    return uuid.uuid4().hex


def bind(request, **fields: Any) -> Dict[str, Any]:
    """Merge fields into the request's log context (read back by the middleware)."""
    ctx = getattr(request.state, "log_context", None) or {}
    ctx.update(fields)
    request.state.log_context = ctx
    return ctx


def _dumps(rec: Dict[str, Any]) -> str:
    return json.dumps(rec, ensure_ascii=False, default=str)


def log_event(event: str, **fields: Any) -> None:
    rec = {"event": event}
    rec.update(fields)
    _logger.info(_dumps(rec))


def finalize_request_log(
    request_id: str,
    method: str,
    path: str,
    status: int,
    latency_ms: int,
    client_ip: str | None,
    ctx: Dict[str, Any] | None = None,
) -> None:
    payload: Dict[str, Any] = {
        "event": "request.completed",
        "request_id": request_id,
        "method": method,
        "path": path,
        "status": status,
        "latency_ms": latency_ms,
        "client_ip": client_ip or "",
    }
    for key, value in (ctx or {}).items():
        payload[f"ctx_{key}" if key in _BASE_FIELDS else key] = value
    _logger.info(_dumps(payload))
