# =============================================
# File: taskpilot/utils/auth.py
# Purpose: Short-lived HS256 bearer tokens signed from an "id.secret" API key
# =============================================
from __future__ import annotations

import time
from typing import Optional, Tuple

import jwt

from .errors import ConfigError

DEFAULT_TOKEN_TTL_SECONDS = 3600


def split_api_key(api_key: Optional[str]) -> Tuple[str, str]:
    """Return (id, secret). Raises ConfigError when the key is absent or not 'id.secret'."""
    key = (api_key or "").strip()
    if not key:
        raise ConfigError("AI_API_KEY must be configured")
    parts = key.split(".")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ConfigError("Invalid API key format. Expected format: {id}.{secret}")
    return parts[0], parts[1]


def generate_token(
    api_key: Optional[str],
    now: Optional[float] = None,
    ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
) -> str:
    """
    Build a signed token for one remote call.

    Pure given (api_key, now): the same inputs always produce the same token,
    so tests can pin `now`.
    """
    key_id, secret = split_api_key(api_key)
    ts = int(now if now is not None else time.time())
    payload = {"api_key": key_id, "exp": ts + int(ttl_seconds), "timestamp": ts * 1000}
    return jwt.encode(payload, secret, algorithm="HS256", headers={"sign_type": "SIGN"})


def decode_token_payload(token: str) -> dict:
    """Decode (without verifying) the payload. Used for diagnostics and tests."""
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as exc:
        raise ValueError(f"undecodable token: {exc}") from exc
