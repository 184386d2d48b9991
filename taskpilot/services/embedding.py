# =============================================
# File: taskpilot/services/embedding.py
# Purpose: Remote embedding gateway (signed bearer token, batch order restored)
# =============================================
from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from ..utils.auth import generate_token, split_api_key
from ..utils.errors import RemoteError


def _error_message(resp: requests.Response) -> str:
    text = resp.text or ""
    try:
        body = resp.json()
    except ValueError:
        return text or resp.reason or "unknown error"
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if body.get("message"):
            return str(body["message"])
    return text or resp.reason or "unknown error"


def _vector(row: Any) -> List[float]:
    try:
        return [float(v) for v in row["embedding"]]
    except (KeyError, TypeError, ValueError) as exc:
        raise RemoteError(f"malformed embedding row: {exc!r}") from exc


class SemanticGateway:
    """
    Turns text into vectors by calling the remote embedding endpoint.

    The credential is validated at construction (ConfigError when missing or not
    `id.secret`); a fresh short-lived token is signed for every call.
    """

    def __init__(
        self,
        api_key: Optional[str],
        url: str,
        model: str = "embedding-2",
        timeout_s: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        split_api_key(api_key)
        self._api_key = api_key
        self.url = url
        self.model = model
        self.timeout_s = timeout_s
        self._http = session or requests.Session()

    def _post(self, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {generate_token(self._api_key)}",
        }
        try:
            resp = self._http.post(self.url, json=payload, headers=headers, timeout=self.timeout_s)
        except requests.Timeout as exc:
            raise RemoteError(f"embedding request timed out after {self.timeout_s}s") from exc
        except requests.RequestException as exc:
            raise RemoteError(f"embedding request failed: {exc}") from exc

        if not resp.ok:
            msg = _error_message(resp)
            logger.warning(f"[embedding] status={resp.status_code} error={msg[:200]}")
            raise RemoteError(msg, status=resp.status_code)

        try:
            body = resp.json()
        except ValueError as exc:
            raise RemoteError("embedding response is not JSON", status=resp.status_code) from exc

        if isinstance(body, dict) and body.get("error"):
            err = body["error"]
            msg = err.get("message") if isinstance(err, dict) else str(err)
            raise RemoteError(f"API Error: {msg}", status=resp.status_code)

        data = body.get("data") if isinstance(body, dict) else None
        if not data:
            raise RemoteError("No embeddings returned from API", status=resp.status_code)
        if not isinstance(data, list):
            raise RemoteError("embedding response data is not a list", status=resp.status_code)
        return data

    def embed(self, text: str) -> List[float]:
        data = self._post({"model": self.model, "input": text})
        return _vector(data[0])

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Vectors in input order; the remote side may answer in any order."""
        if not texts:
            return []
        data = self._post({"model": self.model, "input": list(texts)})
        if len(data) != len(texts):
            raise RemoteError(f"embedding count mismatch: sent {len(texts)}, got {len(data)}")
        try:
            indexed = sorted(((int(row["index"]), row) for row in data), key=lambda pair: pair[0])
        except (KeyError, TypeError, ValueError) as exc:
            raise RemoteError(f"malformed embedding row: {exc!r}") from exc
        if [i for i, _ in indexed] != list(range(len(texts))):
            raise RemoteError(f"embedding indexes do not cover 0..{len(texts) - 1}")
        return [_vector(row) for _, row in indexed]
