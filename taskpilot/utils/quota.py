# =============================================
# File: taskpilot/utils/quota.py
# Purpose: Per-user, per-feature monthly usage quota with automatic month rollover
# =============================================

from __future__ import annotations

import datetime as dt
import json
import os
import threading
from pathlib import Path
from typing import Callable, Dict, Optional

from loguru import logger

# Fixed monthly ceilings per feature.
FEATURE_LIMITS: Dict[str, int] = {
    "decompose": 5,
    "recommend": 3,
    "weeklyReport": 1,
}

FEATURE_NAMES: Dict[str, str] = {
    "decompose": "AI task decomposition",
    "recommend": "AI resource recommendation",
    "weeklyReport": "Weekly report generation",
}


def month_key(now: dt.datetime) -> str:
    return f"{now.year}-{now.month:02d}"


class UsageQuota:
    """
    Monthly counters keyed by (user, feature).

    A stored record from a prior month is treated as zero usage. try_consume()
    is the only mutator and checks-and-increments under one lock. Consumed
    units are never refunded, even when the call they paid for fails.
    """

    def __init__(
        self,
        path: Optional[Path | str] = None,
        limits: Optional[Dict[str, int]] = None,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ) -> None:
        self._path = Path(path) if path else None
        self._limits = dict(limits or FEATURE_LIMITS)
        self._clock = clock
        self._lock = threading.Lock()
        self._store: Dict[str, dict] = {}
        self._load()

    def _load(self) -> None:
        if not self._path:
            return
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                self._store = data
        except FileNotFoundError:
            pass
        except (OSError, ValueError) as e:
            logger.warning(f"[quota] could not read {self._path}, starting empty: {e}")

    def _flush(self) -> None:
        if not self._path:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = str(self._path) + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._store, f, ensure_ascii=False, indent=2)
        os.replace(tmp, self._path)

    def limit(self, feature: str) -> int:
        if feature not in self._limits:
            raise ValueError(f"unknown feature: {feature!r}")
        return self._limits[feature]

    def _current(self, user_id: str) -> dict:
        """Record for the current month; a prior-month record reads as zero usage."""
        month = month_key(self._clock())
        rec = self._store.get(user_id)
        if not isinstance(rec, dict) or rec.get("month") != month:
            rec = {"month": month, "counts": {}}
        return rec

    def used(self, user_id: str, feature: str) -> int:
        self.limit(feature)
        with self._lock:
            return int(self._current(user_id)["counts"].get(feature, 0))

    def remaining(self, user_id: str, feature: str) -> int:
        lim = self.limit(feature)
        return max(0, lim - self.used(user_id, feature))

    def try_consume(self, user_id: str, feature: str) -> bool:
        """Consume one unit. False (quota exceeded) or a failed save leaves the counter untouched."""
        lim = self.limit(feature)
        with self._lock:
            rec = self._current(user_id)
            used = int(rec["counts"].get(feature, 0))
            if used >= lim:
                logger.info(f"[quota] user={user_id} feature={feature} exhausted ({used}/{lim})")
                return False
            prev = self._store.get(user_id)
            self._store[user_id] = {"month": rec["month"], "counts": {**rec["counts"], feature: used + 1}}
            try:
                self._flush()
            except OSError:
                if prev is None:
                    self._store.pop(user_id, None)
                else:
                    self._store[user_id] = prev
                raise
            return True

    def status(self, user_id: str) -> Dict[str, dict]:
        with self._lock:
            rec = self._current(user_id)
            out = {}
            for feature, lim in self._limits.items():
                used = int(rec["counts"].get(feature, 0))
                out[feature] = {
                    "used": used,
                    "limit": lim,
                    "remaining": max(0, lim - used),
                    "name": FEATURE_NAMES.get(feature, feature),
                }
            return {"month": rec["month"], "features": out}

    def reset(self) -> None:
        """For tests: clear all counters."""
        with self._lock:
            self._store.clear()
            self._flush()
