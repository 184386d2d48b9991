# =============================================
# File: taskpilot/services/profiles.py
# Purpose: Per-user interaction ledger (like/dislike toggles, clicks) backed by JSON
# =============================================

from __future__ import annotations

import json
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Dict, List, Literal, Optional, Set

from loguru import logger

Action = Literal["click", "like", "dislike", "ignore"]
ACTIONS = ("click", "like", "dislike", "ignore")
TOGGLE_ACTIONS = ("like", "dislike")

FeedbackSink = Callable[[str, int, str], object]


class InteractionLedger:
    """
    Interaction store with toggle semantics:
    - like/dislike: at most one active record per (user, resource). Recording
      the same action again removes it (undo); the opposite action replaces it
      and refreshes the timestamp.
    - click/ignore: append-only, never collide with like/dislike.

    Tags passed to record() are cached per resource so liked_tags() can be
    derived later. Every like/dislike write is forwarded to `feedback_sink` on a
    single background worker, so writes reach the sink in record order; a
    failing sink is logged and never fails the toggle.

    Persistence: JSON file (optional). Read-modify-write runs under one lock;
    a failed save rolls the in-memory state back before the error propagates.
    """

    def __init__(
        self,
        path: Optional[Path | str] = None,
        feedback_sink: Optional[FeedbackSink] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._path = Path(path) if path else None
        self._lock = threading.Lock()
        self._users: Dict[str, List[dict]] = {}
        self._tags: Dict[str, List[str]] = {}
        self._sink = feedback_sink
        self._clock = clock
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="feedback")
        self._pending: Set[Future] = set()
        self._pending_lock = threading.Lock()
        self._load()

    # ---------- persistence ----------

    def _load(self) -> None:
        if not self._path:
            return
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self._users = {str(k): list(v) for k, v in (data.get("users") or {}).items()}
            self._tags = {str(k): list(v) for k, v in (data.get("resource_tags") or {}).items()}
        except FileNotFoundError:
            pass
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"[ledger] could not read {self._path}, starting empty: {e}")
            self._users, self._tags = {}, {}

    def _flush(self) -> None:
        if not self._path:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = str(self._path) + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump({"users": self._users, "resource_tags": self._tags}, f, ensure_ascii=False, indent=2)
        os.replace(tmp, self._path)

    # ---------- feedback write-through ----------

    def _emit_feedback(self, user_id: str, resource_id: int, action: str) -> None:
        if self._sink is None:
            return
        fut = self._executor.submit(self._sink, user_id, resource_id, action)
        with self._pending_lock:
            self._pending.add(fut)
        fut.add_done_callback(self._on_feedback_done)

    def _on_feedback_done(self, fut: Future) -> None:
        with self._pending_lock:
            self._pending.discard(fut)
        exc = fut.exception()
        if exc is not None:
            logger.error(f"[ledger] feedback write failed: {exc!r}")

    def flush_feedback(self, timeout: Optional[float] = None) -> None:
        """Wait for outstanding feedback writes (shutdown/tests)."""
        with self._pending_lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    # ---------- operations ----------

    def record(
        self,
        user_id: str,
        resource_id: int,
        action: Action,
        tags: Optional[List[str]] = None,
    ) -> Optional[str]:
        """
        Apply one interaction. Returns the active like/dislike for the resource
        after the call (None after an undo, or when none is active).
        """
        if action not in ACTIONS:
            raise ValueError(f"unknown action: {action!r}")
        rid = int(resource_id)
        now_ms = int(self._clock() * 1000)

        with self._lock:
            had_user = user_id in self._users
            prev_rows = list(self._users.get(user_id, []))
            prev_tags = dict(self._tags)

            if tags:
                clean = [t for t in (str(x).strip() for x in tags) if t]
                if clean:
                    self._tags[str(rid)] = clean

            rows = self._users.setdefault(user_id, [])

            if action in TOGGLE_ACTIONS:
                idx = next(
                    (i for i, r in enumerate(rows) if r["resourceId"] == rid and r["action"] in TOGGLE_ACTIONS),
                    None,
                )
                if idx is not None and rows[idx]["action"] == action:
                    rows.pop(idx)
                    active = None
                elif idx is not None:
                    rows[idx] = {"resourceId": rid, "action": action, "timestamp": now_ms}
                    active = action
                else:
                    rows.append({"resourceId": rid, "action": action, "timestamp": now_ms})
                    active = action
            else:
                rows.append({"resourceId": rid, "action": action, "timestamp": now_ms})
                active = self._active_toggle(rows, rid)

            try:
                self._flush()
            except OSError:
                if had_user:
                    self._users[user_id] = prev_rows
                else:
                    self._users.pop(user_id, None)
                self._tags = prev_tags
                raise

            # submitted under the lock so queue order matches record order
            if action in TOGGLE_ACTIONS:
                self._emit_feedback(user_id, rid, action)
        return active

    @staticmethod
    def _active_toggle(rows: List[dict], rid: int) -> Optional[str]:
        for r in rows:
            if r["resourceId"] == rid and r["action"] in TOGGLE_ACTIONS:
                return r["action"]
        return None

    def interaction_for(self, user_id: str, resource_id: int) -> Optional[str]:
        """Active like/dislike if any, else the latest click/ignore, else None."""
        rid = int(resource_id)
        with self._lock:
            rows = self._users.get(user_id, [])
            active = self._active_toggle(rows, rid)
            if active:
                return active
            for r in reversed(rows):
                if r["resourceId"] == rid:
                    return r["action"]
        return None

    def liked_resource_ids(self, user_id: str) -> List[int]:
        with self._lock:
            return [r["resourceId"] for r in self._users.get(user_id, []) if r["action"] == "like"]

    def liked_tags(self, user_id: str) -> Set[str]:
        """Union of cached tags over currently liked resources; untagged likes add nothing."""
        with self._lock:
            out: Set[str] = set()
            for r in self._users.get(user_id, []):
                if r["action"] == "like":
                    out.update(self._tags.get(str(r["resourceId"]), []))
            return out

    def interactions(self, user_id: str) -> List[dict]:
        with self._lock:
            return [dict(r) for r in self._users.get(user_id, [])]

    def stats(self, user_id: str) -> Dict[str, int]:
        rows = self.interactions(user_id)
        counts = {a: 0 for a in ACTIONS}
        for r in rows:
            counts[r["action"]] = counts.get(r["action"], 0) + 1
        return {
            "totalInteractions": len(rows),
            "clicks": counts["click"],
            "likes": counts["like"],
            "dislikes": counts["dislike"],
            "ignores": counts["ignore"],
        }

    def clear(self, user_id: str) -> None:
        with self._lock:
            prev = self._users.pop(user_id, None)
            try:
                self._flush()
            except OSError:
                if prev is not None:
                    self._users[user_id] = prev
                raise
