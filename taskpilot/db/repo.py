# =============================================
# File: taskpilot/db/repo.py
# Purpose: Feedback store: engine bootstrap plus toggle/replace writes and filtered reads
# =============================================
from __future__ import annotations

import threading
import time
import uuid
from pathlib import Path
from typing import List, Optional

from loguru import logger
from sqlmodel import Session, SQLModel, create_engine, select

from .models import FeedbackRecord

FEEDBACK_ACTIONS = ("like", "dislike")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _make_engine(db_url: str):
    connect_args = {}
    if db_url.startswith("sqlite:///"):
        path = db_url[len("sqlite:///"):]
        if path and path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        connect_args = {"check_same_thread": False}
    return create_engine(db_url, echo=False, connect_args=connect_args)


class FeedbackRepository:
    """
    Server-side record of like/dislike feedback, one row per (user, resource).

    Writes follow the ledger's rule: the same action twice removes the row,
    the opposite action replaces it and refreshes the timestamp.
    """

    def __init__(self, db_url: str) -> None:
        self.engine = _make_engine(db_url)
        self._lock = threading.Lock()
        SQLModel.metadata.create_all(self.engine)

    def apply(self, user_id: str, resource_id: int, action: str) -> Optional[FeedbackRecord]:
        """Returns the row after the write, or None when the write was an undo."""
        if action not in FEEDBACK_ACTIONS:
            raise ValueError(f"action must be one of {FEEDBACK_ACTIONS}")

        with self._lock, Session(self.engine) as session:
            stmt = select(FeedbackRecord).where(
                FeedbackRecord.user_id == user_id,
                FeedbackRecord.resource_id == resource_id,
            )
            existing = session.exec(stmt).first()

            if existing is not None and existing.action == action:
                session.delete(existing)
                session.commit()
                logger.info(f"[feedback] user={user_id} removed {action} for resource {resource_id}")
                return None

            if existing is not None:
                existing.action = action
                existing.timestamp = _now_ms()
                row = existing
                logger.info(f"[feedback] user={user_id} changed to {action} for resource {resource_id}")
            else:
                row = FeedbackRecord(
                    id=f"feedback_{_now_ms()}_{uuid.uuid4().hex[:7]}",
                    resource_id=resource_id,
                    action=action,
                    user_id=user_id,
                    timestamp=_now_ms(),
                )
                logger.info(f"[feedback] user={user_id} {action}d resource {resource_id}")

            session.add(row)
            session.commit()
            session.refresh(row)
            return row

    def list(self, user_id: Optional[str] = None, resource_id: Optional[int] = None) -> List[FeedbackRecord]:
        with Session(self.engine) as session:
            stmt = select(FeedbackRecord)
            if user_id:
                stmt = stmt.where(FeedbackRecord.user_id == user_id)
            if resource_id is not None:
                stmt = stmt.where(FeedbackRecord.resource_id == resource_id)
            return list(session.exec(stmt.order_by(FeedbackRecord.timestamp)).all())
