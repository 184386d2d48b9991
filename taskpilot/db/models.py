# =============================================
# File: taskpilot/db/models.py
# Purpose: SQLModel table for like/dislike feedback records
# =============================================

from sqlmodel import SQLModel, Field


class FeedbackRecord(SQLModel, table=True):
    __tablename__ = "feedback"

    id: str = Field(primary_key=True)
    resource_id: int = Field(index=True)
    action: str
    user_id: str = Field(index=True)
    timestamp: int  # epoch milliseconds

    def to_api(self) -> dict:
        return {
            "id": self.id,
            "resourceId": self.resource_id,
            "action": self.action,
            "userId": self.user_id,
            "timestamp": self.timestamp,
        }
