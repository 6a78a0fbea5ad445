"""
Notification Schemas.

The request body for /notifications/send is deliberately untyped at the
FastAPI layer; the payload validator reports every violated field itself.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MockNotificationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")


class JobResponse(BaseModel):
    jobId: str
    type: str
    state: str
    data: Dict[str, Any] = Field(default_factory=dict)
    result: Any = None
    failedReason: Optional[str] = None
    createdAt: str
    finishedAt: Optional[str] = None
    attemptsMade: int = 0


class NotificationItem(BaseModel):
    id: str
    userId: str
    message: str
    type: str
    read: bool
    metadata: Optional[Dict[str, Any]] = None
    createdAt: str
    updatedAt: str
    deletedAt: Optional[str] = None


class NotificationListResponse(BaseModel):
    notifications: List[NotificationItem]
    limit: int
    offset: int


class NotificationUpdateResponse(BaseModel):
    updated: int
