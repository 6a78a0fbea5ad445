"""
API Schemas Package.

Pydantic models for request/response validation and OpenAPI documentation.
"""

from .common import ErrorDetail, ErrorResponse, HealthResponse
from .notifications import (
    JobResponse,
    MockNotificationRequest,
    NotificationItem,
    NotificationListResponse,
    NotificationUpdateResponse,
)
from .collections import CollectionResponse, CollectionDeleteResponse
from .cache_monitor import CacheInsightsResponse

__all__ = [
    "CacheInsightsResponse",
    "CollectionDeleteResponse",
    "CollectionResponse",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "JobResponse",
    "MockNotificationRequest",
    "NotificationItem",
    "NotificationListResponse",
    "NotificationUpdateResponse",
]
