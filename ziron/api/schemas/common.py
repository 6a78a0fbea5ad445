"""
Common Pydantic Schemas.

Shared response models used across endpoints.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Detailed error information."""
    type: str = Field(description="Error kind: validation, persistence, broker or internal_error")
    message: str = Field(description="Human-readable error message")
    details: Optional[str] = Field(None, description="Underlying cause (only when EXPOSE_ERROR_DETAILS)")
    violations: Optional[List[Dict[str, Any]]] = Field(None, description="Field-level violations for validation errors")


class ErrorResponse(BaseModel):
    """Standard error response wrapper."""
    success: bool = False
    error: ErrorDetail


class HealthResponse(BaseModel):
    status: str = "healthy"
    service: str
    version: str
    timestamp: datetime
    api: str = "v1"
    queue_backend: str
    scheduler_enabled: bool
