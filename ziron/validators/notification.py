"""
Notification payload schema.

Checked at every producer before a job is created, and again by the worker
before anything is written.
"""

from typing import Any, Dict, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import PayloadValidationError


class NotificationPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=False, extra="ignore")

    user_id: UUID = Field(alias="userId", description="Recipient user id")
    message: str = Field(min_length=1)
    type: str = Field(min_length=1, description="Free-form category, e.g. 'info' or 'system'")

    def to_job_data(self) -> Dict[str, str]:
        """camelCase dict as carried by queued jobs."""
        return {"userId": str(self.user_id), "message": self.message, "type": self.type}


_FIELD_NAMES = {"user_id": "userId"}


def _violations(exc: ValidationError) -> List[Dict[str, str]]:
    violations = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        field = _FIELD_NAMES.get(loc[0], loc[0]) if loc else "__root__"
        violations.append({"field": field, "message": err.get("msg", ""), "code": err.get("type", "")})
    return violations


def validate_notification_payload(data: Any) -> NotificationPayload:
    """
    Validate an untyped notification payload.

    Returns the typed payload, or raises PayloadValidationError listing every
    violated field (all fields are checked, not just the first failure).
    """
    if isinstance(data, NotificationPayload):
        return data
    try:
        return NotificationPayload.model_validate(data)
    except ValidationError as exc:
        raise PayloadValidationError(_violations(exc)) from exc
