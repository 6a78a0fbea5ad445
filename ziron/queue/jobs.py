"""
Job model shared by producers, brokers and the worker.

Job record (as stored by the broker):
  {
      "id":            broker-assigned identifier,
      "name":          canonical JobType value,
      "data":          JSON payload,
      "state":         queued|active|completed|failed,
      "result":        JSON result of the runner (completed jobs),
      "failed_reason": error message (failed jobs),
      "created_at":    ISO timestamp of enqueue,
      "finished_at":   ISO timestamp of completion/failure,
      "attempts_made": number of times a worker picked it up,
  }
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class JobType(str, Enum):
    NOTIFICATION = "notification"
    DELETE_SOFT_DELETED_COLLECTIONS = "delete-soft-deleted-collections"
    DELETE_SOFT_DELETED_PRODUCTS = "delete-soft-deleted-products"
    DELETE_OLD_NOTIFICATIONS = "delete-old-notifications"
    DELETE_SOFT_DELETED_NOTIFICATIONS = "delete-soft-deleted-notifications"

    @classmethod
    def parse(cls, name: "str | JobType") -> "JobType":
        """
        Resolve a job name to its canonical member.

        Older producers used "Notification", "Notifications" and "send" for the
        notification job. Those are still accepted here but logged, so the
        call sites can be found and moved to the canonical value.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            pass
        if name in LEGACY_ALIASES:
            canonical = LEGACY_ALIASES[name]
            logger.warning("Legacy job name %r mapped to %r", name, canonical.value)
            return canonical
        raise ValueError(f"Unknown job type {name}")


LEGACY_ALIASES = {
    "Notification": JobType.NOTIFICATION,
    "Notifications": JobType.NOTIFICATION,
    "send": JobType.NOTIFICATION,
}


class JobState(str, Enum):
    QUEUED = "queued"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_finished(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class JobHandle:
    """A unit of work on the queue, as last reported by the broker."""
    name: str
    data: Dict[str, Any] = field(default_factory=dict)
    id: str = ""
    state: JobState = JobState.QUEUED
    result: Any = None
    failed_reason: Optional[str] = None
    created_at: str = ""
    finished_at: Optional[str] = None
    attempts_made: int = 0
    # Broker bookkeeping (stream entry id for Redis); never sent to clients.
    entry_id: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            self.id = uuid.uuid4().hex
        if not self.created_at:
            self.created_at = _now_iso()
        self.state = JobState(self.state)

    @property
    def is_completed(self) -> bool:
        return self.state is JobState.COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.state is JobState.FAILED

    @property
    def is_finished(self) -> bool:
        return self.state.is_finished

    def mark_active(self) -> None:
        self.state = JobState.ACTIVE
        self.attempts_made += 1

    def mark_completed(self, result: Any = None) -> None:
        self.state = JobState.COMPLETED
        self.result = result
        self.finished_at = _now_iso()

    def mark_failed(self, reason: str) -> None:
        self.state = JobState.FAILED
        self.failed_reason = reason
        self.finished_at = _now_iso()

    def to_dict(self) -> Dict[str, Any]:
        """Client-facing representation (camelCase keys)."""
        return {
            "jobId": self.id,
            "type": self.name,
            "state": self.state.value,
            "data": self.data,
            "result": self.result,
            "failedReason": self.failed_reason,
            "createdAt": self.created_at,
            "finishedAt": self.finished_at,
            "attemptsMade": self.attempts_made,
        }

    def to_redis(self) -> Dict[str, str]:
        """Flat string mapping for a Redis hash."""
        d = asdict(self)
        d["state"] = self.state.value
        d["data"] = json.dumps(self.data)
        d["result"] = json.dumps(self.result)
        d["attempts_made"] = str(self.attempts_made)
        return {k: ("" if v is None else v) for k, v in d.items()}

    @classmethod
    def from_redis(cls, fields: Dict[str, str]) -> "JobHandle":
        data = dict(fields)
        data["data"] = json.loads(data.get("data") or "{}")
        data["result"] = json.loads(data.get("result") or "null")
        data["attempts_made"] = int(data.get("attempts_made") or 0)
        for key in ("failed_reason", "finished_at", "entry_id"):
            data[key] = data.get(key) or None
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
