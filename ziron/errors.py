"""
Typed failures for the dispatch path.

Every error carries a `kind` so callers (and the HTTP layer) can tell a bad
payload apart from a database or broker outage without string matching.
"""

from __future__ import annotations

import functools
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError


class DispatchError(Exception):
    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self, *, include_details: bool = False) -> Dict[str, Any]:
        error: Dict[str, Any] = {"type": self.kind, "message": self.message}
        if include_details and self.__cause__ is not None:
            error["details"] = str(self.__cause__)
        return {"success": False, "error": error}


class PayloadValidationError(DispatchError):
    """Payload failed schema validation; `violations` lists every failed field."""

    kind = "validation"
    status_code = 422

    def __init__(self, violations: List[Dict[str, str]], message: str = "Invalid notification input"):
        super().__init__(message)
        self.violations = violations

    @property
    def fields(self) -> List[str]:
        return [v["field"] for v in self.violations]

    def to_dict(self, *, include_details: bool = False) -> Dict[str, Any]:
        body = super().to_dict(include_details=include_details)
        body["error"]["violations"] = self.violations
        return body


class PersistenceError(DispatchError):
    kind = "persistence"
    status_code = 500


class BrokerError(DispatchError):
    kind = "broker"
    status_code = 503

    def __init__(self, message: str, *, job_id: Optional[str] = None):
        super().__init__(message)
        self.job_id = job_id


def wraps_persistence_errors(func):
    """Decorator for async service functions: SQLAlchemy failures become PersistenceError."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Database operation {func.__name__} failed") from exc

    return wrapper
