from datetime import date
from typing import Any, Dict, Iterable, Optional
from fastapi import HTTPException


class SchedulingError(HTTPException):
    """
    Base for every error the scheduling engine returns to a caller.

    The detail is a structured object so that clients can branch on `code`
    and `reason` instead of parsing messages:
        {"code": "conflict", "reason": "trainer_unavailable", "message": "..."}
    """
    status_code = 400
    code = "scheduling_error"

    def __init__(self, reason: str, message: str, **context: Any):
        self.reason = reason
        detail: Dict[str, Any] = {
            "code": self.code,
            "reason": reason,
            "message": message,
        }
        detail.update(context)
        super().__init__(status_code=self.status_code, detail=detail)


class ValidationError(SchedulingError):
    """Malformed input, or a referenced entity is missing or inactive."""
    status_code = 400
    code = "validation_error"


class ConflictError(SchedulingError):
    """The requested slot is taken, or a recurring batch has unavailable dates."""
    status_code = 409
    code = "conflict"

    def __init__(self, reason: str, message: str, unavailable_dates: Optional[Iterable[date]] = None, **context: Any):
        self.unavailable_dates = sorted(unavailable_dates) if unavailable_dates else []
        if self.unavailable_dates:
            context["unavailable_dates"] = [d.isoformat() for d in self.unavailable_dates]
        super().__init__(reason, message, **context)


class PolicyViolationError(SchedulingError):
    """Outside the cancellation or reschedule window."""
    status_code = 422
    code = "policy_violation"

    def __init__(self, reason: str, message: str, hours_before: Optional[float] = None, **context: Any):
        self.hours_before = hours_before
        if hours_before is not None:
            context["hours_before"] = round(hours_before, 2)
        super().__init__(reason, message, **context)


class AuthorizationError(SchedulingError):
    status_code = 403
    code = "forbidden"


class NotFoundError(SchedulingError):
    status_code = 404
    code = "not_found"
