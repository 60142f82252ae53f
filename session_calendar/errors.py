from typing import Any, Dict, List, Optional


class SchedulingError(Exception):
    """Base class for every domain failure surfaced to the booking layer."""

    code = "scheduling_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "detail": self.message, **self.details}


class InvalidTimeError(SchedulingError):
    code = "invalid_time"


class PastTimeError(SchedulingError):
    code = "past_time"


class InvalidBookingError(SchedulingError):
    """A booking request that is well-formed but cannot be expanded."""

    code = "invalid_booking"


class ConflictError(SchedulingError):
    code = "conflict"

    def __init__(self, message: str, conflicts: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, conflicts=conflicts or [])
        self.conflicts = conflicts or []


class InvalidTransitionError(SchedulingError):
    code = "invalid_transition"

    NOT_HOST = "not_host"
    INVALID_STATE = "invalid_state"

    def __init__(self, message: str, reason: str = INVALID_STATE, **details: Any):
        super().__init__(message, reason=reason, **details)
        self.reason = reason


class SessionNotFoundError(SchedulingError):
    code = "not_found"

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found", session_id=session_id)
        self.session_id = session_id
