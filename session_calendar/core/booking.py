import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence
from uuid import uuid4

from ..errors import InvalidBookingError, InvalidTimeError, PastTimeError, SchedulingError
from .conflicts import ensure_no_conflicts
from .domain import BookingRequest, RecurrenceRule, Session
from .recurrence import expand
from .timezones import ensure_utc, normalize_zone, wall_clock_to_utc

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid4())


@dataclass
class BookingOutcome:
    accepted: List[Session] = field(default_factory=list)
    error: Optional[SchedulingError] = None

    @property
    def rejected_reason(self) -> Optional[str]:
        return self.error.message if self.error else None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_rejection(self) -> None:
        if self.error is not None:
            raise self.error


def plan_booking(
    request: BookingRequest,
    existing_sessions: Sequence[Session],
    now: datetime,
    id_factory: Callable[[], str] = _new_id,
) -> List[Session]:
    """Build every occurrence of a booking or raise the reason it is refused."""
    zone = normalize_zone(request.zone)
    start = wall_clock_to_utc(request.wall_clock, zone)

    if request.duration_minutes <= 0:
        raise InvalidTimeError("Duration must be positive", duration_minutes=request.duration_minutes)
    end = start + timedelta(minutes=request.duration_minutes)

    if start < ensure_utc(now):
        raise PastTimeError(
            "Meetings can only be scheduled for future times",
            start_utc=start.isoformat(),
        )

    try:
        rule = RecurrenceRule(request.recurrence_rule)
    except ValueError:
        raise InvalidBookingError(
            f"Unknown recurrence {request.recurrence_rule!r}", recurrence_rule=str(request.recurrence_rule)
        ) from None
    if not isinstance(request.occurrences, int) or request.occurrences < 1:
        raise InvalidBookingError("Occurrences must be at least 1", occurrences=request.occurrences)
    occurrences = expand(start, end, rule, request.occurrences)

    identities = {request.host_id} | set(request.host_identities)
    for participant in request.participants:
        identities |= participant.identities
    ensure_no_conflicts(occurrences, identities, existing_sessions)

    series_id = id_factory() if len(occurrences) > 1 else None
    return [
        Session(
            id=id_factory(),
            host_id=request.host_id,
            participants=request.participants,
            start_utc=occ_start,
            end_utc=occ_end,
            timezone=zone,
            recurrence_rule=rule,
            title=request.title,
            description=request.description,
            skill=request.skill or "general",
            duration_minutes=request.duration_minutes,
            series_id=series_id,
        )
        for occ_start, occ_end in occurrences
    ]


def propose_booking(
    request: BookingRequest,
    existing_sessions: Sequence[Session],
    now: datetime,
    id_factory: Callable[[], str] = _new_id,
) -> BookingOutcome:
    try:
        sessions = plan_booking(request, existing_sessions, now, id_factory)
    except SchedulingError as e:
        logger.info(f"Booking for host {request.host_id} rejected: {e.code} - {e.message}")
        return BookingOutcome(error=e)

    logger.info(f"Booking for host {request.host_id} accepted with {len(sessions)} occurrence(s)")
    return BookingOutcome(accepted=sessions)
