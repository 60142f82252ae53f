import logging
from datetime import date, datetime
from typing import Iterable, List, Sequence, Set, Tuple

from ..errors import ConflictError
from .domain import BookingStatus, Session, TimeSlot, normalize_identity
from .timezones import generate_time_slots

logger = logging.getLogger(__name__)


def identity_set(identities: Iterable[str]) -> Set[str]:
    return {i for i in (normalize_identity(v) for v in identities) if i}


def involved_identities(session: Session) -> Set[str]:
    """Host plus every participant's user id and email."""
    involved = {session.host_id}
    for participant in session.participants:
        involved |= participant.identities
    return involved


def overlaps(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    # Half-open windows: touching endpoints are not an overlap
    return start < other_end and end > other_start


def _blocks(session: Session) -> bool:
    return session.status != BookingStatus.CANCELLED


def conflicting_sessions(
    candidate_start: datetime,
    candidate_end: datetime,
    participant_ids: Iterable[str],
    existing_sessions: Iterable[Session],
) -> List[Session]:
    wanted = identity_set(participant_ids)
    clashes = []
    for session in existing_sessions:
        if not _blocks(session):
            continue
        if not overlaps(candidate_start, candidate_end, session.start_utc, session.end_utc):
            continue
        shared = involved_identities(session) & wanted
        if shared:
            logger.debug(f"Conflict with session {session.id} ({session.title!r}) for {sorted(shared)}")
            clashes.append(session)
    return clashes


def has_conflict(
    candidate_start: datetime,
    candidate_end: datetime,
    participant_ids: Iterable[str],
    existing_sessions: Iterable[Session],
) -> bool:
    return bool(conflicting_sessions(candidate_start, candidate_end, participant_ids, existing_sessions))


def find_conflicts(
    occurrences: Sequence[Tuple[datetime, datetime]],
    participant_ids: Iterable[str],
    existing_sessions: Sequence[Session],
) -> List[dict]:
    wanted = identity_set(participant_ids)
    found = []
    for index, (start, end) in enumerate(occurrences):
        for session in conflicting_sessions(start, end, wanted, existing_sessions):
            found.append(
                {
                    "occurrence": index,
                    "start_utc": start.isoformat(),
                    "end_utc": end.isoformat(),
                    "session_id": session.id,
                }
            )
    return found


def ensure_no_conflicts(
    occurrences: Sequence[Tuple[datetime, datetime]],
    participant_ids: Iterable[str],
    existing_sessions: Sequence[Session],
) -> None:
    """Reject the whole batch if any single occurrence clashes."""
    found = find_conflicts(occurrences, participant_ids, existing_sessions)
    if found:
        raise ConflictError(
            "This time conflicts with another session for you or an invited participant",
            conflicts=found,
        )


def find_available_slots(
    day: date,
    zone: str,
    participant_ids: Iterable[str],
    existing_sessions: Sequence[Session],
    start_hour: int = 9,
    end_hour: int = 17,
    interval_minutes: int = 30,
) -> List[TimeSlot]:
    wanted = identity_set(participant_ids)
    slots = []
    for slot in generate_time_slots(day, zone, start_hour, end_hour, interval_minutes):
        busy = has_conflict(slot.start_utc, slot.end_utc, wanted, existing_sessions)
        slots.append(TimeSlot(slot.start_utc, slot.end_utc, slot.timezone, available=not busy))
    return slots
