from typing import Callable, Iterable, List, Optional

from .domain import CalendarEvent, EventMetadata, Session
from .timezones import from_utc, normalize_zone

NameResolver = Callable[[str], Optional[str]]


def _label(identity: str, resolve_display_name: Optional[NameResolver]) -> str:
    if resolve_display_name is None:
        return identity
    return resolve_display_name(identity) or identity


def project(session: Session, display_zone: str, resolve_display_name: Optional[NameResolver] = None) -> CalendarEvent:
    """
    Render a session for a viewer in `display_zone`.

    Nothing is cached: call again whenever the zone or the session changes.
    """
    zone = normalize_zone(display_zone)
    host_name = _label(session.host_id, resolve_display_name)

    attendees = []
    for participant in session.participants:
        if participant.user_id == session.host_id:
            continue
        name = _label(participant.label, resolve_display_name)
        if name not in attendees:
            attendees.append(name)

    metadata = EventMetadata(
        session_id=session.id,
        host_id=session.host_id,
        host_name=host_name,
        skill=session.skill,
        title=session.title,
        description=session.description,
        meeting_status=session.meeting_status,
        recurrence_rule=session.recurrence_rule,
        series_id=session.series_id,
        attendees=tuple(attendees),
        actual_start_utc=session.actual_start_utc,
        actual_end_utc=session.actual_end_utc,
        host_joined_at_utc=session.host_joined_at_utc,
    )
    return CalendarEvent(
        title=session.title or session.skill,
        start=from_utc(session.start_utc, zone),
        end=from_utc(session.end_utc, zone),
        timezone=zone,
        metadata=metadata,
    )


def project_many(
    sessions: Iterable[Session], display_zone: str, resolve_display_name: Optional[NameResolver] = None
) -> List[CalendarEvent]:
    ordered = sorted(sessions, key=lambda s: s.start_utc)
    return [project(s, display_zone, resolve_display_name) for s in ordered]
