from datetime import datetime

import pytz

from ..core.domain import CalendarEvent

ICS_TIME = "%Y%m%dT%H%M%SZ"


def _utc_stamp(value: datetime) -> str:
    return value.astimezone(pytz.utc).strftime(ICS_TIME)


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace(";", "\\;").replace(",", "\\,").replace("\n", "\\n")


def build_session_ics(event: CalendarEvent) -> str:
    meta = event.metadata
    dtstamp = datetime.now(pytz.utc).strftime(ICS_TIME)
    uid = f"{meta.session_id}@session-calendar"
    description = f"Host: {meta.host_name}\n{meta.description or ''}".strip()
    if meta.attendees:
        description = f"Participants: {', '.join(meta.attendees)}\n{description}".strip()
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Session Calendar//EN",
        "METHOD:REQUEST",
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"DTSTAMP:{dtstamp}",
        f"DTSTART:{_utc_stamp(event.start)}",
        f"DTEND:{_utc_stamp(event.end)}",
        f"SUMMARY:{_escape(event.title)}",
        f"DESCRIPTION:{_escape(description)}",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(lines) + "\r\n"
