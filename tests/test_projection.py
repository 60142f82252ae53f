from datetime import timedelta

from conftest import make_session, utc
from session_calendar.core.domain import MeetingStatus, ParticipantRef
from session_calendar.core.lifecycle import start_meeting
from session_calendar.core.projection import project, project_many
from session_calendar.utils.ics_utils import build_session_ics


NAMES = {"host-1": "Hana Host", "learner-1": "Leo Learner"}


def resolve(identity):
    return NAMES.get(identity)


def _session(**overrides):
    return make_session(
        start=utc(2031, 8, 2, 5, 30),
        minutes=40,
        host="host-1",
        participants=(ParticipantRef(user_id="learner-1", email="leo@example.com"), "guest@example.com"),
        title="Intro to pottery",
        skill="pottery",
        **overrides,
    )


class TestProject:
    def test_localizes_to_display_zone(self):
        event = project(_session(), "Asia/Tokyo")
        assert event.timezone == "Asia/Tokyo"
        assert (event.start.hour, event.start.minute) == (14, 30)
        assert (event.end.hour, event.end.minute) == (15, 10)
        assert event.start == utc(2031, 8, 2, 5, 30)

    def test_metadata(self):
        event = project(_session(), "UTC", resolve)
        meta = event.metadata
        assert meta.session_id == "s1"
        assert meta.host_id == "host-1"
        assert meta.host_name == "Hana Host"
        assert meta.skill == "pottery"
        assert meta.meeting_status == MeetingStatus.NOT_STARTED
        assert meta.attendees == ("Leo Learner", "guest@example.com")
        assert meta.actual_start_utc is None
        assert event.title == "Intro to pottery"

    def test_without_resolver_uses_identities(self):
        meta = project(_session(), "UTC").metadata
        assert meta.host_name == "host-1"
        assert meta.attendees == ("learner-1", "guest@example.com")

    def test_lifecycle_fields_follow_session(self):
        live = start_meeting(_session(), "host-1", utc(2031, 8, 2, 5, 28))
        meta = project(live, "UTC").metadata
        assert meta.meeting_status == MeetingStatus.LIVE
        assert meta.actual_start_utc == utc(2031, 8, 2, 5, 28)
        assert meta.host_joined_at_utc == utc(2031, 8, 2, 5, 28)

    def test_unknown_zone_renders_in_utc(self):
        event = project(_session(), "Not/AZone")
        assert event.timezone == "UTC"
        assert event.start.hour == 5

    def test_idempotent(self):
        session = _session()
        assert project(session, "Europe/Paris", resolve) == project(session, "Europe/Paris", resolve)

    def test_project_many_orders_by_start(self):
        later = make_session("later", start=utc(2031, 8, 3, 9, 0))
        earlier = make_session("earlier", start=utc(2031, 8, 1, 9, 0))
        events = project_many([later, earlier], "UTC")
        assert [e.metadata.session_id for e in events] == ["earlier", "later"]


class TestIcs:
    def test_invite_contains_utc_window(self):
        ics = build_session_ics(project(_session(), "America/New_York", resolve))
        assert "DTSTART:20310802T053000Z" in ics
        assert "DTEND:20310802T061000Z" in ics
        assert "UID:s1@session-calendar" in ics
        assert "SUMMARY:Intro to pottery" in ics
        assert "Leo Learner" in ics
        assert ics.startswith("BEGIN:VCALENDAR\r\n")

    def test_summary_is_escaped(self):
        session = make_session(title="Knots, splices; lashings", start=utc(2031, 1, 1, 9, 0) + timedelta(hours=1))
        ics = build_session_ics(project(session, "UTC"))
        assert "SUMMARY:Knots\\, splices\\; lashings" in ics
