"""Tests for the booking orchestrator: wall clock -> occurrences -> conflict check."""

from datetime import timedelta
from itertools import count

import pytest

from conftest import make_session, utc
from session_calendar.core.booking import propose_booking
from session_calendar.core.domain import (
    BookingRequest,
    BookingStatus,
    MeetingStatus,
    ParticipantRef,
    RecurrenceRule,
    WallClock,
)
from session_calendar.errors import ConflictError, InvalidBookingError, InvalidTimeError, PastTimeError


NOW = utc(2025, 1, 1, 0, 0)


def ids():
    counter = count(1)
    return lambda: f"id-{next(counter)}"


def request(**overrides):
    values = dict(
        host_id="H",
        wall_clock=WallClock(2025, 8, 2, 1, 30, "AM"),
        zone="America/New_York",
        duration_minutes=40,
        participants=(ParticipantRef(user_id="P"),),
        title="Guitar basics",
    )
    values.update(overrides)
    return BookingRequest(**values)


class TestProposeBooking:
    def test_single_booking_in_new_york(self):
        outcome = propose_booking(request(), [], NOW, ids())
        assert outcome.ok
        assert outcome.rejected_reason is None
        [session] = outcome.accepted
        assert session.start_utc == utc(2025, 8, 2, 5, 30)
        assert session.end_utc == utc(2025, 8, 2, 6, 10)
        assert session.timezone == "America/New_York"
        assert session.status == BookingStatus.SCHEDULED
        assert session.meeting_status == MeetingStatus.NOT_STARTED
        assert session.series_id is None
        assert session.host_id == "H"

    def test_overlapping_second_booking_conflicts(self):
        existing = propose_booking(request(), [], NOW, ids()).accepted
        second = request(wall_clock=WallClock(2025, 8, 2, 1, 45, "AM"), duration_minutes=30)
        outcome = propose_booking(second, existing, NOW, ids())
        assert outcome.accepted == []
        assert isinstance(outcome.error, ConflictError)
        with pytest.raises(ConflictError):
            outcome.raise_for_rejection()

    def test_conflict_through_participant_only(self):
        existing = [make_session(start=utc(2025, 8, 2, 5, 0), minutes=60, host="other-host", participants=("P",))]
        outcome = propose_booking(request(), existing, NOW, ids())
        assert isinstance(outcome.error, ConflictError)

    def test_back_to_back_booking_is_accepted(self):
        existing = propose_booking(request(), [], NOW, ids()).accepted
        follow_up = request(wall_clock=WallClock(2025, 8, 2, 2, 10, "AM"))
        assert propose_booking(follow_up, existing, NOW, ids()).ok

    def test_recurring_booking_is_all_or_nothing(self):
        # third weekly occurrence (index 2) collides
        existing = [make_session("busy", start=utc(2025, 8, 16, 5, 45), minutes=30, host="H", participants=())]
        outcome = propose_booking(request(recurrence_rule=RecurrenceRule.WEEKLY, occurrences=5), existing, NOW, ids())
        assert outcome.accepted == []
        assert isinstance(outcome.error, ConflictError)
        assert [c["occurrence"] for c in outcome.error.conflicts] == [2]

    def test_recurring_booking_shares_series(self):
        outcome = propose_booking(request(recurrence_rule=RecurrenceRule.DAILY, occurrences=3), [], NOW, ids())
        sessions = outcome.accepted
        assert len(sessions) == 3
        assert len({s.series_id for s in sessions}) == 1
        assert sessions[0].series_id is not None
        assert len({s.id for s in sessions}) == 3
        assert sessions[2].start_utc - sessions[0].start_utc == timedelta(days=2)
        assert all(s.recurrence_rule == RecurrenceRule.DAILY for s in sessions)

    def test_past_start_is_rejected(self):
        outcome = propose_booking(request(), [], utc(2025, 9, 1, 0, 0), ids())
        assert isinstance(outcome.error, PastTimeError)
        assert "future" in outcome.rejected_reason

    def test_invalid_hour_is_rejected(self):
        outcome = propose_booking(request(wall_clock=WallClock(2025, 8, 2, 13, 0, "PM")), [], NOW, ids())
        assert isinstance(outcome.error, InvalidTimeError)

    def test_non_positive_duration_is_rejected(self):
        outcome = propose_booking(request(duration_minutes=0), [], NOW, ids())
        assert isinstance(outcome.error, InvalidTimeError)

    def test_zero_occurrences_is_rejected(self):
        outcome = propose_booking(request(recurrence_rule=RecurrenceRule.WEEKLY, occurrences=0), [], NOW, ids())
        assert outcome.accepted == []
        assert isinstance(outcome.error, InvalidBookingError)
        assert outcome.error.to_dict()["error"] == "invalid_booking"

    def test_unknown_recurrence_is_rejected(self):
        outcome = propose_booking(request(recurrence_rule="fortnightly"), [], NOW, ids())
        assert isinstance(outcome.error, InvalidBookingError)
        with pytest.raises(InvalidBookingError):
            outcome.raise_for_rejection()

    def test_unknown_zone_books_in_utc(self):
        outcome = propose_booking(request(zone="Atlantis/Capital"), [], NOW, ids())
        [session] = outcome.accepted
        assert session.timezone == "UTC"
        assert session.start_utc == utc(2025, 8, 2, 1, 30)

    def test_host_email_is_part_of_candidate_identities(self):
        existing = [make_session(start=utc(2025, 8, 2, 5, 0), minutes=60, host="X", participants=("h@example.com",))]
        outcome = propose_booking(request(host_identities=frozenset({"h@example.com"})), existing, NOW, ids())
        assert isinstance(outcome.error, ConflictError)
