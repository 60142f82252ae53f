"""
Meeting lifecycle: not-started -> live -> ended.

`start_meeting` and `end_meeting` are the only operations that move a
session's meeting status, and only the host may call them. `cancel_session`
takes a booking that has not started out of the calendar. `get_join_status`
is a read-only question about the join window.
"""
import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from ..errors import InvalidTransitionError
from .domain import BookingStatus, JoinStatus, MeetingStatus, Session
from .timezones import ensure_utc

logger = logging.getLogger(__name__)

EARLY_JOIN_MINUTES = 5

START_BUTTON = "Start Meeting"
JOIN_BUTTON = "Join Meeting"
ENDED_BUTTON = "Meeting Ended"


def _require_host(session: Session, actor_id: str, action: str) -> None:
    if not session.is_host(actor_id):
        raise InvalidTransitionError(
            f"Only the host can {action} the meeting",
            reason=InvalidTransitionError.NOT_HOST,
            session_id=session.id,
        )


def _require_state(session: Session, expected: MeetingStatus, action: str) -> None:
    if session.meeting_status != expected:
        raise InvalidTransitionError(
            f"Cannot {action} a meeting that is {session.meeting_status.value}",
            reason=InvalidTransitionError.INVALID_STATE,
            session_id=session.id,
            meeting_status=session.meeting_status.value,
        )


def start_meeting(session: Session, actor_id: str, now: datetime) -> Session:
    _require_host(session, actor_id, "start")
    if session.status == BookingStatus.CANCELLED:
        raise InvalidTransitionError(
            "Cannot start a cancelled session",
            reason=InvalidTransitionError.INVALID_STATE,
            session_id=session.id,
        )
    _require_state(session, MeetingStatus.NOT_STARTED, "start")

    now = ensure_utc(now)
    logger.info(f"Meeting for session {session.id} started by {actor_id}")
    return replace(
        session,
        meeting_status=MeetingStatus.LIVE,
        status=BookingStatus.IN_PROGRESS,
        actual_start_utc=now,
        host_joined_at_utc=session.host_joined_at_utc or now,
    )


def end_meeting(session: Session, actor_id: str, now: datetime) -> Session:
    _require_host(session, actor_id, "end")
    _require_state(session, MeetingStatus.LIVE, "end")

    logger.info(f"Meeting for session {session.id} ended by {actor_id}")
    return replace(
        session,
        meeting_status=MeetingStatus.ENDED,
        status=BookingStatus.COMPLETED,
        actual_end_utc=ensure_utc(now),
    )


def cancel_session(session: Session, actor_id: str, now: datetime, reason: Optional[str] = None) -> Session:
    _require_host(session, actor_id, "cancel")
    if session.status in (BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED, BookingStatus.CANCELLED):
        raise InvalidTransitionError(
            f"Cannot cancel a session that is {session.status.value}",
            reason=InvalidTransitionError.INVALID_STATE,
            session_id=session.id,
            status=session.status.value,
        )

    return replace(
        session,
        status=BookingStatus.CANCELLED,
        cancelled_by=session.host_id,
        cancelled_at_utc=ensure_utc(now),
        cancellation_reason=(reason or "").strip() or None,
    )


def meeting_end(session: Session) -> datetime:
    if session.actual_end_utc is not None:
        return session.actual_end_utc
    return session.start_utc + session.duration


def get_join_status(session: Session, actor_id: str, now: datetime, early_join_minutes: int = EARLY_JOIN_MINUTES) -> JoinStatus:
    now = ensure_utc(now)
    start = session.start_utc
    early_join = start - timedelta(minutes=early_join_minutes)
    end = meeting_end(session)
    is_host = session.is_host(actor_id)

    if not is_host and not session.is_participant(actor_id):
        return JoinStatus(
            can_join=False,
            status="not-invited",
            message="You are not a participant in this session",
            button_text=JOIN_BUTTON,
        )

    if session.status == BookingStatus.CANCELLED:
        return JoinStatus(
            can_join=False,
            status="cancelled",
            message="This session has been cancelled",
            button_text=START_BUTTON if is_host else JOIN_BUTTON,
        )

    if now > end:
        return JoinStatus(can_join=False, status="ended", message="Meeting has ended", button_text=ENDED_BUTTON)

    if now < early_join:
        minutes = math.ceil((start - now).total_seconds() / 60)
        if is_host:
            message = f"You can start the meeting early (scheduled in {minutes} minutes)"
        else:
            message = f"Meeting starts in {minutes} minutes"
        return JoinStatus(
            can_join=is_host,
            status="waiting",
            message=message,
            button_text=START_BUTTON if is_host else JOIN_BUTTON,
            minutes_until_start=minutes,
        )

    return JoinStatus(
        can_join=True,
        status="ready",
        message="Meeting is ready to join",
        button_text=START_BUTTON if is_host else JOIN_BUTTON,
        minutes_until_start=max(0, math.ceil((start - now).total_seconds() / 60)),
    )
