"""Booking and meeting workflows: the engine wired to its collaborators."""
import logging
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional

import pytz
from sqlalchemy.orm import Session as DbSession

from .. import config
from ..core import lifecycle
from ..core.booking import propose_booking
from ..core.conflicts import find_available_slots
from ..core.domain import (
    BookingRequest,
    BookingStatus,
    CalendarEvent,
    JoinStatus,
    Session,
    TimeSlot,
    WallClock,
)
from ..core.projection import project, project_many
from ..schemas import BookingCreate
from .realtime import MEETING_STATUS_UPDATED, SESSION_CREATED, SESSION_DELETED, RealtimeEvent, session_payload
from .reminder_service import cancel_reminder, schedule_reminder
from .session_store import SqlSessionStore
from .user_directory import UserDirectory

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


class SchedulingService:
    def __init__(self, db: DbSession, channel, scheduler=None, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.store = SqlSessionStore(db)
        self.directory = UserDirectory(db)
        self.channel = channel
        self.scheduler = scheduler
        self.clock = clock

    def _canonical(self, id_or_email: str) -> str:
        user = self.directory.find(id_or_email)
        return user.id if user is not None else id_or_email

    async def _publish(self, event_type: str, session: Session) -> None:
        await self.channel.publish(RealtimeEvent(type=event_type, session_id=session.id, payload=session_payload(session)))

    # ---- booking ----

    def build_request(self, payload: BookingCreate) -> BookingRequest:
        host_id = self._canonical(payload.host_id)
        host_identities = self.directory.identities_for(payload.host_id)

        participants = []
        seen = set(host_identities)
        for invitee in payload.participants:
            ref = self.directory.resolve_participant(invitee, payload.role)
            # the host is implicitly a participant, never listed twice
            if ref.identities & seen:
                continue
            seen |= ref.identities
            participants.append(ref)

        return BookingRequest(
            host_id=host_id,
            host_identities=frozenset(host_identities),
            wall_clock=WallClock(
                payload.start_date.year,
                payload.start_date.month,
                payload.start_date.day,
                payload.hour,
                payload.minute,
                payload.ampm,
            ),
            zone=payload.timezone,
            duration_minutes=payload.duration_minutes,
            participants=tuple(participants),
            recurrence_rule=payload.recurrence,
            occurrences=payload.occurrences or config.DEFAULT_OCCURRENCES,
            title=payload.title,
            description=payload.description,
            skill=payload.skill or "general",
        )

    async def propose_booking(self, payload: BookingCreate) -> List[Session]:
        request = self.build_request(payload)
        identities = set(request.host_identities) | {request.host_id}
        for participant in request.participants:
            identities |= participant.identities

        existing = self.store.list_sessions_involving(identities)
        now = self.clock()
        outcome = propose_booking(request, existing, now)
        outcome.raise_for_rejection()

        created = self.store.create_sessions(outcome.accepted)
        logger.info(f"Created {len(created)} session(s) for host {request.host_id}")
        for session in created:
            await self._publish(SESSION_CREATED, session)
            if self.scheduler is not None:
                schedule_reminder(self.scheduler, self.channel, session, payload.reminder_minutes, now)
        return created

    # ---- reads ----

    def get_session(self, session_id: str) -> Session:
        return self.store.get_session(session_id)

    def sessions_for(self, identity: str) -> List[Session]:
        return self.store.list_sessions_involving(self.directory.identities_for(identity))

    def calendar_event(self, session_id: str, zone: str) -> CalendarEvent:
        return project(self.get_session(session_id), zone, self.directory.resolve_display_name)

    def calendar_for(self, identity: str, zone: str) -> List[CalendarEvent]:
        return project_many(self.sessions_for(identity), zone, self.directory.resolve_display_name)

    def availability(self, identities: Iterable[str], day: date, zone: str, interval_minutes: int = 30) -> List[TimeSlot]:
        wanted = set()
        for identity in identities:
            wanted |= self.directory.identities_for(identity)
        existing = self.store.list_sessions_involving(wanted)
        return find_available_slots(day, zone, wanted, existing, interval_minutes=interval_minutes)

    # ---- meeting lifecycle ----

    async def start_meeting(self, session_id: str, actor_id: str) -> Session:
        session = self.get_session(session_id)
        started = lifecycle.start_meeting(session, self._canonical(actor_id), self.clock())
        saved = self.store.update_meeting_status(
            session_id,
            started.meeting_status,
            started.status,
            {"actual_start_utc": started.actual_start_utc, "host_joined_at_utc": started.host_joined_at_utc},
        )
        await self._publish(MEETING_STATUS_UPDATED, saved)
        return saved

    async def end_meeting(self, session_id: str, actor_id: str) -> Session:
        session = self.get_session(session_id)
        ended = lifecycle.end_meeting(session, self._canonical(actor_id), self.clock())
        saved = self.store.update_meeting_status(
            session_id,
            ended.meeting_status,
            ended.status,
            {"actual_end_utc": ended.actual_end_utc},
        )
        await self._publish(MEETING_STATUS_UPDATED, saved)
        return saved

    def join_status(self, session_id: str, actor_id: str, now: Optional[datetime] = None) -> JoinStatus:
        session = self.get_session(session_id)
        return lifecycle.get_join_status(
            session,
            self._canonical(actor_id),
            now or self.clock(),
            early_join_minutes=config.EARLY_JOIN_MINUTES,
        )

    # ---- cancellation ----

    async def cancel_session(
        self, session_id: str, actor_id: str, whole_series: bool = False, reason: Optional[str] = None
    ) -> List[Session]:
        session = self.get_session(session_id)
        actor = self._canonical(actor_id)
        now = self.clock()

        # the requested occurrence must itself be cancellable; the rest of a
        # series only contributes occurrences that are still scheduled
        planned = [lifecycle.cancel_session(session, actor, now, reason)]
        if whole_series and session.series_id:
            planned += [
                lifecycle.cancel_session(s, actor, now, reason)
                for s in self.store.list_series(session.series_id)
                if s.id != session.id and s.status == BookingStatus.SCHEDULED
            ]
        planned.sort(key=lambda s: s.start_utc)

        cancelled = []
        for target in planned:
            saved = self.store.cancel_session(
                target.id,
                cancelled_by=target.cancelled_by,
                cancelled_at=target.cancelled_at_utc,
                reason=target.cancellation_reason,
            )
            if self.scheduler is not None:
                cancel_reminder(self.scheduler, target.id)
            await self._publish(SESSION_DELETED, saved)
            cancelled.append(saved)
        logger.info(f"Cancelled {len(cancelled)} session(s) starting from {session_id}")
        return cancelled
