from datetime import datetime
from typing import Dict, Iterable, List, Optional
from uuid import uuid4

import pytz
from sqlalchemy import or_
from sqlalchemy.orm import Session as DbSession

from ..core.conflicts import identity_set
from ..core.domain import BookingStatus, MeetingStatus, ParticipantRef, Session
from ..errors import SessionNotFoundError
from ..models import BookedSession, Participant


def _to_db_time(instant: Optional[datetime]) -> Optional[datetime]:
    if instant is None:
        return None
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(pytz.utc).replace(tzinfo=None)


def _from_db_time(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


def to_domain(row: BookedSession) -> Session:
    return Session(
        id=row.id,
        series_id=row.series_id,
        host_id=row.host_id,
        title=row.title or "",
        description=row.description,
        skill=row.skill or "general",
        start_utc=_from_db_time(row.start_utc),
        end_utc=_from_db_time(row.end_utc),
        duration_minutes=row.duration_minutes,
        timezone=row.timezone or "UTC",
        recurrence_rule=row.recurrence_rule or "none",
        status=row.status or BookingStatus.SCHEDULED,
        meeting_status=row.meeting_status or MeetingStatus.NOT_STARTED,
        actual_start_utc=_from_db_time(row.actual_start_utc),
        actual_end_utc=_from_db_time(row.actual_end_utc),
        host_joined_at_utc=_from_db_time(row.host_joined_at_utc),
        cancelled_by=row.cancelled_by,
        cancelled_at_utc=_from_db_time(row.cancelled_at_utc),
        cancellation_reason=row.cancellation_reason,
        participants=tuple(
            ParticipantRef(user_id=p.user_id, email=p.email, role=p.role or "learner") for p in row.participants
        ),
    )


def to_row(session: Session) -> BookedSession:
    duration = session.duration_minutes or int(session.duration.total_seconds() // 60)
    row = BookedSession(
        id=session.id,
        series_id=session.series_id,
        host_id=session.host_id,
        title=session.title,
        description=session.description,
        skill=session.skill,
        start_utc=_to_db_time(session.start_utc),
        end_utc=_to_db_time(session.end_utc),
        duration_minutes=duration,
        timezone=session.timezone,
        recurrence_rule=session.recurrence_rule.value,
        status=session.status.value,
        meeting_status=session.meeting_status.value,
        actual_start_utc=_to_db_time(session.actual_start_utc),
        actual_end_utc=_to_db_time(session.actual_end_utc),
        host_joined_at_utc=_to_db_time(session.host_joined_at_utc),
        cancelled_by=session.cancelled_by,
        cancelled_at_utc=_to_db_time(session.cancelled_at_utc),
        cancellation_reason=session.cancellation_reason,
    )
    row.participants = [
        Participant(id=str(uuid4()), user_id=p.user_id, email=p.email, role=p.role.value)
        for p in session.participants
    ]
    return row


class SqlSessionStore:
    """Session persistence over a request-scoped SQLAlchemy session."""

    def __init__(self, db: DbSession):
        self.db = db

    def _row(self, session_id: str) -> BookedSession:
        row = self.db.get(BookedSession, session_id)
        if row is None:
            raise SessionNotFoundError(session_id)
        return row

    def get_session(self, session_id: str) -> Session:
        return to_domain(self._row(session_id))

    def list_sessions_involving(self, identities: Iterable[str], include_cancelled: bool = False) -> List[Session]:
        ids = sorted(identity_set(identities))
        if not ids:
            return []
        query = (
            self.db.query(BookedSession)
            .outerjoin(Participant)
            .filter(
                or_(
                    BookedSession.host_id.in_(ids),
                    Participant.user_id.in_(ids),
                    Participant.email.in_(ids),
                )
            )
        )
        if not include_cancelled:
            query = query.filter(BookedSession.status != BookingStatus.CANCELLED.value)
        rows = query.distinct().order_by(BookedSession.start_utc).all()
        return [to_domain(r) for r in rows]

    def create_session(self, session: Session) -> Session:
        return self.create_sessions([session])[0]

    def create_sessions(self, sessions: List[Session]) -> List[Session]:
        """Write a whole booking in one transaction."""
        rows = [to_row(s) for s in sessions]
        self.db.add_all(rows)
        self.db.commit()
        for row in rows:
            self.db.refresh(row)
        return [to_domain(r) for r in rows]

    def update_meeting_status(
        self,
        session_id: str,
        meeting_status: MeetingStatus,
        status: Optional[BookingStatus] = None,
        timestamps: Optional[Dict[str, datetime]] = None,
    ) -> Session:
        row = self._row(session_id)
        row.meeting_status = MeetingStatus(meeting_status).value
        if status is not None:
            row.status = BookingStatus(status).value
        for name, value in (timestamps or {}).items():
            if name not in ("actual_start_utc", "actual_end_utc", "host_joined_at_utc"):
                raise ValueError(f"Unknown lifecycle timestamp {name}")
            setattr(row, name, _to_db_time(value))
        self.db.commit()
        self.db.refresh(row)
        return to_domain(row)

    def cancel_session(
        self,
        session_id: str,
        cancelled_by: Optional[str] = None,
        cancelled_at: Optional[datetime] = None,
        reason: Optional[str] = None,
    ) -> Session:
        row = self._row(session_id)
        row.status = BookingStatus.CANCELLED.value
        row.cancelled_by = cancelled_by
        row.cancelled_at_utc = _to_db_time(cancelled_at)
        row.cancellation_reason = reason
        self.db.commit()
        self.db.refresh(row)
        return to_domain(row)

    def list_series(self, series_id: str) -> List[Session]:
        rows = (
            self.db.query(BookedSession)
            .filter(BookedSession.series_id == series_id)
            .order_by(BookedSession.start_utc)
            .all()
        )
        return [to_domain(r) for r in rows]
