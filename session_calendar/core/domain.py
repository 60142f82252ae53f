"""
Plain value types shared by the scheduling engine.

Everything here is immutable: lifecycle transitions build a new Session with
dataclasses.replace instead of editing one in place.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import FrozenSet, Optional, Tuple


class RecurrenceRule(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class BookingStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class MeetingStatus(str, Enum):
    NOT_STARTED = "not-started"
    LIVE = "live"
    ENDED = "ended"


class ParticipantRole(str, Enum):
    LEARNER = "learner"
    MENTOR = "mentor"
    OBSERVER = "observer"


def normalize_identity(value: Optional[str]) -> Optional[str]:
    """Trim an id or email; emails compare case-insensitively."""
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    if "@" in value:
        return value.lower()
    return value


@dataclass(frozen=True)
class ParticipantRef:
    """A resolved user, a bare email placeholder, or both."""

    user_id: Optional[str] = None
    email: Optional[str] = None
    role: ParticipantRole = ParticipantRole.LEARNER

    def __post_init__(self):
        object.__setattr__(self, "user_id", normalize_identity(self.user_id))
        object.__setattr__(self, "email", normalize_identity(self.email))
        object.__setattr__(self, "role", ParticipantRole(self.role))
        if self.user_id is None and self.email is None:
            raise ValueError("participant needs a user id or an email")

    @property
    def identities(self) -> FrozenSet[str]:
        return frozenset(i for i in (self.user_id, self.email) if i)

    @property
    def label(self) -> str:
        return self.user_id or self.email


@dataclass(frozen=True)
class Session:
    id: str
    host_id: str
    start_utc: datetime
    end_utc: datetime
    participants: Tuple[ParticipantRef, ...] = ()
    timezone: str = "UTC"
    recurrence_rule: RecurrenceRule = RecurrenceRule.NONE
    status: BookingStatus = BookingStatus.SCHEDULED
    meeting_status: MeetingStatus = MeetingStatus.NOT_STARTED
    title: str = ""
    description: Optional[str] = None
    skill: str = "general"
    duration_minutes: Optional[int] = None
    series_id: Optional[str] = None
    actual_start_utc: Optional[datetime] = None
    actual_end_utc: Optional[datetime] = None
    host_joined_at_utc: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancelled_at_utc: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "host_id", normalize_identity(self.host_id))
        object.__setattr__(self, "participants", tuple(self.participants))
        object.__setattr__(self, "recurrence_rule", RecurrenceRule(self.recurrence_rule))
        object.__setattr__(self, "status", BookingStatus(self.status))
        object.__setattr__(self, "meeting_status", MeetingStatus(self.meeting_status))
        if not self.host_id:
            raise ValueError("a session needs exactly one host")
        if self.start_utc >= self.end_utc:
            raise ValueError(f"session start {self.start_utc.isoformat()} must be before its end {self.end_utc.isoformat()}")
        if self.actual_end_utc is not None and self.actual_start_utc is None:
            raise ValueError("a meeting cannot end before it has started")

    @property
    def duration(self) -> timedelta:
        if self.duration_minutes:
            return timedelta(minutes=self.duration_minutes)
        return self.end_utc - self.start_utc

    def is_host(self, identity: Optional[str]) -> bool:
        return normalize_identity(identity) == self.host_id

    def is_participant(self, identity: Optional[str]) -> bool:
        identity = normalize_identity(identity)
        return any(identity in p.identities for p in self.participants)


@dataclass(frozen=True)
class TimeSlot:
    start_utc: datetime
    end_utc: datetime
    timezone: str = "UTC"
    available: bool = True


@dataclass(frozen=True)
class WallClock:
    """A 12-hour wall-clock reading, as a booking form collects it."""

    year: int
    month: int
    day: int
    hour: int
    minute: int
    ampm: str


@dataclass(frozen=True)
class EventMetadata:
    session_id: str
    host_id: str
    host_name: str
    skill: str
    title: str
    meeting_status: MeetingStatus
    recurrence_rule: RecurrenceRule
    attendees: Tuple[str, ...] = ()
    description: Optional[str] = None
    series_id: Optional[str] = None
    actual_start_utc: Optional[datetime] = None
    actual_end_utc: Optional[datetime] = None
    host_joined_at_utc: Optional[datetime] = None


@dataclass(frozen=True)
class CalendarEvent:
    title: str
    start: datetime
    end: datetime
    timezone: str
    metadata: EventMetadata


@dataclass(frozen=True)
class JoinStatus:
    can_join: bool
    status: str
    message: str
    button_text: str
    minutes_until_start: Optional[int] = None


@dataclass(frozen=True)
class BookingRequest:
    host_id: str
    wall_clock: WallClock
    zone: str
    duration_minutes: int
    participants: Tuple[ParticipantRef, ...] = ()
    recurrence_rule: RecurrenceRule = RecurrenceRule.NONE
    occurrences: int = 5
    title: str = ""
    description: Optional[str] = None
    skill: str = "general"
    host_identities: FrozenSet[str] = field(default_factory=frozenset)
