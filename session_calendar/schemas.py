from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .config import MAX_DURATION_MINUTES, MIN_DURATION_MINUTES
from .core.domain import BookingStatus, MeetingStatus, ParticipantRole, RecurrenceRule


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    timezone: Optional[str] = "UTC"


class UserOut(BaseModel):
    id: str
    name: str
    email: EmailStr
    timezone: str

    class Config:
        from_attributes = True


class BookingCreate(BaseModel):
    host_id: str
    start_date: date
    # range checks on hour/minute/ampm happen in the engine so they
    # surface as invalid_time like every other wall-clock failure
    hour: int
    minute: int = 0
    ampm: str = "AM"
    timezone: Optional[str] = "UTC"
    duration_minutes: int = Field(default=30, ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES)
    participants: List[str] = []
    role: ParticipantRole = ParticipantRole.LEARNER
    recurrence: RecurrenceRule = RecurrenceRule.NONE
    occurrences: Optional[int] = Field(default=None, ge=1, le=52)
    title: str = ""
    description: Optional[str] = None
    skill: Optional[str] = "general"
    reminder_minutes: Optional[int] = None

    @field_validator("participants")
    @classmethod
    def validate_participants(cls, v):
        invitees = [p.strip() for p in v]
        if any(not p for p in invitees):
            raise ValueError("Participants must be a user id or an email, not blank")
        return invitees


class ParticipantOut(BaseModel):
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: ParticipantRole

    class Config:
        from_attributes = True


class SessionOut(BaseModel):
    id: str
    series_id: Optional[str] = None
    host_id: str
    title: str
    description: Optional[str] = None
    skill: str
    start_utc: datetime
    end_utc: datetime
    duration_minutes: Optional[int] = None
    timezone: str
    recurrence_rule: RecurrenceRule
    status: BookingStatus
    meeting_status: MeetingStatus
    actual_start_utc: Optional[datetime] = None
    actual_end_utc: Optional[datetime] = None
    host_joined_at_utc: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancelled_at_utc: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    participants: List[ParticipantOut]

    class Config:
        from_attributes = True


class BookingOut(BaseModel):
    accepted: List[SessionOut]


class EventMetadataOut(BaseModel):
    session_id: str
    host_id: str
    host_name: str
    skill: str
    title: str
    description: Optional[str] = None
    attendees: List[str]
    meeting_status: MeetingStatus
    recurrence_rule: RecurrenceRule
    series_id: Optional[str] = None
    actual_start_utc: Optional[datetime] = None
    actual_end_utc: Optional[datetime] = None
    host_joined_at_utc: Optional[datetime] = None

    class Config:
        from_attributes = True


class CalendarEventOut(BaseModel):
    title: str
    start: datetime
    end: datetime
    timezone: str
    metadata: EventMetadataOut

    class Config:
        from_attributes = True


class MeetingAction(BaseModel):
    actor_id: str


class JoinStatusOut(BaseModel):
    can_join: bool
    status: str
    message: str
    button_text: str
    minutes_until_start: Optional[int] = None

    class Config:
        from_attributes = True


class TimeSlotOut(BaseModel):
    start_utc: datetime
    end_utc: datetime
    timezone: str
    available: bool

    class Config:
        from_attributes = True
