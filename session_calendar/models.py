from datetime import datetime

import pytz
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .database import Base


def now():
    return datetime.now(pytz.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    timezone = Column(String, default="UTC")
    created_at = Column(DateTime, default=now)


class BookedSession(Base):
    __tablename__ = "sessions"
    id = Column(String, primary_key=True, index=True)
    series_id = Column(String, index=True, nullable=True)
    title = Column(String, nullable=False, default="")
    description = Column(String)
    skill = Column(String, default="general")
    host_id = Column(String, index=True, nullable=False)
    # all instants are stored as naive UTC
    start_utc = Column(DateTime, nullable=False, index=True)
    end_utc = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    timezone = Column(String, default="UTC")
    recurrence_rule = Column(String, default="none")
    status = Column(String, default="scheduled")
    meeting_status = Column(String, default="not-started")
    actual_start_utc = Column(DateTime)
    actual_end_utc = Column(DateTime)
    host_joined_at_utc = Column(DateTime)
    cancelled_by = Column(String)
    cancelled_at_utc = Column(DateTime)
    cancellation_reason = Column(String)
    created_at = Column(DateTime, default=now)
    participants = relationship("Participant", back_populates="session", cascade="all, delete-orphan")


class Participant(Base):
    __tablename__ = "participants"
    id = Column(String, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("sessions.id"))
    user_id = Column(String, index=True)
    email = Column(String, index=True)
    role = Column(String, default="learner")
    session = relationship("BookedSession", back_populates="participants")
