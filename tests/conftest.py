"""Shared fixtures for the session calendar tests."""

import os
import tempfile

# Configure a throwaway database before the package reads its settings
_db_dir = tempfile.mkdtemp(prefix="session-calendar-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ.pop("REALTIME_WEBHOOK_URL", None)

from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
import pytz  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from session_calendar import models  # noqa: E402,F401
from session_calendar.core.domain import ParticipantRef, Session  # noqa: E402
from session_calendar.database import Base, SessionLocal, engine  # noqa: E402


def utc(*args) -> datetime:
    return pytz.utc.localize(datetime(*args))


def parse_utc(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00")).astimezone(pytz.utc)


def make_session(
    session_id="s1",
    start=None,
    minutes=60,
    host="host-1",
    participants=("learner-1",),
    **overrides,
) -> Session:
    start = start or utc(2031, 8, 2, 10, 0)
    refs = []
    for p in participants:
        if isinstance(p, ParticipantRef):
            refs.append(p)
        elif "@" in p:
            refs.append(ParticipantRef(email=p))
        else:
            refs.append(ParticipantRef(user_id=p))
    return Session(
        id=session_id,
        host_id=host,
        start_utc=start,
        end_utc=start + timedelta(minutes=minutes),
        participants=tuple(refs),
        duration_minutes=minutes,
        **overrides,
    )


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client(db):
    from session_calendar.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def host_user(client):
    resp = client.post("/users/", json={"name": "Hana Host", "email": "hana@example.com", "timezone": "America/New_York"})
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def learner_user(client):
    resp = client.post("/users/", json={"name": "Leo Learner", "email": "leo@example.com", "timezone": "Europe/London"})
    assert resp.status_code == 201
    return resp.json()
