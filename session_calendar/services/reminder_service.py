import logging
from datetime import datetime, timedelta
from typing import Optional

from ..config import REMINDER_CHOICES
from ..core.domain import Session
from ..core.timezones import ensure_utc
from .realtime import SESSION_REMINDER, RealtimeEvent, session_payload

logger = logging.getLogger(__name__)


def reminder_job_id(session_id: str) -> str:
    return f"reminder:{session_id}"


async def send_reminder(channel, session_id: str, payload: dict) -> None:
    await channel.publish(RealtimeEvent(type=SESSION_REMINDER, session_id=session_id, payload=payload))


def schedule_reminder(scheduler, channel, session: Session, minutes_before: Optional[int], now: datetime) -> Optional[datetime]:
    """
    Queue a one-shot reminder `minutes_before` the session starts.
    Returns the run time, or None when nothing was scheduled.
    """
    if not minutes_before:
        return None
    if minutes_before not in REMINDER_CHOICES:
        logger.warning(f"Ignoring unsupported reminder offset {minutes_before} for session {session.id}")
        return None

    run_at = session.start_utc - timedelta(minutes=minutes_before)
    if run_at <= ensure_utc(now):
        logger.info(f"Reminder for session {session.id} would fire in the past, skipping")
        return None

    payload = session_payload(session)
    payload["minutes_before"] = minutes_before
    scheduler.add_job(
        send_reminder,
        "date",
        run_date=run_at,
        args=[channel, session.id, payload],
        id=reminder_job_id(session.id),
        replace_existing=True,
    )
    logger.info(f"Reminder for session {session.id} scheduled at {run_at.isoformat()}")
    return run_at


def cancel_reminder(scheduler, session_id: str) -> None:
    if scheduler.get_job(reminder_job_id(session_id)) is not None:
        scheduler.remove_job(reminder_job_id(session_id))
