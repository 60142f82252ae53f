import asyncio
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

import aiohttp
import pytz

from .. import config
from ..core.domain import Session

logger = logging.getLogger(__name__)

SESSION_CREATED = "session_created"
SESSION_DELETED = "session_deleted"
MEETING_STATUS_UPDATED = "meeting_status_updated"
SESSION_REMINDER = "session_reminder"


@dataclass
class RealtimeEvent:
    type: str
    session_id: str
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(pytz.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def session_payload(session: Session) -> Dict[str, Any]:
    return {
        "title": session.title,
        "host_id": session.host_id,
        "series_id": session.series_id,
        "start_utc": session.start_utc.isoformat(),
        "end_utc": session.end_utc.isoformat(),
        "status": session.status.value,
        "meeting_status": session.meeting_status.value,
        "actual_start_utc": session.actual_start_utc.isoformat() if session.actual_start_utc else None,
        "actual_end_utc": session.actual_end_utc.isoformat() if session.actual_end_utc else None,
        "cancellation_reason": session.cancellation_reason,
        "recipients": sorted({session.host_id} | {p.label for p in session.participants}),
    }


class InMemoryChannel:
    """Keeps published events in process; used when no webhook is configured."""

    def __init__(self):
        self.events: List[RealtimeEvent] = []

    async def publish(self, event: RealtimeEvent) -> None:
        logger.info(f"Realtime event {event.type} for session {event.session_id}")
        self.events.append(event)

    async def flush(self) -> None:
        return None


class WebhookChannel:
    """
    POSTs each event to a relay that fans it out to connected clients.

    `publish` only schedules the delivery and returns; `flush` waits for
    whatever is still in flight.
    """

    def __init__(self, url: str, timeout: float = config.REALTIME_WEBHOOK_TIMEOUT):
        self.url = url
        self.timeout = timeout
        self.pending: Set[asyncio.Task] = set()

    async def publish(self, event: RealtimeEvent) -> None:
        task = asyncio.create_task(self.deliver(event))
        self.pending.add(task)
        task.add_done_callback(self.pending.discard)

    async def flush(self) -> None:
        if self.pending:
            await asyncio.gather(*list(self.pending))

    async def deliver(self, event: RealtimeEvent) -> None:
        # delivery errors are only logged
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as client:
                async with client.post(self.url, json=event.to_dict()) as resp:
                    if resp.status >= 400:
                        text = await resp.text()
                        logger.warning(f"Realtime relay rejected {event.type}: {resp.status} {text}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Could not publish {event.type} for session {event.session_id}: {e}")


def build_channel(webhook_url: Optional[str] = None):
    url = webhook_url if webhook_url is not None else config.REALTIME_WEBHOOK_URL
    if url:
        return WebhookChannel(url)
    return InMemoryChannel()


class SessionCache:
    """
    Client-side consumer of the realtime channel: a viewer's local view of
    its sessions, kept current by applying the events it receives. One
    instance per viewer; nothing is shared. The server only publishes.
    """

    def __init__(self, owner_id: str):
        self.owner_id = owner_id
        self.sessions: Dict[str, Dict[str, Any]] = {}

    def apply(self, event: RealtimeEvent) -> None:
        if event.type == SESSION_DELETED:
            self.sessions.pop(event.session_id, None)
        elif event.type in (SESSION_CREATED, MEETING_STATUS_UPDATED):
            current = self.sessions.setdefault(event.session_id, {})
            current.update(event.payload)

    def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        return self.sessions.get(session_id)
