import asyncio
from datetime import timedelta
from unittest.mock import MagicMock, patch

import aiohttp

from conftest import make_session, utc
from session_calendar.services.realtime import (
    MEETING_STATUS_UPDATED,
    SESSION_CREATED,
    SESSION_DELETED,
    SESSION_REMINDER,
    InMemoryChannel,
    RealtimeEvent,
    SessionCache,
    WebhookChannel,
    build_channel,
    session_payload,
)
from session_calendar.services.reminder_service import (
    cancel_reminder,
    reminder_job_id,
    schedule_reminder,
    send_reminder,
)


START = utc(2031, 8, 2, 10, 0)


class TestSessionCache:
    def test_created_then_updated_then_deleted(self):
        cache = SessionCache("learner-1")
        session = make_session(start=START)
        cache.apply(RealtimeEvent(SESSION_CREATED, "s1", session_payload(session)))
        assert cache.get("s1")["meeting_status"] == "not-started"

        cache.apply(RealtimeEvent(MEETING_STATUS_UPDATED, "s1", {"meeting_status": "live"}))
        assert cache.get("s1")["meeting_status"] == "live"
        assert cache.get("s1")["title"] == session.title

        cache.apply(RealtimeEvent(SESSION_DELETED, "s1"))
        assert cache.get("s1") is None

    def test_caches_are_independent(self):
        first, second = SessionCache("a"), SessionCache("b")
        first.apply(RealtimeEvent(SESSION_CREATED, "s1", {"title": "x"}))
        assert second.get("s1") is None

    def test_payload_lists_recipients(self):
        payload = session_payload(make_session(host="host-1", participants=("learner-1", "g@example.com")))
        assert payload["recipients"] == ["g@example.com", "host-1", "learner-1"]


class TestChannels:
    def test_in_memory_channel_records_events(self):
        channel = InMemoryChannel()
        asyncio.run(channel.publish(RealtimeEvent(SESSION_CREATED, "s1")))
        assert [e.type for e in channel.events] == [SESSION_CREATED]

    def test_build_channel(self):
        assert isinstance(build_channel(""), InMemoryChannel)
        webhook = build_channel("http://relay.local/events")
        assert isinstance(webhook, WebhookChannel)
        assert webhook.url == "http://relay.local/events"

    def test_webhook_failures_are_swallowed(self):
        channel = WebhookChannel("http://relay.local/events", timeout=1)
        with patch(
            "session_calendar.services.realtime.aiohttp.ClientSession",
            side_effect=aiohttp.ClientConnectionError("down"),
        ) as client_session:
            asyncio.run(channel.deliver(RealtimeEvent(SESSION_CREATED, "s1")))
        client_session.assert_called_once()

    def test_webhook_publish_does_not_wait_for_delivery(self):
        channel = WebhookChannel("http://relay.local/events", timeout=1)
        released = []

        async def slow_deliver(event):
            await asyncio.sleep(0.05)
            released.append(event.session_id)

        async def scenario():
            channel.deliver = slow_deliver
            await channel.publish(RealtimeEvent(SESSION_CREATED, "s1"))
            assert released == []
            assert len(channel.pending) == 1
            await channel.flush()

        asyncio.run(scenario())
        assert released == ["s1"]
        assert channel.pending == set()


class TestReminders:
    def test_schedules_date_job(self):
        scheduler = MagicMock()
        channel = InMemoryChannel()
        session = make_session(start=START)
        run_at = schedule_reminder(scheduler, channel, session, 15, START - timedelta(days=1))
        assert run_at == START - timedelta(minutes=15)
        args, kwargs = scheduler.add_job.call_args
        assert args == (send_reminder, "date")
        assert kwargs["run_date"] == run_at
        assert kwargs["id"] == reminder_job_id("s1")
        assert kwargs["args"][2]["minutes_before"] == 15

    def test_skips_unsupported_offset(self):
        scheduler = MagicMock()
        assert schedule_reminder(scheduler, InMemoryChannel(), make_session(start=START), 7, START - timedelta(days=1)) is None
        scheduler.add_job.assert_not_called()

    def test_skips_reminder_in_the_past(self):
        scheduler = MagicMock()
        assert schedule_reminder(scheduler, InMemoryChannel(), make_session(start=START), 60, START - timedelta(minutes=30)) is None
        scheduler.add_job.assert_not_called()

    def test_no_offset_means_no_reminder(self):
        scheduler = MagicMock()
        assert schedule_reminder(scheduler, InMemoryChannel(), make_session(start=START), None, START) is None

    def test_send_reminder_publishes(self):
        channel = InMemoryChannel()
        asyncio.run(send_reminder(channel, "s1", {"minutes_before": 5}))
        [event] = channel.events
        assert event.type == SESSION_REMINDER
        assert event.payload == {"minutes_before": 5}

    def test_cancel_reminder_removes_job(self):
        scheduler = MagicMock()
        cancel_reminder(scheduler, "s1")
        scheduler.remove_job.assert_called_once_with("reminder:s1")

    def test_cancel_reminder_without_job(self):
        scheduler = MagicMock()
        scheduler.get_job.return_value = None
        cancel_reminder(scheduler, "s1")
        scheduler.remove_job.assert_not_called()
