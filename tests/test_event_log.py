"""Tests for the Event Log store and the history pager."""

import asyncio
from datetime import datetime, timedelta

import pytest

from puppy_kernel.core.errors import DuplicateEventError, EventNotFoundError
from puppy_kernel.event_log.history import fetch_history
from puppy_kernel.event_log.store import EventLog
from puppy_kernel.models.event import Event, EventLocation, EventType

T = datetime(2026, 3, 10, 0, 0)


def _meal(event_id: str, at: datetime) -> Event:
    return Event(id=event_id, time=at, type=EventType.MEAL)


class InclusiveEndLog(EventLog):
    """Returns events on both batch edges, like an imprecise backend."""

    def get_events(self, start, end):
        return [e for e in self.get_all_events() if start <= e.time <= end]


class CancellingLog(EventLog):
    """Sets the cancel flag while serving the first batch."""

    def __init__(self, cancel_event: asyncio.Event):
        super().__init__()
        self.cancel_event = cancel_event
        self.calls = 0

    def get_events(self, start, end):
        self.calls += 1
        self.cancel_event.set()
        return super().get_events(start, end)


class RecordingLog(EventLog):
    """Notes each range query in a shared trace."""

    def __init__(self, trace: list):
        super().__init__()
        self.trace = trace

    def get_events(self, start, end):
        self.trace.append("query")
        return super().get_events(start, end)


class TestEventLog:
    def setup_method(self):
        self.log = EventLog(db_path=":memory:")

    def teardown_method(self):
        self.log.close()

    def test_add_and_get(self):
        event = Event(id="p1", time=T, type=EventType.PEE, location=EventLocation.OUTDOOR)
        self.log.add_event(event)
        assert self.log.get_event("p1") == event
        assert self.log.count() == 1

    def test_get_missing_returns_none(self):
        assert self.log.get_event("nope") is None

    def test_duplicate_rejected(self):
        self.log.add_event(_meal("m1", T))
        with pytest.raises(DuplicateEventError) as exc_info:
            self.log.add_event(_meal("m1", T + timedelta(hours=1)))
        assert exc_info.value.code == "DUPLICATE_EVENT"
        assert exc_info.value.http_status == 409

    def test_range_is_half_open(self):
        self.log.add_event(_meal("start", T))
        self.log.add_event(_meal("inside", T + timedelta(hours=12)))
        self.log.add_event(_meal("end", T + timedelta(days=1)))

        events = self.log.get_events(T, T + timedelta(days=1))

        assert {e.id for e in events} == {"start", "inside"}

    def test_sub_second_times_ordered(self):
        self.log.add_event(_meal("a", T + timedelta(microseconds=500)))
        events = self.log.get_events(T, T + timedelta(seconds=1))
        assert [e.id for e in events] == ["a"]
        assert self.log.get_events(T + timedelta(milliseconds=1), T + timedelta(seconds=1)) == []

    def test_update_replaces_record(self):
        self.log.add_event(_meal("m1", T))
        edited = self.log.get_event("m1").with_updated_timestamp(
            modified_at=T + timedelta(minutes=1), note="extra portion", time=T + timedelta(days=2)
        )
        self.log.update_event(edited)

        assert self.log.get_event("m1").note == "extra portion"
        assert self.log.get_events(T, T + timedelta(days=1)) == []

    def test_update_missing_raises(self):
        with pytest.raises(EventNotFoundError):
            self.log.update_event(_meal("ghost", T))

    def test_delete(self):
        self.log.add_event(_meal("m1", T))
        self.log.delete_event("m1")
        assert self.log.count() == 0
        with pytest.raises(EventNotFoundError) as exc_info:
            self.log.delete_event("m1")
        assert exc_info.value.to_dict()["details"] == {"event_id": "m1"}

    def test_persists_to_file(self, tmp_path):
        path = str(tmp_path / "events.db")
        log = EventLog(db_path=path)
        log.add_event(Event(id="s1", time=T, type=EventType.SLEEP))
        link = log.get_event("s1").sleep_session_id
        log.close()

        reopened = EventLog(db_path=path)
        assert reopened.get_event("s1").sleep_session_id == link
        reopened.close()


class TestFetchHistory:
    def test_fetches_across_batches_sorted(self):
        log = EventLog()
        for day in (3, 0, 2):
            log.add_event(_meal(f"m{day}", T + timedelta(days=day, hours=8)))

        events = asyncio.run(fetch_history(log, T, T + timedelta(days=4)))

        assert [e.id for e in events] == ["m0", "m2", "m3"]

    def test_deduplicates_abutting_batches(self):
        log = InclusiveEndLog()
        log.add_event(_meal("midnight", T + timedelta(days=1)))
        log.add_event(_meal("noon", T + timedelta(hours=12)))

        events = asyncio.run(fetch_history(log, T, T + timedelta(days=3)))

        assert [e.id for e in events] == ["noon", "midnight"]

    def test_cancelled_before_start_returns_none(self):
        async def run():
            cancel = asyncio.Event()
            cancel.set()
            return await fetch_history(EventLog(), T, T + timedelta(days=3), cancel_event=cancel)

        assert asyncio.run(run()) is None

    def test_cancelled_mid_fetch_returns_none(self):
        async def run():
            cancel = asyncio.Event()
            log = CancellingLog(cancel)
            log.add_event(_meal("m", T + timedelta(hours=1)))
            result = await fetch_history(log, T, T + timedelta(days=5), cancel_event=cancel)
            return result, log.calls

        result, calls = asyncio.run(run())
        assert result is None
        assert calls == 1

    def test_rejects_bad_batch_size(self):
        with pytest.raises(ValueError):
            asyncio.run(fetch_history(EventLog(), T, T + timedelta(days=1), batch_days=0))

    def test_other_tasks_run_between_batches(self):
        async def run():
            trace = []

            async def ticker():
                for _ in range(3):
                    trace.append("tick")
                    await asyncio.sleep(0)

            fetch = asyncio.create_task(
                fetch_history(RecordingLog(trace), T, T + timedelta(days=3))
            )
            await asyncio.gather(fetch, asyncio.create_task(ticker()))
            return trace

        trace = asyncio.run(run())
        assert trace.count("query") == 3
        assert all(a != "query" or b != "query" for a, b in zip(trace, trace[1:]))
