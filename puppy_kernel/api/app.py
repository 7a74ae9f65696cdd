"""
Puppy Kernel API: FastAPI endpoints.

Exposes the engine over HTTP for:
- Event logging and editing
- Status snapshot and its parts (prediction, streaks, patterns, potty gaps)
- Day timeline and reconstructed sessions
- Prediction configuration

Read endpoints accept an optional `now` so results can be reproduced.
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from fastapi import FastAPI, Request

from puppy_kernel.core.config import settings
from puppy_kernel.core.errors import (
    EventNotFoundError,
    PuppyKernelError,
    puppy_kernel_exception_handler,
)
from puppy_kernel.event_log.filters import chronological, of_types
from puppy_kernel.event_log.store import EventLog
from puppy_kernel.models.event import Event, EventType, to_local_naive
from puppy_kernel.models.prediction import PredictionConfig
from puppy_kernel.patterns.analyzer import analyze_patterns
from puppy_kernel.patterns.gaps import calculate_gap_stats, recent_gaps
from puppy_kernel.prediction.engine import calculate_prediction
from puppy_kernel.sessions.reconstructor import build_sleep_sessions, build_walk_sessions
from puppy_kernel.status.refresher import StatusRefresher
from puppy_kernel.streaks.tracker import get_streak_info
from puppy_kernel.timeline.generator import day_window, generate, timeline_bounds


def create_app(
    event_log: Optional[EventLog] = None,
    prediction_config: Optional[PredictionConfig] = None,
    refresher: Optional[StatusRefresher] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Puppy Kernel API",
        description="Puppy event log reconstruction and status engine",
        version="0.1.0",
    )
    app.add_exception_handler(PuppyKernelError, puppy_kernel_exception_handler)
    logging.getLogger("puppy_kernel").setLevel(settings.LOG_LEVEL.upper())

    # Initialize components
    log = refresher.event_log if refresher else (event_log or EventLog(settings.DATABASE_PATH))
    rf = refresher or StatusRefresher(log, config=prediction_config)

    app.state.event_log = log
    app.state.refresher = rf

    def _events(start: Optional[datetime], end: Optional[datetime]) -> List[Event]:
        if start is None and end is None:
            return log.get_all_events()
        start, end = to_local_naive(start), to_local_naive(end)
        return log.get_events(start or datetime.min, end or datetime.max)

    @app.get("/health")
    def health():
        return {"status": "ok", "refresher": rf.status, "event_count": log.count()}

    # === EVENTS ===

    @app.post("/events", status_code=201)
    def create_event(event: Event, now: Optional[datetime] = None):
        """Log a new event."""
        stored = rf.log_event(event, now=to_local_naive(now))
        return stored.model_dump(mode="json")

    @app.get("/events")
    def list_events(start: Optional[datetime] = None, end: Optional[datetime] = None):
        """Events in [start, end), oldest first."""
        return [e.model_dump(mode="json") for e in chronological(_events(start, end))]

    @app.get("/events/{event_id}")
    def get_event(event_id: str):
        event = log.get_event(event_id)
        if not event:
            raise EventNotFoundError(event_id)
        return event.model_dump(mode="json")

    @app.put("/events/{event_id}")
    async def update_event(
        event_id: str, event: Event, request: Request, now: Optional[datetime] = None
    ):
        """
        Replace an event. The path id wins over the body id.
        A sleep keeps its stored session link unless the body names one.
        """
        now = to_local_naive(now)
        existing = log.get_event(event_id)
        if not existing:
            raise EventNotFoundError(event_id)

        changes = {"id": event_id, "created_at": existing.created_at}
        body = await request.json()
        if (
            event.type == EventType.SLEEP
            and existing.type == EventType.SLEEP
            and not body.get("sleep_session_id")
        ):
            changes["sleep_session_id"] = existing.sleep_session_id
        updated = event.with_updated_timestamp(modified_at=now, **changes)
        rf.update_event(updated, now=now)
        return updated.model_dump(mode="json")

    @app.delete("/events/{event_id}")
    def delete_event(event_id: str, now: Optional[datetime] = None):
        rf.delete_event(event_id, now=to_local_naive(now))
        return {"status": "deleted", "event_id": event_id}

    # === STATUS ===

    @app.get("/status")
    def get_status(now: Optional[datetime] = None, force: bool = False):
        """Full status snapshot (debounced unless forced)."""
        return rf.refresh(force=force, now=to_local_naive(now)).model_dump(mode="json")

    @app.post("/status/dismiss-assumed-sleep")
    def dismiss_assumed_sleep(now: Optional[datetime] = None):
        rf.dismiss_assumed_sleep(now=to_local_naive(now))
        return {
            "status": "dismissed",
            "date": rf.dismissed_assumed_sleep_date.isoformat(),
        }

    @app.get("/prediction")
    def get_prediction(now: Optional[datetime] = None):
        now = to_local_naive(now) or datetime.now()
        prediction = calculate_prediction(rf.recent_events(now), rf.config, now=now)
        return prediction.model_dump(mode="json")

    @app.get("/streaks")
    def get_streaks():
        events = log.get_all_events()
        gaps = of_types(events, EventType.COVERAGE_GAP)
        return get_streak_info(events, coverage_gaps=gaps).model_dump(mode="json")

    @app.get("/patterns")
    def get_patterns(period_days: int = 7, now: Optional[datetime] = None):
        now = to_local_naive(now) or datetime.now()
        events = log.get_events(now - timedelta(days=period_days), now + timedelta(seconds=1))
        return analyze_patterns(events, period_days=period_days, now=now).model_dump(mode="json")

    @app.get("/patterns/gaps")
    def get_potty_gaps(days: int = 7, now: Optional[datetime] = None):
        """Daytime intervals between pees over the trailing window, with stats."""
        now = to_local_naive(now) or datetime.now()
        events = log.get_all_events()
        coverage = of_types(events, EventType.COVERAGE_GAP)
        gaps = recent_gaps(events, days=days, now=now, coverage_gaps=coverage)
        stats = calculate_gap_stats(gaps)
        return {
            "gaps": [g.model_dump(mode="json") for g in gaps],
            "stats": {**stats.model_dump(), "outdoor_percentage": stats.outdoor_percentage},
        }

    # === TIMELINE & SESSIONS ===

    @app.get("/timeline")
    def get_timeline(day: Optional[date] = None, now: Optional[datetime] = None):
        """Activity blocks, summary and display bounds for one day."""
        now = to_local_naive(now) or datetime.now()
        day = day or now.date()
        day_start, day_end = day_window(day)
        previous = log.get_events(day_start - timedelta(days=1), day_start)
        blocks, summary = generate(log.get_events(day_start, day_end), day, previous, now=now)
        start, end = timeline_bounds(blocks, day, now=now)
        return {
            "day": day.isoformat(),
            "blocks": [b.model_dump(mode="json") for b in blocks],
            "summary": summary.model_dump(mode="json"),
            "bounds": {"start": start.isoformat(), "end": end.isoformat()},
        }

    @app.get("/sessions/sleep")
    def get_sleep_sessions(start: Optional[datetime] = None, end: Optional[datetime] = None):
        return [s.model_dump(mode="json") for s in build_sleep_sessions(_events(start, end))]

    @app.get("/sessions/walks")
    def get_walk_sessions(start: Optional[datetime] = None, end: Optional[datetime] = None):
        return [s.model_dump(mode="json") for s in build_walk_sessions(_events(start, end))]

    # === CONFIG ===

    @app.get("/config")
    def get_config():
        """Current prediction configuration."""
        return rf.config.model_dump()

    @app.put("/config")
    def update_config(config: PredictionConfig):
        rf.update_config(config)
        return config.model_dump()

    return app


# Default application instance
app = create_app()
