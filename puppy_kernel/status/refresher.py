"""
Status Refresher: owns caller-side status state and recomputes on demand.

The engine is stateless; this class holds what it must not:
  - the wake-time potty snapshot and the last potty log time
  - the date the assumed-overnight-sleep card was dismissed
  - the cached StatusSnapshot and when it was computed

Recompute is explicit. `refresh()` is debounced; every mutation goes through
this class and forces a refresh so status is never stale after an edit.
`run_async()` keeps time-driven values (minutes since, urgency) moving.
"""

import asyncio
import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from puppy_kernel.core.config import settings
from puppy_kernel.event_log.filters import of_types
from puppy_kernel.event_log.store import EventLog
from puppy_kernel.models.event import Event, EventType
from puppy_kernel.models.prediction import PredictionConfig
from puppy_kernel.models.status import StatusSnapshot, WakeTimePottyState
from puppy_kernel.patterns.analyzer import analyze_patterns
from puppy_kernel.prediction.engine import calculate_prediction
from puppy_kernel.sessions.reconstructor import current_sleep_state, ongoing_sleep_session_id
from puppy_kernel.status.coordinator import (
    calculate_combined_state,
    capture_wake_time_potty_state,
    should_clear_wake_state,
)
from puppy_kernel.streaks.tracker import get_streak_info
from puppy_kernel.timeline.generator import generate

logger = logging.getLogger(__name__)

PATTERN_PERIOD_DAYS = 7


class StatusRefresher:
    """Debounced, explicitly triggered status computation over an EventLog."""

    def __init__(
        self,
        event_log: EventLog,
        config: Optional[PredictionConfig] = None,
        debounce_seconds: Optional[float] = None,
        refresh_interval_seconds: Optional[float] = None,
    ):
        self.event_log = event_log
        self.config = config or PredictionConfig()
        self.debounce_seconds = (
            settings.REFRESH_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        )
        self.refresh_interval_seconds = (
            settings.REFRESH_INTERVAL_SECONDS
            if refresh_interval_seconds is None
            else refresh_interval_seconds
        )

        self.wake_state: Optional[WakeTimePottyState] = None
        self.last_potty_logged_at: Optional[datetime] = None
        self.dismissed_assumed_sleep_date: Optional[date] = None

        self._snapshot: Optional[StatusSnapshot] = None
        self._last_refresh_at: Optional[datetime] = None
        self._running = False

    @property
    def status(self) -> str:
        return "running" if self._running else "stopped"

    @property
    def snapshot(self) -> Optional[StatusSnapshot]:
        return self._snapshot

    # --- Event windows ---

    def recent_events(self, now: datetime) -> List[Event]:
        """Yesterday and today."""
        start = datetime.combine(now.date() - timedelta(days=1), time.min)
        return self.event_log.get_events(start, start + timedelta(days=2))

    # --- Computation ---

    def refresh(self, force: bool = False, now: Optional[datetime] = None) -> StatusSnapshot:
        """
        Recompute the status snapshot.
        Skipped (cached snapshot returned) when the previous computation is
        younger than the debounce interval, unless forced.
        """
        if now is None:
            now = datetime.now()

        if (
            not force
            and self._snapshot is not None
            and self._last_refresh_at is not None
            and timedelta(0) <= now - self._last_refresh_at < timedelta(seconds=self.debounce_seconds)
        ):
            logger.debug("Refresh skipped; last computed at %s", self._last_refresh_at)
            return self._snapshot

        if should_clear_wake_state(self.wake_state, self.last_potty_logged_at):
            logger.debug("Potty logged since wake; clearing wake snapshot")
            self.wake_state = None

        recent = self.recent_events(now)
        all_events = self.event_log.get_all_events()
        gaps = of_types(all_events, EventType.COVERAGE_GAP)

        today = now.date()
        yesterday_start = datetime.combine(today - timedelta(days=1), time.min)
        today_start = yesterday_start + timedelta(days=1)
        today_events = [e for e in recent if e.time >= today_start]
        yesterday_events = [e for e in recent if e.time < today_start]

        sleep_state = current_sleep_state(recent, now=now)
        prediction = calculate_prediction(recent, self.config, now=now)
        blocks, summary = generate(today_events, today, yesterday_events, now=now)

        self._snapshot = StatusSnapshot(
            computed_at=now,
            sleep_state=sleep_state,
            prediction=prediction,
            streak=get_streak_info(all_events, coverage_gaps=gaps),
            patterns=analyze_patterns(all_events, period_days=PATTERN_PERIOD_DAYS, now=now),
            combined=calculate_combined_state(
                sleep_state=sleep_state,
                potty_prediction=prediction,
                wake_time_potty_state=self.wake_state,
                recent_events=recent,
                dismissed_assumed_sleep_date=self.dismissed_assumed_sleep_date,
                now=now,
            ),
            blocks=blocks,
            summary=summary,
            wake_state=self.wake_state,
        )
        self._last_refresh_at = now
        return self._snapshot

    # --- Mutations ---

    def log_event(self, event: Event, now: Optional[datetime] = None) -> Event:
        """
        Store a new event and force a refresh.

        A wake logged without a session link is attached to the open sleep.
        Logging a wake freezes the potty prediction as it stood before the
        wake; the snapshot is kept only once the wake is stored.
        """
        if now is None:
            now = datetime.now()

        wake_state: Optional[WakeTimePottyState] = None
        if event.type == EventType.WAKE:
            recent = self.recent_events(now)
            if not event.sleep_session_id:
                link = ongoing_sleep_session_id(recent)
                if link:
                    event = event.model_copy(update={"sleep_session_id": link})
            wake_state = capture_wake_time_potty_state(
                calculate_prediction(recent, self.config, now=now), now=now
            )

        self.event_log.add_event(event)

        if wake_state is not None:
            self.wake_state = wake_state

        if event.type.is_potty:
            self.last_potty_logged_at = now

        self.refresh(force=True, now=now)
        return event

    def update_event(self, event: Event, now: Optional[datetime] = None) -> Event:
        self.event_log.update_event(event)
        self.refresh(force=True, now=now)
        return event

    def delete_event(self, event_id: str, now: Optional[datetime] = None) -> None:
        self.event_log.delete_event(event_id)
        self.refresh(force=True, now=now)

    def update_config(self, config: PredictionConfig, now: Optional[datetime] = None) -> None:
        self.config = config
        self.refresh(force=True, now=now)

    # --- Assumed overnight sleep ---

    def dismiss_assumed_sleep(self, now: Optional[datetime] = None) -> None:
        """Hide the assumed-overnight-sleep card for the rest of today."""
        if now is None:
            now = datetime.now()
        self.dismissed_assumed_sleep_date = now.date()
        logger.info("Assumed overnight sleep dismissed for %s", now.date())
        self.refresh(force=True, now=now)

    def confirm_assumed_sleep(
        self, sleep_start: datetime, now: Optional[datetime] = None
    ) -> Event:
        """Log the assumed sleep as a real, still ongoing sleep."""
        if now is None:
            now = datetime.now()
        self.dismissed_assumed_sleep_date = now.date()
        return self.log_event(Event(time=sleep_start, type=EventType.SLEEP), now=now)

    def confirm_assumed_sleep_and_wake(
        self,
        sleep_start: datetime,
        wake_time: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> List[Event]:
        """Log the assumed sleep together with its wake."""
        if now is None:
            now = datetime.now()
        self.dismissed_assumed_sleep_date = now.date()
        sleep = self.log_event(Event(time=sleep_start, type=EventType.SLEEP), now=now)
        wake = self.log_event(
            Event(
                time=wake_time or now,
                type=EventType.WAKE,
                sleep_session_id=sleep.sleep_session_id,
            ),
            now=now,
        )
        return [sleep, wake]

    # --- Periodic refresh ---

    async def run_async(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Refresh on a fixed interval until `stop_event` is set."""
        self._running = True
        if stop_event is None:
            stop_event = asyncio.Event()

        try:
            while not stop_event.is_set():
                self.refresh(force=True)
                try:
                    await asyncio.wait_for(
                        stop_event.wait(),
                        timeout=self.refresh_interval_seconds,
                    )
                except asyncio.TimeoutError:
                    continue
        finally:
            self._running = False
