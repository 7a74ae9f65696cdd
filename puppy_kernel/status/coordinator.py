"""
Status Coordinator: picks which status card(s) to surface.

Decision table, first match wins:
  1. awake, with an unexpired wake snapshot that was urgent -> just woke, needs potty
  2. sleeping -> sleeping (potty urgent) or sleeping (potty okay)
  3. awake/unknown on an undismissed morning with no overnight sleep logged
     -> assumed overnight sleep
  4. awake -> awake
  5. otherwise -> unknown

The wake snapshot itself is owned by the caller. It is captured once when a
wake is logged and must be cleared exactly when `should_clear_wake_state`
returns True.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Tuple

from puppy_kernel.event_log.filters import chronological, minutes_between
from puppy_kernel.models.event import Event, EventType
from puppy_kernel.models.prediction import PottyPrediction
from puppy_kernel.models.status import (
    CombinedState,
    CombinedStateKind,
    SleepState,
    WakeTimePottyState,
)

MORNING_START_HOUR = 5
MORNING_END_HOUR = 12
EVENING_CUTOFF_HOUR = 18       # Sleep logged after this counts as overnight
LATEST_BEDTIME_HOUR = 3        # Last event before this can be the bedtime
DEFAULT_BEDTIME_HOUR = 22

OVERNIGHT_SLEEP_TYPES = (EventType.SLEEP, EventType.WAKE, EventType.CRATE)


def capture_wake_time_potty_state(
    potty_prediction: PottyPrediction, now: Optional[datetime] = None
) -> WakeTimePottyState:
    """Freeze the prediction as it stood when the puppy woke up."""
    return WakeTimePottyState(
        captured_at=now or datetime.now(),
        prediction=potty_prediction,
    )


def should_clear_wake_state(
    wake_state: Optional[WakeTimePottyState],
    potty_was_logged_since: Optional[datetime],
) -> bool:
    """True iff a potty was logged at or after the snapshot was taken."""
    if wake_state is None or potty_was_logged_since is None:
        return False
    return potty_was_logged_since >= wake_state.captured_at


def _overnight_window(now: datetime) -> Tuple[datetime, datetime]:
    yesterday = now.date() - timedelta(days=1)
    evening = datetime.combine(yesterday, time(hour=EVENING_CUTOFF_HOUR))
    latest_bedtime = datetime.combine(now.date(), time(hour=LATEST_BEDTIME_HOUR))
    return evening, latest_bedtime


def detect_assumed_overnight_sleep(
    recent_events: Iterable[Event],
    dismissed_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Optional[Tuple[datetime, int]]:
    """
    In the morning, if nothing sleep-related was logged since last evening,
    assume the puppy slept through the night.

    Returns (suggested sleep start, minutes sleeping) or None. The suggested
    start is the last event logged last night, falling back to 22:00.
    """
    now = now or datetime.now()
    if not MORNING_START_HOUR <= now.hour < MORNING_END_HOUR:
        return None
    if dismissed_date == now.date():
        return None

    evening, latest_bedtime = _overnight_window(now)
    recent = [e for e in recent_events if evening <= e.time <= now]
    if any(e.type in OVERNIGHT_SLEEP_TYPES for e in recent):
        return None

    last_night = chronological(e for e in recent if e.time < latest_bedtime)
    if last_night:
        suggested = last_night[-1].time
    else:
        suggested = datetime.combine(evening.date(), time(hour=DEFAULT_BEDTIME_HOUR))

    return suggested, minutes_between(suggested, now)


def calculate_combined_state(
    sleep_state: SleepState,
    potty_prediction: PottyPrediction,
    wake_time_potty_state: Optional[WakeTimePottyState] = None,
    recent_events: Iterable[Event] = (),
    dismissed_assumed_sleep_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> CombinedState:
    now = now or datetime.now()
    snapshot = wake_time_potty_state

    if (
        snapshot is not None
        and snapshot.was_urgent
        and not snapshot.has_expired(now)
        and sleep_state.is_awake
    ):
        return CombinedState(
            kind=CombinedStateKind.JUST_WOKE_NEEDS_POTTY,
            woke_at=snapshot.captured_at,
            minutes_since_wake=minutes_between(snapshot.captured_at, now),
            minutes_overdue=snapshot.minutes_overdue,
        )

    if sleep_state.is_sleeping:
        if potty_prediction.is_urgent:
            return CombinedState(
                kind=CombinedStateKind.SLEEPING_POTTY_URGENT,
                sleeping_since=sleep_state.since,
                sleep_duration_min=sleep_state.duration_min,
                potty_urgency=potty_prediction.urgency,
                minutes_overdue=potty_prediction.minutes_overdue,
            )
        return CombinedState(
            kind=CombinedStateKind.SLEEPING_POTTY_OKAY,
            sleeping_since=sleep_state.since,
            sleep_duration_min=sleep_state.duration_min,
        )

    assumed = detect_assumed_overnight_sleep(recent_events, dismissed_assumed_sleep_date, now)
    if assumed is not None:
        suggested, minutes = assumed
        return CombinedState(
            kind=CombinedStateKind.ASSUMED_OVERNIGHT_SLEEP,
            suggested_sleep_start=suggested,
            minutes_sleeping=minutes,
        )

    if sleep_state.is_awake:
        return CombinedState(kind=CombinedStateKind.AWAKE)
    return CombinedState(kind=CombinedStateKind.UNKNOWN)
