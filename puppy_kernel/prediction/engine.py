"""
Prediction Engine: when is the next potty break due?

The expected gap starts at the configured default and is shortened by the
most recent trigger logged after the last pee:
  - post-meal: a meal within the post-meal window
  - post-sleep: a wake within the post-sleep window, closing a nap at least
    `min_nap_duration_for_potty_trigger` minutes long
When both qualify the later anchor wins; on equal anchor times the meal wins.

remaining = expected_gap - minutes since the last pee, bucketed into urgency.
Poops do not reset the timer.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from puppy_kernel.event_log.filters import chronological, minutes_between, of_types, pee_events
from puppy_kernel.models.event import Event, EventType
from puppy_kernel.models.prediction import (
    PottyPrediction,
    PottyTrigger,
    PredictionConfig,
    UrgencyLevel,
)
from puppy_kernel.sessions.reconstructor import build_sleep_sessions

HIGH_THRESHOLD_MINUTES = 10
MEDIUM_THRESHOLD_MINUTES = 20


def urgency_for_remaining(remaining: int) -> UrgencyLevel:
    if remaining <= 0:
        return UrgencyLevel.CRITICAL
    if remaining <= HIGH_THRESHOLD_MINUTES:
        return UrgencyLevel.HIGH
    if remaining <= MEDIUM_THRESHOLD_MINUTES:
        return UrgencyLevel.MEDIUM
    return UrgencyLevel.NORMAL


def _meal_anchor(
    events: List[Event], after: datetime, config: PredictionConfig, now: datetime
) -> Optional[datetime]:
    meals = [
        e for e in of_types(events, EventType.MEAL)
        if after < e.time <= now
    ]
    if not meals:
        return None
    latest = chronological(meals)[-1]
    if minutes_between(latest.time, now) > config.post_meal_window_minutes:
        return None
    return latest.time


def _sleep_anchor(
    events: List[Event], after: datetime, config: PredictionConfig, now: datetime
) -> Optional[datetime]:
    completed = [
        s for s in build_sleep_sessions(events)
        if s.end_time is not None and after < s.end_time <= now
    ]
    if not completed:
        return None
    latest = max(completed, key=lambda s: (s.end_time, s.start_time))
    if latest.duration_minutes() < config.min_nap_duration_for_potty_trigger:
        return None
    if minutes_between(latest.end_time, now) > config.post_sleep_window_minutes:
        return None
    return latest.end_time


def detect_trigger(
    events: Iterable[Event],
    last_potty_time: datetime,
    config: Optional[PredictionConfig] = None,
    now: Optional[datetime] = None,
) -> Tuple[PottyTrigger, Optional[datetime]]:
    """The active trigger and its anchor time, or (NONE, None)."""
    config = config or PredictionConfig()
    now = now or datetime.now()
    events = list(events)

    meal_at = _meal_anchor(events, last_potty_time, config, now)
    wake_at = _sleep_anchor(events, last_potty_time, config, now)

    if meal_at is not None and (wake_at is None or meal_at >= wake_at):
        return PottyTrigger.POST_MEAL, meal_at
    if wake_at is not None:
        return PottyTrigger.POST_SLEEP, wake_at
    return PottyTrigger.NONE, None


def expected_gap(trigger: PottyTrigger, config: PredictionConfig) -> int:
    if trigger == PottyTrigger.POST_MEAL:
        return int(config.default_gap_minutes * config.post_meal_gap_multiplier)
    if trigger == PottyTrigger.POST_SLEEP:
        return int(config.default_gap_minutes * config.post_sleep_gap_multiplier)
    return config.default_gap_minutes


def calculate_prediction(
    events: Iterable[Event],
    config: Optional[PredictionConfig] = None,
    now: Optional[datetime] = None,
) -> PottyPrediction:
    config = config or PredictionConfig()
    now = now or datetime.now()
    events = list(events)

    history = [e for e in pee_events(events) if e.time <= now]
    if not history:
        return PottyPrediction(
            urgency=UrgencyLevel.UNKNOWN,
            expected_gap_minutes=config.default_gap_minutes,
        )

    last = chronological(history)[-1]
    since = minutes_between(last.time, now)

    trigger, anchor = detect_trigger(events, last.time, config, now)
    gap = expected_gap(trigger, config)
    remaining = gap - since

    return PottyPrediction(
        urgency=urgency_for_remaining(remaining),
        trigger=trigger,
        trigger_minutes_ago=minutes_between(anchor, now) if anchor else None,
        expected_gap_minutes=gap,
        minutes_since_last=since,
        minutes_remaining=remaining,
        last_was_indoor=last.is_indoor,
    )
