"""
Pattern Analyzer: rolling-window potty success rates.

Over the trailing `period_days` window this reports the outdoor success
rate, per-type event counts, and for each trigger kind how often the first
pee after it happened outdoors. Below MIN_POTTY_EVENTS potty events the
result is flagged as insufficient and carries no displayable rate.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from puppy_kernel.event_log.filters import chronological, potty_events
from puppy_kernel.models.event import Event, EventType
from puppy_kernel.models.insights import PatternAnalysis, PatternTrigger

MIN_POTTY_EVENTS = 5
TRIGGER_WINDOW_MINUTES = 30
WALK_TRIGGER_WINDOW_MINUTES = 60

# (trigger id, event types that start it, minutes to look ahead)
TRIGGERS: List[Tuple[str, Tuple[EventType, ...], int]] = [
    ("sleep", (EventType.WAKE,), TRIGGER_WINDOW_MINUTES),
    ("meal", (EventType.MEAL,), TRIGGER_WINDOW_MINUTES),
    ("walk", (EventType.WALK,), WALK_TRIGGER_WINDOW_MINUTES),
    ("drink", (EventType.DRINK,), TRIGGER_WINDOW_MINUTES),
    ("play", (EventType.TRAINING, EventType.SOCIAL), TRIGGER_WINDOW_MINUTES),
]


def first_potty_after(
    time: datetime, events: Sequence[Event], window_minutes: int = TRIGGER_WINDOW_MINUTES
) -> Optional[Event]:
    """First located pee in (time, time + window]. `events` must be sorted."""
    window_end = time + timedelta(minutes=window_minutes)
    for event in events:
        if event.type != EventType.PEE or event.location is None:
            continue
        if time < event.time <= window_end:
            return event
    return None


def analyze_trigger(
    trigger_id: str,
    trigger_types: Tuple[EventType, ...],
    events: Sequence[Event],
    window_minutes: int = TRIGGER_WINDOW_MINUTES,
) -> PatternTrigger:
    outdoor = 0
    indoor = 0
    for event in events:
        if event.type not in trigger_types:
            continue
        potty = first_potty_after(event.time, events, window_minutes)
        if potty is None:
            continue
        if potty.is_outdoor:
            outdoor += 1
        elif potty.is_indoor:
            indoor += 1
    return PatternTrigger(id=trigger_id, outdoor_count=outdoor, indoor_count=indoor)


def analyze_patterns(
    events: Sequence[Event],
    period_days: int = 7,
    now: Optional[datetime] = None,
) -> PatternAnalysis:
    now = now or datetime.now()
    window_start = now - timedelta(days=period_days)
    windowed = chronological(e for e in events if window_start <= e.time <= now)

    potties = potty_events(windowed)
    outdoor = sum(1 for e in potties if e.is_outdoor)
    indoor = sum(1 for e in potties if e.is_indoor)
    located = outdoor + indoor

    counts: Dict[str, int] = {}
    for event in windowed:
        counts[event.type.value] = counts.get(event.type.value, 0) + 1

    return PatternAnalysis(
        period_days=period_days,
        window_start=window_start,
        window_end=now,
        potty_count=len(potties),
        outdoor_count=outdoor,
        indoor_count=indoor,
        success_rate=outdoor / located if located else 0.0,
        insufficient_data=len(potties) < MIN_POTTY_EVENTS,
        counts_by_type=counts,
        triggers=[
            analyze_trigger(trigger_id, types, windowed, window)
            for trigger_id, types, window in TRIGGERS
        ],
    )
