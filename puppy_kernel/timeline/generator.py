"""
Activity Block Generator: turns a day's events into timeline blocks.

Sleep and walk sessions become duration blocks clipped to the displayed day
[00:00, next 00:00). Potty, meal and drink events inside the day become
instant markers. Time not covered by a duration block is implicitly awake
and never emitted.

Duration blocks never overlap. A block that starts inside an earlier one
wins the time it covers: the earlier block is cut around it and continues
afterwards when it ran longer. Only a block covered entirely is dropped.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple

from puppy_kernel.event_log.filters import between, dedupe
from puppy_kernel.models.event import Event, EventType
from puppy_kernel.models.timeline import (
    ActivityBlock,
    ActivityBlockKind,
    ActivityBlockSummary,
)
from puppy_kernel.sessions.reconstructor import build_sleep_sessions, build_walk_sessions

logger = logging.getLogger(__name__)

DEFAULT_WALK_MINUTES = 30
MEAL_MARKER_TYPES = (EventType.MEAL, EventType.DRINK)


def day_window(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def _clip(
    start: datetime, end: datetime, window_start: datetime, window_end: datetime
) -> Optional[Tuple[datetime, datetime]]:
    if end < start:
        end = start
    if start >= window_end or end <= window_start:
        return None
    return max(start, window_start), min(end, window_end)


def _resolve_overlaps(blocks: List[ActivityBlock]) -> List[ActivityBlock]:
    """
    Later-starting blocks take precedence over the time they cover. An
    earlier block is cut at the later block's start and, if it runs past the
    later block's end, resumes afterwards as a separate piece.
    """
    ordered = sorted(
        (b for b in blocks if b.end_time > b.start_time),
        key=lambda b: (b.start_time, b.end_time, b.id),
    )
    resolved: List[ActivityBlock] = []
    for block in ordered:
        pieces = []
        for earlier in resolved:
            if earlier.end_time <= block.start_time or earlier.start_time >= block.end_time:
                pieces.append(earlier)
                continue
            if earlier.start_time < block.start_time:
                pieces.append(earlier.model_copy(
                    update={"end_time": block.start_time, "is_ongoing": False}
                ))
            if earlier.end_time > block.end_time:
                pieces.append(earlier.model_copy(
                    update={"id": f"{earlier.id}/{block.id}", "start_time": block.end_time}
                ))
            if earlier.start_time >= block.start_time and earlier.end_time <= block.end_time:
                logger.debug(
                    "Dropping %s block %s hidden by %s", earlier.kind.value, earlier.id, block.id
                )
        pieces.append(block)
        resolved = pieces
    return sorted(resolved, key=lambda b: (b.start_time, b.id))


def generate_blocks(
    events: Iterable[Event],
    day: date,
    previous_day_events: Iterable[Event] = (),
    now: Optional[datetime] = None,
) -> List[ActivityBlock]:
    """
    Build the blocks for one calendar day.

    `previous_day_events` lets a sleep that began the evening before show up
    as a block starting at 00:00.
    """
    now = now or datetime.now()
    is_today = day == now.date()
    window_start, window_end = day_window(day)

    all_events = dedupe(list(events) + list(previous_day_events))
    durations: List[ActivityBlock] = []

    for session in build_sleep_sessions(all_events):
        end = session.end_time or now
        clipped = _clip(session.start_time, end, window_start, window_end)
        if clipped is None:
            continue
        contained = [session.start_event_id]
        if session.end_event_id:
            contained.append(session.end_event_id)
        durations.append(ActivityBlock(
            id=session.id,
            kind=ActivityBlockKind.SLEEP,
            start_time=clipped[0],
            end_time=clipped[1],
            contained_event_ids=contained,
            is_ongoing=session.is_ongoing and is_today,
        ))

    for walk in build_walk_sessions(all_events):
        minutes = walk.walk_event.duration_min or DEFAULT_WALK_MINUTES
        end = walk.start_time + timedelta(minutes=minutes)
        clipped = _clip(walk.start_time, end, window_start, window_end)
        if clipped is None:
            continue
        durations.append(ActivityBlock(
            id=walk.id,
            kind=ActivityBlockKind.WALK,
            start_time=clipped[0],
            end_time=clipped[1],
            contained_event_ids=[walk.id] + [p.id for p in walk.potty_events],
        ))

    blocks = _resolve_overlaps(durations)

    for event in between(all_events, window_start, window_end):
        if event.type.is_potty:
            blocks.append(ActivityBlock(
                id=event.id,
                kind=ActivityBlockKind.POTTY,
                start_time=event.time,
                end_time=event.time,
                contained_event_ids=[event.id],
                outdoor=event.is_outdoor,
            ))
        elif event.type in MEAL_MARKER_TYPES:
            blocks.append(ActivityBlock(
                id=event.id,
                kind=ActivityBlockKind.MEAL,
                start_time=event.time,
                end_time=event.time,
                contained_event_ids=[event.id],
            ))

    return sorted(blocks, key=lambda b: (b.start_time, b.id))


def generate_summary(blocks: Iterable[ActivityBlock]) -> ActivityBlockSummary:
    summary = ActivityBlockSummary()
    for block in blocks:
        if block.kind == ActivityBlockKind.SLEEP:
            summary.total_sleep_minutes += block.duration_minutes
        elif block.kind == ActivityBlockKind.WALK:
            summary.walk_count += 1
            summary.total_walk_minutes += block.duration_minutes
        elif block.kind == ActivityBlockKind.POTTY:
            if block.outdoor:
                summary.outdoor_potty_count += 1
            else:
                summary.indoor_potty_count += 1
        elif block.kind == ActivityBlockKind.MEAL:
            summary.meal_count += 1
    return summary


def generate(
    events: Iterable[Event],
    day: date,
    previous_day_events: Iterable[Event] = (),
    now: Optional[datetime] = None,
) -> Tuple[List[ActivityBlock], ActivityBlockSummary]:
    blocks = generate_blocks(events, day, previous_day_events, now=now)
    return blocks, generate_summary(blocks)


def timeline_bounds(
    blocks: Iterable[ActivityBlock],
    day: date,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """
    Display range for a day's timeline, on whole hours where possible.

    Starts at the earliest block (day start when empty) and ends after the
    latest block, capped at the next midnight. Today's range always reaches
    `now`.
    """
    now = now or datetime.now()
    window_start, window_end = day_window(day)
    blocks = list(blocks)

    if not blocks:
        start = window_start
        end = now if day == now.date() else window_end
        return start, max(start, end)

    earliest = min(b.start_time for b in blocks)
    latest = max(b.end_time for b in blocks)

    start = earliest.replace(minute=0, second=0, microsecond=0)
    end = latest.replace(minute=0, second=0, microsecond=0)
    if end < latest:
        end += timedelta(hours=1)
    end = max(min(end, window_end), latest)

    if day == now.date():
        end = max(end, now)
    return start, end
