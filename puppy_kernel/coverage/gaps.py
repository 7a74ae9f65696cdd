"""
Coverage gaps: intervals where someone else had the puppy and nothing was logged.

Calculations use these to keep other people's care from counting for or
against the owner (e.g. streaks continue across a gap). An ongoing gap
extends indefinitely; a gap whose end precedes its start is treated as
instantaneous.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from puppy_kernel.models.event import Event, EventType


def _gap_bounds(gap: Event) -> Tuple[datetime, datetime]:
    if gap.end_time is None:
        return gap.time, datetime.max
    return gap.time, max(gap.time, gap.end_time)


def _coverage_gaps(gaps: Iterable[Event]) -> List[Event]:
    return [g for g in gaps if g.type == EventType.COVERAGE_GAP]


def is_time_covered_by_gap(time: datetime, gaps: Iterable[Event]) -> bool:
    for gap in _coverage_gaps(gaps):
        start, end = _gap_bounds(gap)
        if start <= time <= end:
            return True
    return False


def interval_spans_gap(start: datetime, end: datetime, gaps: Iterable[Event]) -> bool:
    """True if [start, end] overlaps any gap."""
    for gap in _coverage_gaps(gaps):
        gap_start, gap_end = _gap_bounds(gap)
        if start < gap_end and end > gap_start:
            return True
    return False


def filter_events_outside_gaps(events: Iterable[Event], gaps: Iterable[Event]) -> List[Event]:
    gaps = _coverage_gaps(gaps)
    if not gaps:
        return list(events)
    return [e for e in events if not is_time_covered_by_gap(e.time, gaps)]


def active_gap(gaps: Iterable[Event]) -> Optional[Event]:
    """The ongoing gap, if one is open."""
    for gap in _coverage_gaps(gaps):
        if gap.end_time is None:
            return gap
    return None


def gaps_overlapping(start: datetime, end: datetime, gaps: Iterable[Event]) -> List[Event]:
    """Gaps touching [start, end], endpoints included."""
    overlapping = []
    for gap in _coverage_gaps(gaps):
        gap_start, gap_end = _gap_bounds(gap)
        if gap_start <= end and gap_end >= start:
            overlapping.append(gap)
    return overlapping
