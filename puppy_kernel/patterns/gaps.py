"""
Potty gaps: how long the puppy holds it between pees.

A gap is the interval between two consecutive pee events. Overnight
intervals (longer than 8 hours, or with an end outside 07:00-23:00) are
dropped when filtering is on, since they describe sleep rather than
daytime bladder control. Intervals crossing a coverage gap are always
dropped: nobody was logging, so the real interval is unknown.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from puppy_kernel.coverage.gaps import interval_spans_gap
from puppy_kernel.event_log.filters import chronological, minutes_between, pee_events
from puppy_kernel.models.event import Event, EventLocation
from puppy_kernel.models.insights import GapStats, PottyGap

logger = logging.getLogger(__name__)

DAYTIME_START_HOUR = 7
DAYTIME_END_HOUR = 23
MAX_GAP_MINUTES = 8 * 60


def _is_daytime(moment: datetime) -> bool:
    return DAYTIME_START_HOUR <= moment.hour < DAYTIME_END_HOUR


def filter_potty_gaps(
    gaps: Iterable[PottyGap], coverage_gaps: Iterable[Event]
) -> Tuple[List[PottyGap], int]:
    """Drop intervals that overlap a coverage gap. Returns (kept, excluded count)."""
    gaps = list(gaps)
    coverage_gaps = list(coverage_gaps)
    kept = [
        g for g in gaps
        if not interval_spans_gap(g.start_time, g.end_time, coverage_gaps)
    ]
    return kept, len(gaps) - len(kept)


def calculate_potty_gaps(
    events: Iterable[Event],
    filter_overnight: bool = True,
    coverage_gaps: Iterable[Event] = (),
) -> List[PottyGap]:
    pees = chronological(pee_events(events))

    gaps = []
    for start, end in zip(pees, pees[1:]):
        minutes = minutes_between(start.time, end.time)
        if filter_overnight and (
            minutes > MAX_GAP_MINUTES
            or not (_is_daytime(start.time) and _is_daytime(end.time))
        ):
            continue
        gaps.append(PottyGap(
            start_time=start.time,
            end_time=end.time,
            duration_minutes=minutes,
            start_location=start.location,
            end_location=end.location,
        ))

    kept, excluded = filter_potty_gaps(gaps, coverage_gaps)
    if excluded:
        logger.debug("Excluded %d potty gaps crossing coverage gaps", excluded)
    return kept


def calculate_gap_stats(gaps: Iterable[PottyGap]) -> GapStats:
    gaps = list(gaps)
    if not gaps:
        return GapStats()

    durations = sorted(g.duration_minutes for g in gaps)
    mid = len(durations) // 2
    if len(durations) % 2 == 0:
        median = (durations[mid - 1] + durations[mid]) // 2
    else:
        median = durations[mid]

    return GapStats(
        count=len(gaps),
        min_minutes=durations[0],
        max_minutes=durations[-1],
        avg_minutes=sum(durations) // len(durations),
        median_minutes=median,
        outdoor_count=sum(1 for g in gaps if g.end_location == EventLocation.OUTDOOR),
        indoor_count=sum(1 for g in gaps if g.end_location == EventLocation.INDOOR),
    )


def today_gaps(
    events: Iterable[Event],
    now: Optional[datetime] = None,
    coverage_gaps: Iterable[Event] = (),
) -> List[PottyGap]:
    """Every gap between today's pees, overnight ones included."""
    now = now or datetime.now()
    todays = [e for e in events if e.time.date() == now.date()]
    return calculate_potty_gaps(todays, filter_overnight=False, coverage_gaps=coverage_gaps)


def recent_gaps(
    events: Iterable[Event],
    days: int = 7,
    now: Optional[datetime] = None,
    coverage_gaps: Iterable[Event] = (),
) -> List[PottyGap]:
    """Daytime gaps over the trailing `days` days."""
    now = now or datetime.now()
    cutoff = now - timedelta(days=days)
    recent = [e for e in events if cutoff <= e.time <= now]
    return calculate_potty_gaps(recent, filter_overnight=True, coverage_gaps=coverage_gaps)
