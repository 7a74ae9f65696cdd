"""
Streak Tracker: consecutive outdoor pee runs.

Runs are counted over pee events; poops neither extend nor break them.
An indoor pee resets the run. Pees without a location are skipped, and
pees inside a coverage gap are ignored, so time spent with someone else
never breaks a streak.
"""

from typing import Iterable

from puppy_kernel.coverage.gaps import filter_events_outside_gaps
from puppy_kernel.event_log.filters import chronological, pee_events
from puppy_kernel.models.event import Event
from puppy_kernel.models.insights import StreakInfo


def get_streak_info(
    events: Iterable[Event], coverage_gaps: Iterable[Event] = ()
) -> StreakInfo:
    located = [e for e in pee_events(events) if e.location is not None]
    history = chronological(filter_events_outside_gaps(located, coverage_gaps))
    if not history:
        return StreakInfo()

    best = 0
    running = 0
    for event in history:
        if event.is_outdoor:
            running += 1
            best = max(best, running)
        else:
            running = 0

    last_outdoor = next((e for e in reversed(history) if e.is_outdoor), None)
    last_indoor = next((e for e in reversed(history) if e.is_indoor), None)

    return StreakInfo(
        current_streak=running,
        best_streak=best,
        last_outdoor_time=last_outdoor.time if last_outdoor else None,
        last_indoor_time=last_indoor.time if last_indoor else None,
    )
