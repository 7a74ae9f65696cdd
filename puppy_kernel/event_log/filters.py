"""Filtering and ordering helpers over event snapshots."""

from datetime import datetime
from typing import Iterable, List

from puppy_kernel.models.event import Event, EventType


def chronological(events: Iterable[Event]) -> List[Event]:
    """Oldest first. Ties are broken by id so the order is total."""
    return sorted(events, key=lambda e: (e.time, e.id))


def reverse_chronological(events: Iterable[Event]) -> List[Event]:
    return sorted(events, key=lambda e: (e.time, e.id), reverse=True)


def of_types(events: Iterable[Event], *types: EventType) -> List[Event]:
    return [e for e in events if e.type in types]


def potty_events(events: Iterable[Event]) -> List[Event]:
    return [e for e in events if e.type.is_potty]


def pee_events(events: Iterable[Event]) -> List[Event]:
    """Pee only. The potty timer, streaks and trigger outcomes track these."""
    return [e for e in events if e.type == EventType.PEE]


def between(events: Iterable[Event], start: datetime, end: datetime) -> List[Event]:
    """Events in the half-open interval [start, end)."""
    return [e for e in events if start <= e.time < end]


def dedupe(events: Iterable[Event]) -> List[Event]:
    """Drop repeated ids, keeping the first occurrence."""
    seen = set()
    unique = []
    for event in events:
        if event.id in seen:
            continue
        seen.add(event.id)
        unique.append(event)
    return unique


def minutes_between(earlier: datetime, later: datetime) -> int:
    """Whole minutes from `earlier` to `later`, never negative."""
    return max(0, int((later - earlier).total_seconds() // 60))
