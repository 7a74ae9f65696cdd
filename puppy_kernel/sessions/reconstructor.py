"""
Session Reconstructor: links paired and child events into sessions.

Sleep sessions pair each sleep event with the wake that closed it:
  1. an unconsumed wake carrying the same session link, else
  2. the earliest unconsumed wake strictly after the sleep whose link does
     not belong to some other sleep event.
Each wake closes at most one session. Sleeps are processed in a total
(time, id) order so the result does not depend on input ordering.

Walk sessions group potty events under the walk their parent link points to.

Everything here is a pure function of the event snapshot.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from puppy_kernel.event_log.filters import (
    chronological,
    minutes_between,
    of_types,
    reverse_chronological,
)
from puppy_kernel.models.event import Event, EventType
from puppy_kernel.models.session import SleepSession, WalkSession
from puppy_kernel.models.status import SleepState, SleepStateKind


def _session_link(sleep_event: Event) -> str:
    return sleep_event.sleep_session_id or sleep_event.id


def build_sleep_sessions(events: Iterable[Event]) -> List[SleepSession]:
    """Pair sleep events with wake events. Unmatched sleeps are ongoing."""
    events = list(events)
    sleeps = chronological(of_types(events, EventType.SLEEP))
    wakes = chronological(of_types(events, EventType.WAKE))

    sleep_links: Set[str] = {_session_link(s) for s in sleeps}
    consumed: Set[str] = set()
    sessions = []

    for sleep in sleeps:
        link = _session_link(sleep)

        match = next(
            (w for w in wakes if w.sleep_session_id == link and w.id not in consumed),
            None,
        )
        if match is None:
            match = next(
                (
                    w for w in wakes
                    if w.time > sleep.time
                    and w.id not in consumed
                    and (w.sleep_session_id is None or w.sleep_session_id not in sleep_links)
                ),
                None,
            )

        if match is not None:
            consumed.add(match.id)

        sessions.append(SleepSession(
            id=link,
            start_time=sleep.time,
            end_time=match.time if match else None,
            start_event_id=sleep.id,
            end_event_id=match.id if match else None,
        ))

    return sorted(sessions, key=lambda s: (s.start_time, s.start_event_id))


def ongoing_session(events: Iterable[Event]) -> Optional[SleepSession]:
    """The most recent session still waiting for its wake."""
    ongoing = [s for s in build_sleep_sessions(events) if s.is_ongoing]
    return ongoing[-1] if ongoing else None


def ongoing_sleep_session_id(events: Iterable[Event]) -> Optional[str]:
    """
    Link id of the newest sleep that has no wake yet.

    Used to attach a wake logged without a link to the right open session.
    A sleep counts as closed when a wake shares its link, or when any wake
    after it is not claimed by a different sleep.
    """
    events = list(events)
    sleeps = reverse_chronological(of_types(events, EventType.SLEEP))
    wakes = of_types(events, EventType.WAKE)
    sleep_links = {_session_link(s) for s in sleeps}

    for sleep in sleeps:
        link = _session_link(sleep)
        closed = any(w.sleep_session_id == link for w in wakes) or any(
            w.time > sleep.time
            and (w.sleep_session_id is None or w.sleep_session_id not in sleep_links)
            for w in wakes
        )
        if not closed:
            return link
    return None


def build_walk_sessions(events: Iterable[Event]) -> List[WalkSession]:
    """Group potty events under the walk they were logged during."""
    events = list(events)
    children: Dict[str, List[Event]] = {}
    for event in events:
        if event.type.is_potty and event.parent_walk_id:
            children.setdefault(event.parent_walk_id, []).append(event)

    return [
        WalkSession(
            id=walk.id,
            walk_event=walk,
            potty_events=chronological(children.get(walk.id, [])),
        )
        for walk in chronological(of_types(events, EventType.WALK))
    ]


def contained_potty_event_ids(events: Iterable[Event]) -> Set[str]:
    """Ids of potty events that belong to a walk present in the snapshot."""
    events = list(events)
    walk_ids = {e.id for e in events if e.type == EventType.WALK}
    return {
        e.id for e in events
        if e.type.is_potty and e.parent_walk_id in walk_ids
    }


def last_completed_sleep(events: Iterable[Event]) -> Optional[SleepSession]:
    """The reconstructed session that ended most recently."""
    completed = [s for s in build_sleep_sessions(events) if not s.is_ongoing]
    if not completed:
        return None
    return max(completed, key=lambda s: (s.end_time, s.start_time))


def current_sleep_state(
    events: Iterable[Event], now: Optional[datetime] = None
) -> SleepState:
    """
    Sleeping or awake, decided by the latest sleep, crate or wake event
    at or before `now`.
    """
    now = now or datetime.now()
    relevant = [
        e for e in of_types(events, EventType.SLEEP, EventType.CRATE, EventType.WAKE)
        if e.time <= now
    ]
    if not relevant:
        return SleepState(kind=SleepStateKind.UNKNOWN)

    last = chronological(relevant)[-1]
    kind = SleepStateKind.AWAKE if last.type == EventType.WAKE else SleepStateKind.SLEEPING
    return SleepState(
        kind=kind,
        since=last.time,
        duration_min=minutes_between(last.time, now),
    )
