"""Tests for coverage gap filtering."""

from datetime import datetime, timedelta

from puppy_kernel.coverage.gaps import (
    active_gap,
    filter_events_outside_gaps,
    gaps_overlapping,
    interval_spans_gap,
    is_time_covered_by_gap,
)
from puppy_kernel.models.event import CoverageGapType, Event, EventType

T = datetime(2026, 3, 10, 9, 0)


def _gap(start_hours: float, end_hours: float = None) -> Event:
    return Event(
        time=T + timedelta(hours=start_hours),
        type=EventType.COVERAGE_GAP,
        gap_type=CoverageGapType.DAYCARE,
        end_time=T + timedelta(hours=end_hours) if end_hours is not None else None,
    )


class TestCoverageGaps:
    def test_time_inside_closed_gap(self):
        gaps = [_gap(0, 8)]
        assert is_time_covered_by_gap(T + timedelta(hours=4), gaps)
        assert is_time_covered_by_gap(T, gaps)
        assert not is_time_covered_by_gap(T + timedelta(hours=9), gaps)

    def test_ongoing_gap_extends_indefinitely(self):
        gaps = [_gap(0)]
        assert is_time_covered_by_gap(T + timedelta(days=30), gaps)
        assert active_gap(gaps) is gaps[0]

    def test_no_active_gap_when_all_closed(self):
        assert active_gap([_gap(0, 1)]) is None

    def test_end_before_start_is_instantaneous(self):
        gaps = [_gap(2, 1)]
        assert is_time_covered_by_gap(T + timedelta(hours=2), gaps)
        assert not is_time_covered_by_gap(T + timedelta(hours=1, minutes=30), gaps)

    def test_interval_overlap(self):
        gaps = [_gap(2, 4)]
        assert interval_spans_gap(T + timedelta(hours=1), T + timedelta(hours=3), gaps)
        assert not interval_spans_gap(T, T + timedelta(hours=2), gaps)

    def test_non_gap_events_ignored(self):
        meal = Event(time=T, type=EventType.MEAL)
        assert not is_time_covered_by_gap(T, [meal])

    def test_filter_events(self):
        inside = Event(time=T + timedelta(hours=1), type=EventType.MEAL)
        outside = Event(time=T + timedelta(hours=5), type=EventType.MEAL)
        kept = filter_events_outside_gaps([inside, outside], [_gap(0, 2)])
        assert kept == [outside]

    def test_gaps_overlapping_includes_touching_endpoints(self):
        early, late, ongoing = _gap(0, 2), _gap(5, 6), _gap(10)
        gaps = [early, late, ongoing, Event(time=T, type=EventType.MEAL)]
        window_start, window_end = T + timedelta(hours=2), T + timedelta(hours=5)
        assert gaps_overlapping(window_start, window_end, gaps) == [early, late]
        assert gaps_overlapping(T + timedelta(days=3), T + timedelta(days=4), gaps) == [ongoing]
