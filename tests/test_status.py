"""Tests for the Status Coordinator."""

from datetime import date, datetime, timedelta

from puppy_kernel.models.event import Event, EventLocation, EventType
from puppy_kernel.models.prediction import PottyPrediction, UrgencyLevel
from puppy_kernel.models.status import CombinedStateKind, SleepState, SleepStateKind
from puppy_kernel.status.coordinator import (
    calculate_combined_state,
    capture_wake_time_potty_state,
    detect_assumed_overnight_sleep,
    should_clear_wake_state,
)

AFTERNOON = datetime(2026, 3, 10, 14, 0)
MORNING = datetime(2026, 3, 10, 8, 0)
LAST_NIGHT = datetime(2026, 3, 9, 21, 30)


def _prediction(urgency: UrgencyLevel, remaining: int = 30) -> PottyPrediction:
    return PottyPrediction(
        urgency=urgency,
        expected_gap_minutes=90,
        minutes_since_last=90 - remaining,
        minutes_remaining=remaining,
    )


def _sleeping(since: datetime) -> SleepState:
    return SleepState(kind=SleepStateKind.SLEEPING, since=since, duration_min=40)


def _awake(since: datetime) -> SleepState:
    return SleepState(kind=SleepStateKind.AWAKE, since=since)


class TestCombinedState:
    def test_sleeping_potty_okay(self):
        state = calculate_combined_state(
            _sleeping(AFTERNOON - timedelta(minutes=40)),
            _prediction(UrgencyLevel.NORMAL),
            now=AFTERNOON,
        )
        assert state.kind == CombinedStateKind.SLEEPING_POTTY_OKAY
        assert state.sleep_duration_min == 40
        assert state.should_hide_potty_card

    def test_sleeping_potty_urgent(self):
        state = calculate_combined_state(
            _sleeping(AFTERNOON - timedelta(minutes=40)),
            _prediction(UrgencyLevel.CRITICAL, remaining=-15),
            now=AFTERNOON,
        )
        assert state.kind == CombinedStateKind.SLEEPING_POTTY_URGENT
        assert state.potty_urgency == UrgencyLevel.CRITICAL
        assert state.minutes_overdue == 15
        assert state.should_show_combined_card

    def test_high_urgency_counts_as_urgent(self):
        state = calculate_combined_state(
            _sleeping(AFTERNOON), _prediction(UrgencyLevel.HIGH, remaining=5), now=AFTERNOON
        )
        assert state.kind == CombinedStateKind.SLEEPING_POTTY_URGENT
        assert state.minutes_overdue is None

    def test_awake(self):
        state = calculate_combined_state(
            _awake(AFTERNOON - timedelta(hours=1)), _prediction(UrgencyLevel.CRITICAL, -5), now=AFTERNOON
        )
        assert state.kind == CombinedStateKind.AWAKE
        assert state.should_show_separate_cards

    def test_unknown(self):
        state = calculate_combined_state(
            SleepState(), _prediction(UrgencyLevel.UNKNOWN), now=AFTERNOON
        )
        assert state.kind == CombinedStateKind.UNKNOWN

    def test_just_woke_with_urgent_snapshot(self):
        woke_at = AFTERNOON - timedelta(minutes=3)
        snapshot = capture_wake_time_potty_state(
            _prediction(UrgencyLevel.CRITICAL, remaining=-20), now=woke_at
        )
        state = calculate_combined_state(
            _awake(woke_at),
            _prediction(UrgencyLevel.CRITICAL, remaining=-23),
            wake_time_potty_state=snapshot,
            now=AFTERNOON,
        )
        assert state.kind == CombinedStateKind.JUST_WOKE_NEEDS_POTTY
        assert state.woke_at == woke_at
        assert state.minutes_since_wake == 3
        assert state.minutes_overdue == 20

    def test_expired_snapshot_falls_back_to_awake(self):
        woke_at = AFTERNOON - timedelta(minutes=10)
        snapshot = capture_wake_time_potty_state(_prediction(UrgencyLevel.CRITICAL, -20), now=woke_at)
        state = calculate_combined_state(
            _awake(woke_at), _prediction(UrgencyLevel.CRITICAL, -30),
            wake_time_potty_state=snapshot, now=AFTERNOON,
        )
        assert state.kind == CombinedStateKind.AWAKE

    def test_calm_snapshot_does_not_prompt(self):
        woke_at = AFTERNOON - timedelta(minutes=2)
        snapshot = capture_wake_time_potty_state(_prediction(UrgencyLevel.NORMAL), now=woke_at)
        state = calculate_combined_state(
            _awake(woke_at), _prediction(UrgencyLevel.NORMAL),
            wake_time_potty_state=snapshot, now=AFTERNOON,
        )
        assert state.kind == CombinedStateKind.AWAKE

    def test_snapshot_ignored_while_sleeping(self):
        snapshot = capture_wake_time_potty_state(
            _prediction(UrgencyLevel.CRITICAL, -20), now=AFTERNOON - timedelta(minutes=5)
        )
        state = calculate_combined_state(
            _sleeping(AFTERNOON - timedelta(minutes=1)), _prediction(UrgencyLevel.NORMAL),
            wake_time_potty_state=snapshot, now=AFTERNOON,
        )
        assert state.kind == CombinedStateKind.SLEEPING_POTTY_OKAY


class TestWakeSnapshot:
    def test_capture_freezes_prediction(self):
        prediction = _prediction(UrgencyLevel.HIGH, remaining=4)
        snapshot = capture_wake_time_potty_state(prediction, now=AFTERNOON)
        assert snapshot.captured_at == AFTERNOON
        assert snapshot.prediction == prediction
        assert snapshot.was_urgent
        assert not snapshot.was_overdue

    def test_cleared_by_later_potty(self):
        snapshot = capture_wake_time_potty_state(_prediction(UrgencyLevel.CRITICAL, -5), now=AFTERNOON)
        assert should_clear_wake_state(snapshot, AFTERNOON + timedelta(minutes=2))

    def test_cleared_by_potty_at_capture_time(self):
        snapshot = capture_wake_time_potty_state(_prediction(UrgencyLevel.CRITICAL, -5), now=AFTERNOON)
        assert should_clear_wake_state(snapshot, AFTERNOON)

    def test_not_cleared_by_earlier_potty(self):
        snapshot = capture_wake_time_potty_state(_prediction(UrgencyLevel.CRITICAL, -5), now=AFTERNOON)
        assert not should_clear_wake_state(snapshot, AFTERNOON - timedelta(minutes=30))

    def test_nothing_to_clear(self):
        assert not should_clear_wake_state(None, AFTERNOON)
        snapshot = capture_wake_time_potty_state(_prediction(UrgencyLevel.CRITICAL, -5), now=AFTERNOON)
        assert not should_clear_wake_state(snapshot, None)


class TestAssumedOvernightSleep:
    def test_suggests_last_evening_event(self):
        events = [Event(time=LAST_NIGHT, type=EventType.MEAL)]
        suggested, minutes = detect_assumed_overnight_sleep(events, now=MORNING)
        assert suggested == LAST_NIGHT
        assert minutes == 630

    def test_defaults_to_ten_pm(self):
        suggested, minutes = detect_assumed_overnight_sleep([], now=MORNING)
        assert suggested == datetime(2026, 3, 9, 22, 0)
        assert minutes == 600

    def test_events_after_three_am_are_not_bedtime(self):
        events = [
            Event(time=LAST_NIGHT, type=EventType.MEAL),
            Event(time=datetime(2026, 3, 10, 6, 30), type=EventType.PEE, location=EventLocation.OUTDOOR),
        ]
        suggested, _ = detect_assumed_overnight_sleep(events, now=MORNING)
        assert suggested == LAST_NIGHT

    def test_not_when_sleep_logged(self):
        events = [Event(time=datetime(2026, 3, 9, 22, 15), type=EventType.SLEEP)]
        assert detect_assumed_overnight_sleep(events, now=MORNING) is None

    def test_not_when_wake_logged(self):
        events = [Event(time=datetime(2026, 3, 10, 6, 45), type=EventType.WAKE)]
        assert detect_assumed_overnight_sleep(events, now=MORNING) is None

    def test_not_when_dismissed_today(self):
        assert detect_assumed_overnight_sleep([], dismissed_date=date(2026, 3, 10), now=MORNING) is None

    def test_dismissal_from_yesterday_expires(self):
        assert detect_assumed_overnight_sleep([], dismissed_date=date(2026, 3, 9), now=MORNING)

    def test_only_in_the_morning(self):
        assert detect_assumed_overnight_sleep([], now=AFTERNOON) is None
        assert detect_assumed_overnight_sleep([], now=datetime(2026, 3, 10, 4, 59)) is None

    def test_combined_state_surfaces_card(self):
        state = calculate_combined_state(
            SleepState(), _prediction(UrgencyLevel.UNKNOWN), recent_events=[], now=MORNING
        )
        assert state.kind == CombinedStateKind.ASSUMED_OVERNIGHT_SLEEP
        assert state.should_show_assumed_sleep_card
        assert state.suggested_sleep_start == datetime(2026, 3, 9, 22, 0)
        assert state.minutes_sleeping == 600

    def test_sleeping_state_wins(self):
        state = calculate_combined_state(
            _sleeping(MORNING - timedelta(hours=1)), _prediction(UrgencyLevel.NORMAL),
            recent_events=[], now=MORNING,
        )
        assert state.kind == CombinedStateKind.SLEEPING_POTTY_OKAY
