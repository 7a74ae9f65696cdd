"""Sleep state, the wake-time snapshot, and the combined status card state."""

from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from puppy_kernel.models.insights import PatternAnalysis, StreakInfo
from puppy_kernel.models.prediction import PottyPrediction, UrgencyLevel
from puppy_kernel.models.timeline import ActivityBlock, ActivityBlockSummary

POST_WAKE_PROMPT_MINUTES = 10


class SleepStateKind(str, Enum):
    SLEEPING = "sleeping"
    AWAKE = "awake"
    UNKNOWN = "unknown"


class SleepState(BaseModel):
    kind: SleepStateKind = SleepStateKind.UNKNOWN
    since: Optional[datetime] = None
    duration_min: int = 0

    @property
    def is_sleeping(self) -> bool:
        return self.kind == SleepStateKind.SLEEPING

    @property
    def is_awake(self) -> bool:
        return self.kind == SleepStateKind.AWAKE


class WakeTimePottyState(BaseModel):
    """
    The potty prediction frozen at the moment a wake event was logged.

    Held by the caller, not the engine. Cleared when a potty is logged at or
    after `captured_at`.
    """

    model_config = ConfigDict(frozen=True)

    captured_at: datetime
    prediction: PottyPrediction

    @property
    def was_urgent(self) -> bool:
        return self.prediction.is_urgent

    @property
    def was_overdue(self) -> bool:
        return self.prediction.urgency == UrgencyLevel.CRITICAL

    @property
    def minutes_overdue(self) -> Optional[int]:
        return self.prediction.minutes_overdue

    @property
    def minutes_since_last(self) -> Optional[int]:
        return self.prediction.minutes_since_last

    def has_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now()
        return now - self.captured_at >= timedelta(minutes=POST_WAKE_PROMPT_MINUTES)


class CombinedStateKind(str, Enum):
    AWAKE = "awake"
    SLEEPING_POTTY_OKAY = "sleeping_potty_okay"
    SLEEPING_POTTY_URGENT = "sleeping_potty_urgent"
    JUST_WOKE_NEEDS_POTTY = "just_woke_needs_potty"
    ASSUMED_OVERNIGHT_SLEEP = "assumed_overnight_sleep"
    UNKNOWN = "unknown"


class CombinedState(BaseModel):
    """Which status card(s) to surface, plus the values they display."""

    kind: CombinedStateKind

    # Sleeping
    sleeping_since: Optional[datetime] = None
    sleep_duration_min: Optional[int] = None
    potty_urgency: Optional[UrgencyLevel] = None
    minutes_overdue: Optional[int] = None

    # Just woke
    woke_at: Optional[datetime] = None
    minutes_since_wake: Optional[int] = None

    # Assumed overnight sleep
    suggested_sleep_start: Optional[datetime] = None
    minutes_sleeping: Optional[int] = None

    @property
    def is_sleeping(self) -> bool:
        return self.kind in (
            CombinedStateKind.SLEEPING_POTTY_OKAY,
            CombinedStateKind.SLEEPING_POTTY_URGENT,
        )

    @property
    def should_show_post_wake_prompt(self) -> bool:
        return self.kind == CombinedStateKind.JUST_WOKE_NEEDS_POTTY

    @property
    def should_show_combined_card(self) -> bool:
        return self.kind == CombinedStateKind.SLEEPING_POTTY_URGENT

    @property
    def should_show_separate_cards(self) -> bool:
        return self.kind == CombinedStateKind.AWAKE

    @property
    def should_show_assumed_sleep_card(self) -> bool:
        return self.kind == CombinedStateKind.ASSUMED_OVERNIGHT_SLEEP

    @property
    def should_hide_potty_card(self) -> bool:
        return self.kind in (
            CombinedStateKind.SLEEPING_POTTY_OKAY,
            CombinedStateKind.SLEEPING_POTTY_URGENT,
            CombinedStateKind.JUST_WOKE_NEEDS_POTTY,
        )

    @property
    def should_hide_sleep_card(self) -> bool:
        return self.kind == CombinedStateKind.SLEEPING_POTTY_URGENT


class StatusSnapshot(BaseModel):
    """Everything the status cards need, computed in one pass."""

    computed_at: datetime
    sleep_state: SleepState
    prediction: PottyPrediction
    streak: StreakInfo
    patterns: PatternAnalysis
    combined: CombinedState
    blocks: List[ActivityBlock] = []
    summary: ActivityBlockSummary = ActivityBlockSummary()
    wake_state: Optional[WakeTimePottyState] = None
