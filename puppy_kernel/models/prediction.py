"""Potty prediction configuration and the ephemeral result value."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

JUST_WENT_THRESHOLD_MINUTES = 15


class PredictionConfig(BaseModel):
    """Per-puppy tuning for the potty predictor."""

    default_gap_minutes: int = Field(gt=0, default=90)
    post_meal_gap_multiplier: float = Field(gt=0, le=1, default=0.5)
    post_sleep_gap_multiplier: float = Field(gt=0, le=1, default=0.4)
    min_nap_duration_for_potty_trigger: int = Field(ge=0, default=15)
    post_meal_window_minutes: int = Field(ge=0, default=30)
    post_sleep_window_minutes: int = Field(ge=0, default=20)


class UrgencyLevel(str, Enum):
    CRITICAL = "critical"   # Now / overdue
    HIGH = "high"           # Soon
    MEDIUM = "medium"       # Attention
    NORMAL = "normal"
    UNKNOWN = "unknown"     # No potty history yet

    @property
    def is_urgent(self) -> bool:
        return self in (UrgencyLevel.CRITICAL, UrgencyLevel.HIGH)


class PottyTrigger(str, Enum):
    """Context that shortens the expected gap."""
    NONE = "none"
    POST_MEAL = "post_meal"
    POST_SLEEP = "post_sleep"


class PottyPrediction(BaseModel):
    """Recomputed on every query; never cached by the engine."""

    urgency: UrgencyLevel
    trigger: PottyTrigger = PottyTrigger.NONE
    trigger_minutes_ago: Optional[int] = None
    expected_gap_minutes: int
    minutes_since_last: Optional[int] = None
    minutes_remaining: Optional[int] = None
    last_was_indoor: bool = False

    @property
    def is_urgent(self) -> bool:
        return self.urgency.is_urgent

    @property
    def minutes_overdue(self) -> Optional[int]:
        if self.minutes_remaining is None or self.minutes_remaining > 0:
            return None
        return -self.minutes_remaining

    @property
    def just_went(self) -> bool:
        """Outdoor potty within the last few minutes."""
        return (
            self.minutes_since_last is not None
            and not self.last_was_indoor
            and self.minutes_since_last < JUST_WENT_THRESHOLD_MINUTES
        )
