"""Streak, pattern and potty-gap results."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from puppy_kernel.models.event import EventLocation

ON_FIRE_STREAK = 5


class StreakInfo(BaseModel):
    current_streak: int = 0
    best_streak: int = 0
    last_outdoor_time: Optional[datetime] = None
    last_indoor_time: Optional[datetime] = None

    @property
    def has_active_streak(self) -> bool:
        return self.current_streak > 0

    @property
    def is_on_fire(self) -> bool:
        return self.current_streak >= ON_FIRE_STREAK


class PatternTrigger(BaseModel):
    """Outcome of the first potty after a given kind of event."""

    id: str                                 # "sleep" | "meal" | "walk" | "drink" | "play"
    outdoor_count: int = 0
    indoor_count: int = 0

    @property
    def total_count(self) -> int:
        return self.outdoor_count + self.indoor_count

    @property
    def success_rate(self) -> Optional[float]:
        if self.total_count == 0:
            return None
        return self.outdoor_count / self.total_count


class PatternAnalysis(BaseModel):
    period_days: int
    window_start: datetime
    window_end: datetime
    potty_count: int = 0
    outdoor_count: int = 0
    indoor_count: int = 0
    success_rate: float = 0.0
    insufficient_data: bool = True
    counts_by_type: Dict[str, int] = {}
    triggers: List[PatternTrigger] = []

    @property
    def display_rate(self) -> Optional[float]:
        """The rate the UI may show; None while the sample is too small."""
        if self.insufficient_data:
            return None
        return self.success_rate


class PottyGap(BaseModel):
    """The interval between two consecutive pees."""

    start_time: datetime
    end_time: datetime
    duration_minutes: int
    start_location: Optional[EventLocation] = None
    end_location: Optional[EventLocation] = None

    @property
    def is_outdoor_to_outdoor(self) -> bool:
        return (
            self.start_location == EventLocation.OUTDOOR
            and self.end_location == EventLocation.OUTDOOR
        )

    @property
    def ended_indoor(self) -> bool:
        return self.end_location == EventLocation.INDOOR


class GapStats(BaseModel):
    count: int = 0
    min_minutes: int = 0
    max_minutes: int = 0
    avg_minutes: int = 0
    median_minutes: int = 0
    outdoor_count: int = 0
    indoor_count: int = 0

    @property
    def outdoor_percentage(self) -> int:
        if self.count == 0:
            return 0
        return self.outdoor_count * 100 // self.count
