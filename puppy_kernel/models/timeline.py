"""Activity blocks for the visual day timeline."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ActivityBlockKind(str, Enum):
    SLEEP = "sleep"
    WALK = "walk"
    POTTY = "potty"     # Instant marker, tagged outdoor/indoor
    MEAL = "meal"       # Instant marker
    AWAKE = "awake"     # Implicit background, never emitted

    @property
    def has_duration(self) -> bool:
        return self in (ActivityBlockKind.SLEEP, ActivityBlockKind.WALK, ActivityBlockKind.AWAKE)


class ActivityBlock(BaseModel):
    """One segment of a day's timeline."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: ActivityBlockKind
    start_time: datetime
    end_time: datetime                      # == start_time for markers
    contained_event_ids: List[str] = []
    is_ongoing: bool = False
    outdoor: Optional[bool] = None          # Potty markers only

    @property
    def has_duration(self) -> bool:
        return self.kind.has_duration

    @property
    def duration_minutes(self) -> int:
        return max(0, int((self.end_time - self.start_time).total_seconds() // 60))


class ActivityBlockSummary(BaseModel):
    """Summary statistics for one day's blocks."""

    total_sleep_minutes: int = 0
    walk_count: int = 0
    total_walk_minutes: int = 0
    outdoor_potty_count: int = 0
    indoor_potty_count: int = 0
    meal_count: int = 0

    @property
    def total_potty_count(self) -> int:
        return self.outdoor_potty_count + self.indoor_potty_count

    @property
    def potty_success_rate(self) -> float:
        if self.total_potty_count == 0:
            return 1.0
        return self.outdoor_potty_count / self.total_potty_count
