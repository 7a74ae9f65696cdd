"""Sessions are derived pairings of related events. Never persisted."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from puppy_kernel.models.event import Event

SHORT_NAP_MINUTES = 15


class SleepSession(BaseModel):
    """A sleep event paired with the wake event that closed it, if any."""

    model_config = ConfigDict(frozen=True)

    id: str                                 # The sleep's session link id
    start_time: datetime
    end_time: Optional[datetime] = None     # None = still sleeping
    start_event_id: str
    end_event_id: Optional[str] = None

    @property
    def is_ongoing(self) -> bool:
        return self.end_time is None

    def duration_minutes(self, now: Optional[datetime] = None) -> int:
        end = self.end_time or now or datetime.now()
        return max(0, int((end - self.start_time).total_seconds() // 60))

    @property
    def is_short_nap(self) -> bool:
        return not self.is_ongoing and self.duration_minutes() < SHORT_NAP_MINUTES


class WalkSession(BaseModel):
    """A walk together with the potty events logged during it."""

    model_config = ConfigDict(frozen=True)

    id: str
    walk_event: Event
    potty_events: List[Event] = []

    @property
    def start_time(self) -> datetime:
        return self.walk_event.time

    @property
    def outdoor_potty_count(self) -> int:
        return sum(1 for e in self.potty_events if e.is_outdoor)
