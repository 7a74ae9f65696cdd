"""The Event model: one immutable record of the puppy log."""

import logging
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from puppy_kernel.core.config import settings

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    MEAL = "meal"
    DRINK = "drink"
    PEE = "pee"
    POOP = "poop"
    SLEEP = "sleep"
    WAKE = "wake"
    WALK = "walk"
    GARDEN = "garden"
    TRAINING = "training"
    CRATE = "crate"
    SOCIAL = "social"
    MILESTONE = "milestone"
    BEHAVIOR = "behavior"
    WEIGHT = "weight"
    MOMENT = "moment"
    MEDICATION = "medication"
    COVERAGE_GAP = "coverage_gap"

    @property
    def is_potty(self) -> bool:
        return self in (EventType.PEE, EventType.POOP)

    @property
    def requires_location(self) -> bool:
        return self.is_potty

    @property
    def is_sleep_related(self) -> bool:
        return self in (EventType.SLEEP, EventType.WAKE)


class EventLocation(str, Enum):
    OUTDOOR = "outdoor"
    INDOOR = "indoor"


class CoverageGapType(str, Enum):
    """Who was looking after the puppy while nobody was logging."""
    DAYCARE = "daycare"
    FAMILY = "family"
    SITTER = "sitter"
    VACATION = "vacation"
    OTHER = "other"


def _new_event_id() -> str:
    return f"evt_{uuid4().hex[:16]}"


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive local time. Naive values pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class Event(BaseModel):
    """
    A single logged puppy event.

    One flat shape serves every event type; which optional fields are
    meaningful depends on `type`. Records are frozen: edits go through
    `with_updated_timestamp` / `with_end_time`, which return new copies.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_event_id)
    time: datetime
    type: EventType
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None

    # Potty
    location: Optional[EventLocation] = None

    # Common optional fields
    note: Optional[str] = None
    duration_min: Optional[int] = None

    # Type-specific
    who: Optional[str] = None
    exercise: Optional[str] = None
    result: Optional[str] = None
    weight_kg: Optional[float] = None
    parent_walk_id: Optional[str] = None    # Potty logged during a walk
    sleep_session_id: Optional[str] = None  # Links sleep ↔ wake

    # Coverage gap
    gap_type: Optional[CoverageGapType] = None
    end_time: Optional[datetime] = None     # None = ongoing gap
    gap_location: Optional[str] = None

    # Media
    photo: Optional[str] = None
    video: Optional[str] = None
    thumbnail_path: Optional[str] = None

    # Geo
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    spot_id: Optional[str] = None
    spot_name: Optional[str] = None

    @field_validator("time", "end_time", "created_at", "modified_at")
    @classmethod
    def _strip_timezone(cls, value):
        return to_local_naive(value)

    @field_validator("duration_min", mode="before")
    @classmethod
    def _drop_negative_duration(cls, value):
        if isinstance(value, (int, float)) and value < 0:
            return None
        return value

    @field_validator("weight_kg", mode="before")
    @classmethod
    def _drop_negative_weight(cls, value):
        if isinstance(value, (int, float)) and value <= 0:
            return None
        return value

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("type") == EventType.SLEEP and not data.get("sleep_session_id"):
            data["sleep_session_id"] = uuid4().hex
        if data.get("created_at") is None:
            data["created_at"] = data.get("time")
        if data.get("modified_at") is None:
            data["modified_at"] = data.get("created_at")
        return data

    @model_validator(mode="after")
    def _check_potty_location(self) -> "Event":
        if self.type.requires_location and self.location is None:
            if settings.is_development:
                raise ValueError(
                    f"Potty event ({self.type.value}) created without location"
                )
            logger.warning(
                "Potty event %s has no location; treating it as unknown", self.id
            )
        return self

    # --- Derived ---

    @property
    def is_outdoor(self) -> bool:
        return self.location == EventLocation.OUTDOOR

    @property
    def is_indoor(self) -> bool:
        return self.location == EventLocation.INDOOR

    @property
    def is_ongoing_gap(self) -> bool:
        return self.type == EventType.COVERAGE_GAP and self.end_time is None

    @property
    def gap_duration_minutes(self) -> Optional[int]:
        if self.type != EventType.COVERAGE_GAP or self.end_time is None:
            return None
        return max(0, int((self.end_time - self.time).total_seconds() // 60))

    # --- Copies ---

    def with_updated_timestamp(self, modified_at: Optional[datetime] = None, **changes) -> "Event":
        """Return a copy with `changes` applied and a fresh modified_at."""
        changes["modified_at"] = modified_at or datetime.now()
        for field in ("time", "end_time", "created_at", "modified_at"):
            if field in changes:
                changes[field] = to_local_naive(changes[field])
        return self.model_copy(update=changes)

    def with_end_time(
        self,
        end_time: datetime,
        note: Optional[str] = None,
        modified_at: Optional[datetime] = None,
    ) -> "Event":
        """End a coverage gap."""
        changes = {"end_time": end_time}
        if note is not None:
            changes["note"] = note
        return self.with_updated_timestamp(modified_at=modified_at, **changes)
