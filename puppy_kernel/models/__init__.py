"""Puppy kernel data models."""

from puppy_kernel.models.event import (
    CoverageGapType,
    Event,
    EventLocation,
    EventType,
)
from puppy_kernel.models.insights import (
    GapStats,
    PatternAnalysis,
    PatternTrigger,
    PottyGap,
    StreakInfo,
)
from puppy_kernel.models.prediction import (
    PottyPrediction,
    PottyTrigger,
    PredictionConfig,
    UrgencyLevel,
)
from puppy_kernel.models.session import SleepSession, WalkSession
from puppy_kernel.models.status import (
    CombinedState,
    CombinedStateKind,
    SleepState,
    SleepStateKind,
    StatusSnapshot,
    WakeTimePottyState,
)
from puppy_kernel.models.timeline import (
    ActivityBlock,
    ActivityBlockKind,
    ActivityBlockSummary,
)

__all__ = [
    "ActivityBlock",
    "ActivityBlockKind",
    "ActivityBlockSummary",
    "CombinedState",
    "CombinedStateKind",
    "CoverageGapType",
    "Event",
    "EventLocation",
    "EventType",
    "GapStats",
    "PatternAnalysis",
    "PatternTrigger",
    "PottyGap",
    "PottyPrediction",
    "PottyTrigger",
    "PredictionConfig",
    "SleepSession",
    "SleepState",
    "SleepStateKind",
    "StatusSnapshot",
    "StreakInfo",
    "UrgencyLevel",
    "WakeTimePottyState",
    "WalkSession",
]
