"""Domain models."""

from marathon_photobooth.models.background import Background, Pose, TimePeriod
from marathon_photobooth.models.job import (
    GenerationJob,
    GenerationResult,
    GenerationSession,
    JobStatus,
    KioskStats,
)

__all__ = [
    "Background",
    "GenerationJob",
    "GenerationResult",
    "GenerationSession",
    "JobStatus",
    "KioskStats",
    "Pose",
    "TimePeriod",
]
