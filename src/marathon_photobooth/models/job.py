"""Generation job and session models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class JobStatus(str, Enum):
    """Status of a generation session."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class GenerationJob:
    """One admitted selfie + background request routed through the queue."""

    job_id: str
    kiosk_id: str
    selfie: bytes
    mime_type: str
    background_id: str
    gender: str
    prominence: str
    submitted_at: datetime
    priority: int = 0

    @property
    def short_id(self) -> str:
        return self.job_id[:8]


@dataclass
class GenerationSession:
    """Observable lifecycle record for one job."""

    job_id: str
    kiosk_id: str
    started_at: datetime
    background_id: str
    gender: str
    prominence: str
    status: JobStatus = JobStatus.PROCESSING
    ended_at: datetime | None = None
    output_file: str | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not JobStatus.PROCESSING

    @property
    def duration_ms(self) -> int | None:
        """Milliseconds between start and end, None while still processing."""
        if self.ended_at is None:
            return None
        return int((self.ended_at - self.started_at).total_seconds() * 1000)


@dataclass
class KioskStats:
    """Per-kiosk counters derived from job outcomes."""

    total: int = 0
    completed: int = 0
    failed: int = 0
    last_active: datetime | None = None


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of a successful generation."""

    job_id: str
    kiosk_id: str
    output_file: str
    processing_time_ms: int
