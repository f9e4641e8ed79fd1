"""API routes for kiosk photo generation and monitoring."""

import uuid
from datetime import UTC, datetime
from typing import Annotated, Any

import psutil
from fastapi import APIRouter, Depends, File, Form, Header, Query, Request, UploadFile
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from marathon_photobooth import __version__
from marathon_photobooth.core.container import PhotoboothContainer
from marathon_photobooth.core.errors import (
    NotFoundError,
    PayloadTooLargeError,
    RateLimitedError,
    ValidationError,
)
from marathon_photobooth.models.job import GenerationJob, GenerationSession, KioskStats
from marathon_photobooth.services.prompts import normalize_prominence
from marathon_photobooth.services.rate_limiter import UNKNOWN_KIOSK
from marathon_photobooth.services.storage import ArtifactStore

router = APIRouter(prefix="/api", tags=["photobooth"])


def get_container(request: Request) -> PhotoboothContainer:
    container: PhotoboothContainer = request.app.state.container
    return container


Container = Annotated[PhotoboothContainer, Depends(get_container)]


def get_kiosk_id(x_kiosk_id: Annotated[str | None, Header()] = None) -> str:
    return x_kiosk_id or UNKNOWN_KIOSK


KioskId = Annotated[str, Depends(get_kiosk_id)]


def enforce_rate_limit(container: Container, kiosk_id: KioskId) -> str:
    """Admit the request under the per-kiosk limit or raise RateLimitedError."""
    decision = container.rate_limiter.check(kiosk_id)
    if not decision.allowed:
        raise RateLimitedError(decision.key, decision.retry_after)
    return decision.key


RateLimitedKioskId = Annotated[str, Depends(enforce_rate_limit)]


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateResponse(CamelModel):
    """Successful generation."""

    success: bool = True
    image_url: str
    message: str
    session_id: str
    kiosk_id: str
    queue_size: int
    processing_time: int


class KioskStatsResponse(CamelModel):
    """Counters for one kiosk."""

    total: int
    completed: int
    failed: int
    last_active: datetime | None

    @classmethod
    def from_stats(cls, stats: KioskStats) -> "KioskStatsResponse":
        return cls(
            total=stats.total,
            completed=stats.completed,
            failed=stats.failed,
            last_active=stats.last_active,
        )


class SessionResponse(CamelModel):
    """One entry of the recent sessions list."""

    id: str
    kiosk_id: str
    status: str
    start_time: datetime
    end_time: datetime | None
    background_id: str
    gender: str
    prominence: str
    output_file: str | None
    error: str | None
    duration: int | None

    @classmethod
    def from_session(cls, session: GenerationSession) -> "SessionResponse":
        return cls(
            id=session.job_id[:8],
            kiosk_id=session.kiosk_id,
            status=session.status.value,
            start_time=session.started_at,
            end_time=session.ended_at,
            background_id=session.background_id,
            gender=session.gender,
            prominence=session.prominence,
            output_file=session.output_file,
            error=session.error,
            duration=session.duration_ms,
        )


class MonitorResponse(CamelModel):
    """Monitoring snapshot."""

    kiosks: dict[str, KioskStatsResponse]
    queue_size: int
    queue_pending: int
    total_sessions: int
    recent_sessions: list[SessionResponse]
    server_uptime: float
    memory_usage: dict[str, int]
    timestamp: datetime


class KioskStatusResponse(KioskStatsResponse):
    """Status of a single kiosk."""

    kiosk_id: str
    queue_position: int
    server_status: str = "online"


class QueueStatus(CamelModel):
    size: int
    pending: int


class HealthResponse(CamelModel):
    """Health check response."""

    status: str
    service: str
    version: str
    kiosk_id: str | None
    timestamp: datetime
    queue_status: QueueStatus


@router.get("/backgrounds")
async def list_backgrounds(container: Container) -> dict[str, Any]:
    """Backgrounds grouped by category."""
    return container.catalog.grouped()


@router.post("/generate", response_model=GenerateResponse)
async def generate(
    container: Container,
    kiosk_id: RateLimitedKioskId,
    selfie: Annotated[UploadFile | None, File()] = None,
    background_id: Annotated[str | None, Form(alias="backgroundId")] = None,
    gender: Annotated[str | None, Form()] = None,
    prominence: Annotated[str | None, Form()] = None,
) -> GenerateResponse:
    """Composite a selfie onto a background and return the image path."""
    max_bytes = container.settings.max_upload_bytes
    if selfie is not None and selfie.size is not None and selfie.size > max_bytes:
        raise PayloadTooLargeError(f"Selfie exceeds {max_bytes // (1024 * 1024)}MB limit")
    selfie_data = await selfie.read() if selfie is not None else b""

    if selfie is None or not selfie_data or not background_id or not gender:
        missing = [
            name
            for name, value in (
                ("selfie", selfie_data),
                ("backgroundId", background_id),
                ("gender", gender),
            )
            if not value
        ]
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    if len(selfie_data) > max_bytes:
        raise PayloadTooLargeError(f"Selfie exceeds {max_bytes // (1024 * 1024)}MB limit")

    job = GenerationJob(
        job_id=str(uuid.uuid4()),
        kiosk_id=kiosk_id,
        selfie=selfie_data,
        mime_type=selfie.content_type or "image/jpeg",
        background_id=background_id,
        gender=gender,
        prominence=normalize_prominence(prominence),
        submitted_at=datetime.now(UTC),
        priority=container.admission.priority_for(kiosk_id),
    )
    result = await container.admission.submit(job)

    return GenerateResponse(
        image_url=ArtifactStore.public_url(result.output_file),
        message="Marathon photo generated successfully!",
        session_id=result.job_id,
        kiosk_id=kiosk_id,
        queue_size=container.queue.size,
        processing_time=result.processing_time_ms,
    )


@router.get("/monitor", response_model=MonitorResponse)
async def monitor(container: Container) -> MonitorResponse:
    """Kiosk counters, queue depth and recent sessions."""
    memory = psutil.Process().memory_info()
    return MonitorResponse(
        kiosks={
            kiosk_id: KioskStatsResponse.from_stats(stats)
            for kiosk_id, stats in container.stats.snapshot().items()
        },
        queue_size=container.queue.size,
        queue_pending=container.queue.pending,
        total_sessions=len(container.sessions),
        recent_sessions=[
            SessionResponse.from_session(session) for session in container.sessions.recent()
        ],
        server_uptime=container.uptime_seconds,
        memory_usage={"rss": memory.rss, "vms": memory.vms},
        timestamp=datetime.now(UTC),
    )


@router.get("/kiosk/{kiosk_id}/status", response_model=KioskStatusResponse)
async def kiosk_status(kiosk_id: str, container: Container) -> KioskStatusResponse:
    """Counters for one kiosk plus the current backlog."""
    stats = container.stats.get(kiosk_id)
    if stats is None:
        raise NotFoundError("Invalid kiosk ID")
    return KioskStatusResponse(
        kiosk_id=kiosk_id,
        total=stats.total,
        completed=stats.completed,
        failed=stats.failed,
        last_active=stats.last_active,
        queue_position=container.queue.size,
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(
    container: Container,
    x_kiosk_id: Annotated[str | None, Header()] = None,
    kiosk: Annotated[str | None, Query()] = None,
) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        service=container.settings.app_name,
        version=__version__,
        kiosk_id=x_kiosk_id or kiosk,
        timestamp=datetime.now(UTC),
        queue_status=QueueStatus(size=container.queue.size, pending=container.queue.pending),
    )
