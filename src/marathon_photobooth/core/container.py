"""Dependency container wiring for the application."""

import time
from dataclasses import dataclass, field

from marathon_photobooth.core.config import Settings, settings as default_settings
from marathon_photobooth.services.admission import AdmissionController
from marathon_photobooth.services.backgrounds import BackgroundCatalog
from marathon_photobooth.services.image_generation import GeminiImageGenerator, ImageGenerator
from marathon_photobooth.services.job_queue import JobQueue
from marathon_photobooth.services.kiosk_stats import KioskStatsRegistry
from marathon_photobooth.services.orchestrator import GenerationOrchestrator
from marathon_photobooth.services.overlay import WatermarkOverlay
from marathon_photobooth.services.rate_limiter import RateLimiter
from marathon_photobooth.services.sessions import SessionRegistry
from marathon_photobooth.services.storage import ArtifactStore


@dataclass
class PhotoboothContainer:
    """Holds the process-wide state and services."""

    settings: Settings
    catalog: BackgroundCatalog
    rate_limiter: RateLimiter
    queue: JobQueue
    sessions: SessionRegistry
    stats: KioskStatsRegistry
    store: ArtifactStore
    orchestrator: GenerationOrchestrator
    admission: AdmissionController
    started_at: float = field(default_factory=time.monotonic)

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self.started_at


def build_container(
    settings: Settings | None = None,
    generator: ImageGenerator | None = None,
    catalog: BackgroundCatalog | None = None,
) -> PhotoboothContainer:
    """Create the default dependency container.

    Raises:
        ValueError: if no generator is given and GOOGLE_API_KEY is missing
    """
    resolved = settings or default_settings
    resolved_generator = generator or GeminiImageGenerator(
        api_key=resolved.google_api_key, model=resolved.gemini_model
    )

    catalog = catalog or BackgroundCatalog()
    sessions = SessionRegistry()
    stats = KioskStatsRegistry(resolved.kiosk_ids)
    store = ArtifactStore(resolved.output_dir, resolved.backgrounds_dir)
    queue = JobQueue(
        concurrency=resolved.queue_concurrency,
        interval_cap=resolved.queue_interval_cap,
        interval_seconds=resolved.queue_interval_seconds,
    )
    orchestrator = GenerationOrchestrator(
        catalog=catalog,
        generator=resolved_generator,
        overlay=WatermarkOverlay(resolved.overlay_path),
        store=store,
        sessions=sessions,
        stats=stats,
        timeout_seconds=resolved.generation_timeout_seconds,
    )
    return PhotoboothContainer(
        settings=resolved,
        catalog=catalog,
        rate_limiter=RateLimiter(
            max_requests=resolved.rate_limit_max_requests,
            window_seconds=resolved.rate_limit_window_seconds,
        ),
        queue=queue,
        sessions=sessions,
        stats=stats,
        store=store,
        orchestrator=orchestrator,
        admission=AdmissionController(
            queue=queue,
            orchestrator=orchestrator,
            max_backlog=resolved.queue_max_backlog,
            priorities=resolved.kiosk_priorities,
        ),
    )
