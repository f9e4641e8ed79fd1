"""Generation orchestrator: runs one job end to end."""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from marathon_photobooth.core.errors import (
    ExternalGenerationError,
    GenerationTimeoutError,
    PhotoboothError,
)
from marathon_photobooth.models.background import Background
from marathon_photobooth.models.job import GenerationJob, GenerationResult
from marathon_photobooth.services.backgrounds import BackgroundCatalog
from marathon_photobooth.services.image_generation import (
    GenerationOptions,
    ImageGenerator,
    ImageInput,
)
from marathon_photobooth.services.kiosk_stats import KioskStatsRegistry
from marathon_photobooth.services.overlay import WatermarkOverlay
from marathon_photobooth.services.sessions import SessionRegistry
from marathon_photobooth.services.storage import ArtifactStore

logger = structlog.get_logger()


def utc_now() -> datetime:
    return datetime.now(UTC)


class GenerationOrchestrator:
    """Compose catalog, generator, overlay and storage around one job.

    Every job opens a session and bumps its kiosk's ``total``. The session
    then ends exactly once, as completed or failed, with the matching
    kiosk counter.
    """

    def __init__(
        self,
        catalog: BackgroundCatalog,
        generator: ImageGenerator,
        overlay: WatermarkOverlay,
        store: ArtifactStore,
        sessions: SessionRegistry,
        stats: KioskStatsRegistry,
        timeout_seconds: float | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.catalog = catalog
        self.generator = generator
        self.overlay = overlay
        self.store = store
        self.sessions = sessions
        self.stats = stats
        self.timeout_seconds = timeout_seconds
        self._clock = clock

    async def _generate(
        self, selfie: ImageInput, background: Background, options: GenerationOptions
    ) -> bytes:
        call = self.generator.generate(selfie, background, options)
        if not self.timeout_seconds:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except TimeoutError as e:
            raise GenerationTimeoutError(
                f"Image generation timed out after {self.timeout_seconds}s"
            ) from e

    async def run(self, job: GenerationJob) -> GenerationResult:
        """Process a single generation job.

        Args:
            job: The admitted job

        Returns:
            Result with the artifact file name and processing time

        Raises:
            PhotoboothError: the job failed; its session is already marked failed
        """
        started_at = self._clock()
        self.stats.record_submission(job.kiosk_id, started_at)
        self.sessions.open(
            job_id=job.job_id,
            kiosk_id=job.kiosk_id,
            started_at=started_at,
            background_id=job.background_id,
            gender=job.gender,
            prominence=job.prominence,
        )

        try:
            background = self.catalog.get(job.background_id)
            background_image = await self.store.read_background(background)
            options = GenerationOptions(
                gender=job.gender,
                prominence=job.prominence,
                background_image=background_image,
            )
            selfie = ImageInput(data=job.selfie, mime_type=job.mime_type)

            logger.info(
                "Generating image",
                kiosk_id=job.kiosk_id,
                job_id=job.short_id,
                background_id=job.background_id,
            )
            image_data = await self._generate(selfie, background, options)
            image_data = await self.overlay.apply(image_data)
            output_file = await self.store.save(
                job.kiosk_id, job.job_id, image_data, self._clock()
            )
        except asyncio.CancelledError:
            self.sessions.fail(job.job_id, "Generation cancelled", self._clock())
            self.stats.record_failed(job.kiosk_id)
            raise
        except Exception as e:
            error = e if isinstance(e, PhotoboothError) else ExternalGenerationError(str(e))
            self.sessions.fail(job.job_id, error.message, self._clock())
            self.stats.record_failed(job.kiosk_id)
            logger.exception(
                "Generation failed",
                kiosk_id=job.kiosk_id,
                job_id=job.short_id,
                error_type=type(e).__name__,
            )
            if error is e:
                raise
            raise error from e

        ended_at = self._clock()
        self.sessions.complete(job.job_id, output_file, ended_at)
        self.stats.record_completed(job.kiosk_id)
        processing_ms = int((ended_at - started_at).total_seconds() * 1000)
        logger.info(
            "Generation completed",
            kiosk_id=job.kiosk_id,
            job_id=job.short_id,
            output_file=output_file,
            processing_ms=processing_ms,
        )
        return GenerationResult(
            job_id=job.job_id,
            kiosk_id=job.kiosk_id,
            output_file=output_file,
            processing_time_ms=max(processing_ms, 0),
        )
