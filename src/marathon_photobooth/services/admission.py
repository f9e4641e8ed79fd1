"""Admission gate in front of the generation queue."""

from collections.abc import Mapping

import structlog

from marathon_photobooth.core.errors import OverloadedError
from marathon_photobooth.models.job import GenerationJob, GenerationResult
from marathon_photobooth.services.job_queue import JobQueue
from marathon_photobooth.services.orchestrator import GenerationOrchestrator

logger = structlog.get_logger()


class AdmissionController:
    """Refuse work when the backlog is too deep, otherwise queue it.

    ``priorities`` maps kiosk ids to queue priority tiers; unlisted kiosks
    get tier 0.
    """

    def __init__(
        self,
        queue: JobQueue,
        orchestrator: GenerationOrchestrator,
        max_backlog: int = 10,
        priorities: Mapping[str, int] | None = None,
    ) -> None:
        self.queue = queue
        self.orchestrator = orchestrator
        self.max_backlog = max_backlog
        self.priorities = dict(priorities or {})

    def priority_for(self, kiosk_id: str) -> int:
        return self.priorities.get(kiosk_id, 0)

    def check_backlog(self) -> None:
        """Raise OverloadedError when the backlog exceeds the threshold."""
        backlog = self.queue.size
        if backlog > self.max_backlog:
            logger.warning("Queue overloaded", backlog=backlog, max_backlog=self.max_backlog)
            raise OverloadedError(backlog)

    async def submit(self, job: GenerationJob) -> GenerationResult:
        """Queue a job and wait for its result.

        Raises:
            OverloadedError: the backlog is above ``max_backlog``; nothing was queued
            PhotoboothError: the job itself failed
        """
        self.check_backlog()
        logger.info(
            "Adding to queue",
            kiosk_id=job.kiosk_id,
            job_id=job.short_id,
            queue_size=self.queue.size,
            priority=job.priority,
            prominence=job.prominence,
        )
        return await self.queue.add(lambda: self.orchestrator.run(job), priority=job.priority)
