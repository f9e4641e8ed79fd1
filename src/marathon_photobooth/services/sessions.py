"""In-memory session registry for generation jobs."""

from datetime import datetime

import structlog

from marathon_photobooth.models.job import GenerationSession, JobStatus

logger = structlog.get_logger()

RECENT_SESSIONS_LIMIT = 20


class SessionRegistry:
    """Track the lifecycle of each submitted job.

    Sessions are kept in insertion order so the most recent ones are at the
    end. A session moves from ``processing`` to a terminal status once; later
    transitions are ignored.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, GenerationSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._sessions

    def get(self, job_id: str) -> GenerationSession | None:
        return self._sessions.get(job_id)

    def open(
        self,
        job_id: str,
        kiosk_id: str,
        started_at: datetime,
        background_id: str,
        gender: str,
        prominence: str,
    ) -> GenerationSession:
        """Create a session in ``processing`` state."""
        if job_id in self._sessions:
            raise ValueError(f"Session {job_id} already exists")
        session = GenerationSession(
            job_id=job_id,
            kiosk_id=kiosk_id,
            started_at=started_at,
            background_id=background_id,
            gender=gender,
            prominence=prominence,
        )
        self._sessions[job_id] = session
        return session

    def _terminal_target(self, job_id: str, status: JobStatus) -> GenerationSession | None:
        session = self._sessions.get(job_id)
        if session is None:
            logger.warning("Unknown session", job_id=job_id, status=status.value)
            return None
        if session.is_terminal:
            logger.warning(
                "Session already finished",
                job_id=job_id,
                current=session.status.value,
                requested=status.value,
            )
            return None
        return session

    def complete(self, job_id: str, output_file: str, ended_at: datetime) -> bool:
        """Mark a processing session as completed.

        Returns:
            True if the session transitioned, False if it was ignored
        """
        session = self._terminal_target(job_id, JobStatus.COMPLETED)
        if session is None:
            return False
        session.status = JobStatus.COMPLETED
        session.output_file = output_file
        session.ended_at = ended_at
        return True

    def fail(self, job_id: str, error: str, ended_at: datetime) -> bool:
        """Mark a processing session as failed.

        Returns:
            True if the session transitioned, False if it was ignored
        """
        session = self._terminal_target(job_id, JobStatus.FAILED)
        if session is None:
            return False
        session.status = JobStatus.FAILED
        session.error = error
        session.ended_at = ended_at
        return True

    def recent(self, limit: int = RECENT_SESSIONS_LIMIT) -> list[GenerationSession]:
        """Most recently opened sessions, oldest first."""
        if limit <= 0:
            return []
        return list(self._sessions.values())[-limit:]

    def remove_started_before(self, cutoff: datetime) -> int:
        """Drop sessions that started before ``cutoff``; return how many."""
        stale = [
            job_id
            for job_id, session in self._sessions.items()
            if session.started_at < cutoff
        ]
        for job_id in stale:
            del self._sessions[job_id]
        return len(stale)
