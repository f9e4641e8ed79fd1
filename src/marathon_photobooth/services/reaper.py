"""Periodic cleanup of stale sessions and generated files."""

import asyncio
import time
from datetime import datetime, timedelta
from pathlib import Path

import structlog

from marathon_photobooth.services.sessions import SessionRegistry

logger = structlog.get_logger()


def reap_sessions(registry: SessionRegistry, retention: timedelta, now: datetime) -> int:
    """Remove sessions that started more than ``retention`` ago.

    Returns:
        Number of sessions removed
    """
    removed = registry.remove_started_before(now - retention)
    if removed:
        logger.info("Cleaned old sessions", removed=removed, remaining=len(registry))
    return removed


def _purge_directory(output_dir: Path, max_age_seconds: float, now: float) -> int:
    deleted = 0
    try:
        entries = list(output_dir.iterdir())
    except FileNotFoundError:
        logger.warning("Output directory missing", path=str(output_dir))
        return 0

    for path in entries:
        try:
            if not path.is_file():
                continue
            if now - path.stat().st_mtime > max_age_seconds:
                path.unlink()
                deleted += 1
                logger.info("Deleted old file", filename=path.name)
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.error("Cleanup error", filename=path.name, error=str(e))
    return deleted


async def reap_artifacts(
    output_dir: Path, max_age: timedelta, now: float | None = None
) -> int:
    """Delete generated files whose mtime is older than ``max_age``.

    Failures on one file are logged and do not stop the scan.

    Args:
        output_dir: Directory holding generated images
        max_age: Files older than this are deleted
        now: Current epoch seconds, defaults to ``time.time()``

    Returns:
        Number of files deleted
    """
    current = time.time() if now is None else now
    deleted = await asyncio.to_thread(
        _purge_directory, output_dir, max_age.total_seconds(), current
    )
    logger.info("Artifact cleanup finished", deleted=deleted, path=str(output_dir))
    return deleted
