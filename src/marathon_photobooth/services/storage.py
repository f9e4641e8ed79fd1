"""Local file storage for generated artifacts and background images."""

import asyncio
import re
from datetime import datetime
from pathlib import Path

import structlog

from marathon_photobooth.core.errors import PersistenceError
from marathon_photobooth.models.background import Background
from marathon_photobooth.services.backgrounds import infer_mime
from marathon_photobooth.services.image_generation import ImageInput

logger = structlog.get_logger()

_UNSAFE_NAME_RE = re.compile(r"[^a-zA-Z0-9._-]+")


def _safe_path_component(value: str) -> str:
    """Replace characters that could escape the output directory."""
    cleaned = _UNSAFE_NAME_RE.sub("-", value).strip(".-")
    return cleaned or "unknown"


def artifact_filename(kiosk_id: str, job_id: str, at: datetime) -> str:
    """Build the artifact file name for a job."""
    millis = int(at.timestamp() * 1000)
    return f"marathon_{_safe_path_component(kiosk_id)}_{millis}_{job_id[:8]}.png"


class ArtifactStore:
    """Service for writing generated images and reading backgrounds from disk."""

    def __init__(self, output_dir: Path, backgrounds_dir: Path) -> None:
        self.output_dir = output_dir
        self.backgrounds_dir = backgrounds_dir

    def ensure_directories(self, *extra: Path) -> None:
        for directory in (self.output_dir, self.backgrounds_dir, *extra):
            directory.mkdir(parents=True, exist_ok=True)

    async def save(self, kiosk_id: str, job_id: str, image_data: bytes, at: datetime) -> str:
        """Write a generated image to the output directory.

        Args:
            kiosk_id: Kiosk the job came from
            job_id: Job identifier
            image_data: PNG image bytes
            at: Timestamp used in the file name

        Returns:
            The file name, relative to the output directory
        """
        filename = artifact_filename(kiosk_id, job_id, at)
        path = self.output_dir / filename
        try:
            await asyncio.to_thread(path.write_bytes, image_data)
        except OSError as e:
            logger.error("Failed to write artifact", error=str(e), path=str(path))
            raise PersistenceError(f"Failed to save generated image: {e}") from e

        logger.info("Saved artifact", kiosk_id=kiosk_id, filename=filename, size=len(image_data))
        return filename

    async def read_background(self, background: Background) -> ImageInput:
        """Load a background image from disk."""
        path = self.backgrounds_dir / background.file
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            logger.error("Failed to read background", error=str(e), path=str(path))
            raise PersistenceError(f"Failed to read background image: {e}") from e
        return ImageInput(data=data, mime_type=infer_mime(background.file))

    @staticmethod
    def public_url(filename: str) -> str:
        return f"/outputs/{filename}"
