"""Watermark overlay applied to generated images."""

import asyncio
import io
from pathlib import Path

import structlog
from PIL import Image, UnidentifiedImageError

logger = structlog.get_logger()


def composite_overlay(image_data: bytes, overlay_path: Path) -> bytes:
    """Stretch the overlay over the image and return PNG bytes."""
    with Image.open(io.BytesIO(image_data)) as base, Image.open(overlay_path) as mark:
        canvas = base.convert("RGBA")
        stamp = mark.convert("RGBA").resize(canvas.size)
        canvas.alpha_composite(stamp)
        buffer = io.BytesIO()
        canvas.save(buffer, format="PNG")
    return buffer.getvalue()


class WatermarkOverlay:
    """Overlay a fixed watermark onto images.

    A missing overlay file or an image Pillow cannot read leaves the image
    unchanged.
    """

    def __init__(self, overlay_path: Path) -> None:
        self.overlay_path = overlay_path

    async def apply(self, image_data: bytes) -> bytes:
        if not self.overlay_path.is_file():
            logger.info("Overlay not found, returning original image", path=str(self.overlay_path))
            return image_data

        try:
            return await asyncio.to_thread(composite_overlay, image_data, self.overlay_path)
        except (OSError, UnidentifiedImageError, ValueError) as e:
            logger.error("Failed to apply overlay", error=str(e), path=str(self.overlay_path))
            return image_data
