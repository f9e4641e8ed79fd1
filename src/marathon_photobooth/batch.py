"""Batch generation runner for exercising a live photobooth server.

Cycles test selfies and gender/prominence presets across every background
the server offers, saves each result and prints a summary.
"""

import argparse
import asyncio
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import structlog

from marathon_photobooth.services.backgrounds import MIME_TYPES, infer_mime

logger = structlog.get_logger()

PRESETS = [
    {"gender": "male", "prominence": "medium"},
    {"gender": "female", "prominence": "medium"},
    {"gender": "non-binary", "prominence": "medium"},
    {"gender": "male", "prominence": "low"},
    {"gender": "female", "prominence": "high"},
]


@dataclass
class BatchStats:
    """Aggregated outcome of a batch run."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    total_processing_ms: int = 0
    by_background: dict[str, dict[str, int]] = field(default_factory=dict)

    @property
    def average_processing_ms(self) -> int:
        if not self.successful:
            return 0
        return round(self.total_processing_ms / self.successful)

    def record(self, background_id: str, success: bool, processing_ms: int = 0) -> None:
        entry = self.by_background.setdefault(background_id, {"successful": 0, "failed": 0})
        self.total += 1
        if success:
            self.successful += 1
            self.total_processing_ms += processing_ms
            entry["successful"] += 1
        else:
            self.failed += 1
            entry["failed"] += 1


def find_test_images(images_dir: Path) -> list[Path]:
    """Image files in ``images_dir`` in random order."""
    if not images_dir.is_dir():
        return []
    images = [p for p in images_dir.iterdir() if p.suffix.lower() in MIME_TYPES]
    random.shuffle(images)
    return images


async def fetch_backgrounds(client: httpx.AsyncClient) -> list[dict[str, Any]]:
    """Flatten the server's background categories into one list."""
    response = await client.get("/api/backgrounds")
    response.raise_for_status()
    categories: dict[str, Any] = response.json()
    return [bg for category in categories.values() for bg in category.get("backgrounds", [])]


async def generate_one(
    client: httpx.AsyncClient,
    image_path: Path,
    background_id: str,
    preset: dict[str, str],
    output_dir: Path,
) -> tuple[bool, int, str]:
    """Submit one generation and download the result.

    Returns:
        (success, processing time in ms, saved file name or error message)
    """
    response = await client.post(
        "/api/generate",
        files={
            "selfie": (image_path.name, image_path.read_bytes(), infer_mime(image_path.name))
        },
        data={"backgroundId": background_id, **preset},
    )
    if response.status_code != httpx.codes.OK:
        try:
            error = response.json().get("error", f"HTTP {response.status_code}")
        except ValueError:
            error = f"HTTP {response.status_code}"
        return False, 0, error

    result = response.json()
    image_url = result.get("imageUrl")
    if not image_url:
        return False, 0, "No image URL in response"

    image = await client.get(image_url)
    image.raise_for_status()
    filename = f"{image_path.stem}_{background_id}_{preset['gender']}.png"
    (output_dir / filename).write_bytes(image.content)
    return True, int(result.get("processingTime", 0)), filename


async def run_batch(
    server_url: str,
    images_dir: Path,
    output_dir: Path,
    kiosk_id: str = "test-script",
    tests_per_background: int = 3,
    delay_seconds: float = 2.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BatchStats:
    """Run ``tests_per_background`` generations for every background."""
    output_dir.mkdir(parents=True, exist_ok=True)
    stats = BatchStats()

    images = find_test_images(images_dir)
    if not images:
        logger.warning("No test images found", path=str(images_dir))
        return stats

    async with httpx.AsyncClient(
        base_url=server_url,
        headers={"X-Kiosk-Id": kiosk_id},
        timeout=300.0,
        transport=transport,
    ) as client:
        backgrounds = await fetch_backgrounds(client)
        logger.info(
            "Starting batch",
            backgrounds=len(backgrounds),
            images=len(images),
            total=len(backgrounds) * tests_per_background,
        )

        index = 0
        for bg_number, background in enumerate(backgrounds):
            for test_number in range(tests_per_background):
                image_path = images[index % len(images)]
                preset = PRESETS[index % len(PRESETS)]
                index += 1

                try:
                    success, processing_ms, detail = await generate_one(
                        client, image_path, background["id"], preset, output_dir
                    )
                except httpx.HTTPError as e:
                    success, processing_ms, detail = False, 0, str(e)

                stats.record(background["id"], success, processing_ms)
                logger.info(
                    "Generation finished" if success else "Generation failed",
                    background_id=background["id"],
                    image=image_path.name,
                    detail=detail,
                    processing_ms=processing_ms,
                )

                is_last = (
                    bg_number == len(backgrounds) - 1
                    and test_number == tests_per_background - 1
                )
                if delay_seconds and not is_last:
                    await asyncio.sleep(delay_seconds)

    return stats


def print_summary(stats: BatchStats, tests_per_background: int, output_dir: Path) -> None:
    print(f"Total generations: {stats.total}")
    print(f"Successful: {stats.successful}")
    print(f"Failed: {stats.failed}")
    print(f"Average processing time: {stats.average_processing_ms}ms")
    print(f"Output directory: {output_dir}")
    for background_id, counts in stats.by_background.items():
        print(f"  {background_id}: {counts['successful']}/{tests_per_background} successful")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run test generations against a server")
    parser.add_argument("--server-url", default="http://localhost:3001")
    parser.add_argument("--images-dir", type=Path, default=Path("test-images"))
    parser.add_argument("--output-dir", type=Path, default=Path("test-outputs"))
    parser.add_argument("--kiosk-id", default="test-script")
    parser.add_argument("--tests-per-background", type=int, default=3)
    parser.add_argument("--delay", type=float, default=2.0, help="Seconds between requests")
    args = parser.parse_args(argv)

    stats = asyncio.run(
        run_batch(
            args.server_url,
            args.images_dir,
            args.output_dir,
            kiosk_id=args.kiosk_id,
            tests_per_background=args.tests_per_background,
            delay_seconds=args.delay,
        )
    )
    print_summary(stats, args.tests_per_background, args.output_dir)
    return 0 if stats.total and not stats.failed else 1


if __name__ == "__main__":
    raise SystemExit(main())
