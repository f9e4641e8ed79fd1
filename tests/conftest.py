"""Test fixtures and configuration."""

import asyncio
import io
from collections.abc import AsyncIterator, Iterator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from PIL import Image

from marathon_photobooth.core.config import Settings
from marathon_photobooth.core.container import PhotoboothContainer, build_container
from marathon_photobooth.main import create_app
from marathon_photobooth.models.background import Background, TimePeriod
from marathon_photobooth.services.backgrounds import BACKGROUNDS, BackgroundCatalog
from marathon_photobooth.services.image_generation import GenerationOptions, ImageInput


def png_bytes(size: tuple[int, int] = (8, 8), color: tuple[int, ...] = (200, 30, 30, 255)) -> bytes:
    """Encode a solid-color RGBA PNG."""
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeGenerator:
    """Image generator double recording its calls."""

    def __init__(
        self,
        result: bytes | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.result = result if result is not None else png_bytes((16, 16))
        self.error = error
        self.delay = delay
        self.calls: list[tuple[ImageInput, Background, GenerationOptions]] = []

    async def generate(
        self, selfie: ImageInput, background: Background, options: GenerationOptions
    ) -> bytes:
        self.calls.append((selfie, background, options))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


TEST_BACKGROUND = Background(
    id="bg-a",
    name="Test Canal",
    file="bg-a.png",
    description="A quiet canal with a cobbled towpath",
    lighting="flat overcast light",
    color_treatment="natural full color",
    composition="towpath runs through the center",
    time_period=TimePeriod.PRESENT,
)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings rooted in a temporary data directory with fast queue pacing."""
    test_settings = Settings(
        data_dir=tmp_path,
        google_api_key=None,
        generation_timeout_seconds=5.0,
        queue_interval_seconds=0.05,
    )
    test_settings.backgrounds_dir.mkdir(parents=True)
    test_settings.output_dir.mkdir(parents=True)
    for background in [*BACKGROUNDS.values(), TEST_BACKGROUND]:
        (test_settings.backgrounds_dir / background.file).write_bytes(png_bytes())
    return test_settings


@pytest.fixture
def catalog() -> BackgroundCatalog:
    """Default catalog plus the ``bg-a`` test background."""
    return BackgroundCatalog({**BACKGROUNDS, TEST_BACKGROUND.id: TEST_BACKGROUND})


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def container(
    test_settings: Settings, fake_generator: FakeGenerator, catalog: BackgroundCatalog
) -> PhotoboothContainer:
    """Container wired with the fake generator and temporary storage."""
    return build_container(test_settings, generator=fake_generator, catalog=catalog)


@pytest.fixture
def client(container: PhotoboothContainer) -> Iterator[TestClient]:
    """Create sync test client for the production app without the scheduler."""
    with patch("marathon_photobooth.main.scheduler") as mock_scheduler:
        mock_scheduler.start = lambda: None
        mock_scheduler.shutdown = lambda: None
        mock_scheduler.add_job = lambda *args, **kwargs: None

        app = create_app(container)
        with TestClient(app) as tc:
            yield tc


@pytest.fixture
async def async_client(container: PhotoboothContainer) -> AsyncIterator[AsyncClient]:
    """Create async test client; the lifespan does not run."""
    app = create_app(container)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    await container.queue.close()
