"""Application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    app_name: str = "Amsterdam Marathon Photobooth"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
        "https://marathon-photobooth-frontend.railway.app",
        "https://marathon-photobooth.railway.app",
    ]
    cors_origin_regex: str | None = r"https?://(.*\.railway\.app|localhost(:\d+)?)"

    # Gemini image generation
    google_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash-image-preview"
    generation_timeout_seconds: float | None = 300.0

    # Storage
    data_dir: Path = Path(".")
    overlay_file: str = "amsterdam-marathon-2025.png"
    max_upload_bytes: int = 10 * 1024 * 1024

    # Per-kiosk rate limiting
    rate_limit_max_requests: int = 5
    rate_limit_window_seconds: float = 60.0

    # Generation queue
    queue_concurrency: int = 2
    queue_interval_cap: int = 3
    queue_interval_seconds: float = 1.0
    queue_max_backlog: int = 10

    # Kiosks
    kiosk_ids: list[str] = ["kiosk-1", "kiosk-2", "kiosk-3", "kiosk-4"]
    kiosk_priorities: dict[str, int] = {"kiosk-3": 1}

    # Cleanup
    session_retention_minutes: int = 60
    session_cleanup_interval_minutes: int = 30
    artifact_max_age_hours: float = 4.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def output_dir(self) -> Path:
        return self.data_dir / "outputs"

    @property
    def backgrounds_dir(self) -> Path:
        return self.data_dir / "backgrounds"

    @property
    def overlays_dir(self) -> Path:
        return self.data_dir / "overlays"

    @property
    def overlay_path(self) -> Path:
        return self.overlays_dir / self.overlay_file


settings = Settings()
