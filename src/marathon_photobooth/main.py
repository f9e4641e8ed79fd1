"""Main FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

import structlog
import uvicorn
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from marathon_photobooth import __version__
from marathon_photobooth.api.errors import register_error_handlers
from marathon_photobooth.api.routes import router
from marathon_photobooth.core.config import Settings, settings
from marathon_photobooth.core.container import PhotoboothContainer, build_container
from marathon_photobooth.services.reaper import reap_artifacts, reap_sessions

logger = structlog.get_logger()

scheduler = AsyncIOScheduler()


async def cleanup_sessions(container: PhotoboothContainer) -> None:
    """Periodic task evicting sessions past the retention window."""
    reap_sessions(
        container.sessions,
        timedelta(minutes=container.settings.session_retention_minutes),
        datetime.now(UTC),
    )


async def cleanup_artifacts(container: PhotoboothContainer) -> None:
    """Periodic task deleting generated images past their max age."""
    try:
        await reap_artifacts(
            container.store.output_dir,
            timedelta(hours=container.settings.artifact_max_age_hours),
        )
    except Exception:
        logger.exception("Cleanup error")


async def cleanup_rate_limits(container: PhotoboothContainer) -> None:
    """Periodic task dropping rate limit keys idle for a full window."""
    container.rate_limiter.prune()


def schedule_cleanup(container: PhotoboothContainer) -> None:
    scheduler.add_job(
        cleanup_sessions,
        "interval",
        minutes=container.settings.session_cleanup_interval_minutes,
        args=[container],
        id="cleanup_sessions",
        replace_existing=True,
    )
    scheduler.add_job(
        cleanup_artifacts,
        "cron",
        minute=0,
        args=[container],
        id="cleanup_artifacts",
        replace_existing=True,
    )
    scheduler.add_job(
        cleanup_rate_limits,
        "interval",
        seconds=container.settings.rate_limit_window_seconds,
        args=[container],
        id="cleanup_rate_limits",
        replace_existing=True,
    )


def create_app(
    container: PhotoboothContainer | None = None,
    app_settings: Settings | None = None,
) -> FastAPI:
    """Create the FastAPI app.

    Without a container, one is built at startup from settings; a missing
    Gemini API key aborts startup.
    """
    resolved = container.settings if container is not None else (app_settings or settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application lifespan manager."""
        logger.info("Starting Marathon Photobooth", version=__version__)

        if app.state.container is None:
            app.state.container = build_container(resolved)
        current: PhotoboothContainer = app.state.container
        current.store.ensure_directories(resolved.overlays_dir)

        schedule_cleanup(current)
        scheduler.start()
        logger.info(
            "Scheduler started",
            session_cleanup_minutes=resolved.session_cleanup_interval_minutes,
            artifact_max_age_hours=resolved.artifact_max_age_hours,
        )

        yield

        scheduler.shutdown()
        await current.queue.close()
        logger.info("Marathon Photobooth shutdown complete")

    app = FastAPI(
        title=resolved.app_name,
        version=__version__,
        description="Kiosk selfie compositing backend",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=resolved.cors_origins,
        allow_origin_regex=resolved.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Kiosk-Id", "Authorization"],
    )
    register_error_handlers(app)
    app.include_router(router)

    for name, directory in (
        ("outputs", resolved.output_dir),
        ("backgrounds", resolved.backgrounds_dir),
        ("overlays", resolved.overlays_dir),
    ):
        app.mount(f"/{name}", StaticFiles(directory=directory, check_dir=False), name=name)

    return app


app = create_app()


def main() -> None:
    """Run the server with uvicorn."""
    uvicorn.run(
        "marathon_photobooth.main:app",
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
