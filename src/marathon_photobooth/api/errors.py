"""Translate photobooth errors into kiosk-facing JSON responses."""

import math

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from marathon_photobooth.core.errors import (
    OverloadedError,
    PhotoboothError,
    RateLimitedError,
)
from marathon_photobooth.services.rate_limiter import UNKNOWN_KIOSK

logger = structlog.get_logger()


def error_body(exc: PhotoboothError, kiosk_id: str) -> tuple[dict[str, object], dict[str, str]]:
    """Build the JSON body and extra headers for an error."""
    headers: dict[str, str] = {}

    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR and not isinstance(
        exc, OverloadedError
    ):
        return {
            "error": "Failed to generate image",
            "details": exc.public_detail,
            "kioskId": kiosk_id,
        }, headers

    body: dict[str, object] = {"error": exc.message, "kioskId": kiosk_id}
    if isinstance(exc, RateLimitedError):
        retry_after = math.ceil(exc.retry_after)
        body["error"] = f"Too many requests from kiosk '{exc.key}', please wait"
        body["retryAfter"] = retry_after
        headers["Retry-After"] = str(retry_after)
    elif isinstance(exc, OverloadedError):
        body["queueSize"] = exc.backlog
    return body, headers


async def photobooth_error_handler(request: Request, exc: PhotoboothError) -> JSONResponse:
    """Render a PhotoboothError without leaking internal details."""
    kiosk_id = request.headers.get("x-kiosk-id") or UNKNOWN_KIOSK
    body, headers = error_body(exc, kiosk_id)
    logger.warning(
        "Request rejected",
        kiosk_id=kiosk_id,
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers or None)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PhotoboothError, photobooth_error_handler)  # type: ignore[arg-type]
