"""Error taxonomy for request admission and generation jobs."""

from fastapi import status


class PhotoboothError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    # Short text safe to show on a kiosk
    public_detail: str = "Unexpected error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PhotoboothError):
    """Missing or malformed request fields."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(PhotoboothError):
    """Requested resource does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class PayloadTooLargeError(ValidationError):
    """Uploaded selfie exceeds the size limit."""

    status_code = status.HTTP_413_CONTENT_TOO_LARGE


class RateLimitedError(PhotoboothError):
    """Too many requests from one kiosk key."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, key: str, retry_after: float) -> None:
        super().__init__("Too many requests from this kiosk, please wait")
        self.key = key
        self.retry_after = retry_after


class OverloadedError(PhotoboothError):
    """Queue backlog is above the admission threshold."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, backlog: int) -> None:
        super().__init__("Server is busy, please try again")
        self.backlog = backlog


class InvalidBackgroundError(PhotoboothError):
    """Background id is not in the catalog."""

    public_detail = "Invalid background selection"

    def __init__(self, background_id: str) -> None:
        super().__init__(f"Invalid background selection: {background_id}")
        self.background_id = background_id


class ExternalGenerationError(PhotoboothError):
    """The image model failed or returned no usable image."""

    public_detail = "Image generation failed"


class GenerationTimeoutError(ExternalGenerationError):
    """The image model did not answer in time."""

    public_detail = "Image generation timed out"


class PersistenceError(PhotoboothError):
    """Reading or writing image bytes failed."""

    public_detail = "Could not read or store image"
