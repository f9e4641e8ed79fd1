"""Gemini image generation service for marathon photos."""

import base64
from dataclasses import dataclass
from typing import Any, Protocol

import structlog
from google import genai
from google.genai import types

from marathon_photobooth.core.config import settings
from marathon_photobooth.core.errors import ExternalGenerationError
from marathon_photobooth.models.background import Background
from marathon_photobooth.services.prompts import build_prompt

logger = structlog.get_logger()

# Low temperature keeps identity and placement consistent between runs
TEMPERATURE = 0.28
TOP_P = 0.9
TOP_K = 32


@dataclass(frozen=True)
class ImageInput:
    """Raw image bytes with their mime type."""

    data: bytes
    mime_type: str


@dataclass(frozen=True)
class GenerationOptions:
    """Per-request options passed to the generator."""

    gender: str
    prominence: str
    background_image: ImageInput


class ImageGenerator(Protocol):
    """Produces a composite image from a selfie and a background."""

    async def generate(
        self, selfie: ImageInput, background: Background, options: GenerationOptions
    ) -> bytes:
        """Return the generated image bytes."""


def extract_image_bytes(response: Any) -> bytes:
    """Return the first inline image in a generate_content response.

    Raises:
        ExternalGenerationError: if the response carries no image data
    """
    texts: list[str] = []
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        if content is None:
            continue
        for part in content.parts or []:
            text = getattr(part, "text", None)
            if text:
                texts.append(text)
            inline_data = getattr(part, "inline_data", None)
            data = getattr(inline_data, "data", None)
            if not data:
                continue
            if isinstance(data, str):
                return base64.b64decode(data)
            return bytes(data)

    if texts:
        logger.warning("Model returned text but no image", text="".join(texts)[:500])
    raise ExternalGenerationError("No image generated")


class GeminiImageGenerator:
    """Generate composites with the Gemini image model."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: genai.Client | None = None,
    ) -> None:
        """Initialize with Gemini credentials or a ready client."""
        self.model = model or settings.gemini_model
        if client is None:
            api_key = api_key or settings.google_api_key
            if not api_key:
                raise ValueError("GOOGLE_API_KEY not configured")
            client = genai.Client(api_key=api_key)
        self.client = client
        self.config = types.GenerateContentConfig(
            temperature=TEMPERATURE,
            top_p=TOP_P,
            top_k=TOP_K,
            response_modalities=["TEXT", "IMAGE"],
        )

    async def generate(
        self, selfie: ImageInput, background: Background, options: GenerationOptions
    ) -> bytes:
        """Composite the selfie onto the background.

        Args:
            selfie: Uploaded selfie
            background: Background metadata used for the prompt
            options: Gender, prominence and the background image itself

        Returns:
            Generated image bytes
        """
        prompt = build_prompt(options.gender, background, options.prominence)
        contents: list[Any] = [
            prompt,
            types.Part.from_bytes(data=selfie.data, mime_type=selfie.mime_type),
            types.Part.from_bytes(
                data=options.background_image.data,
                mime_type=options.background_image.mime_type,
            ),
        ]

        logger.debug("Calling Gemini", model=self.model, background_id=background.id)
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=self.config,
            )
        except Exception as e:
            raise ExternalGenerationError(f"Gemini request failed: {e}") from e

        image_data = extract_image_bytes(response)
        logger.info(
            "Generated image",
            model=self.model,
            background_id=background.id,
            size=len(image_data),
        )
        return image_data
