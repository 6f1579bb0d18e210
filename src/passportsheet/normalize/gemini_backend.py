from __future__ import annotations

import base64
from typing import Any, Optional

from google import genai
from google.genai import types
from loguru import logger

from passportsheet.core.errors import DecodeError
from passportsheet.core.raster import RasterImage, encode_image
from passportsheet.normalize.errors import (
    AuthenticationFailed,
    EmptyResponse,
    NormalizationError,
    RateLimited,
)
from passportsheet.normalize.options import BackgroundColor, ClothingOption

DEFAULT_MODEL = "gemini-2.5-flash-image"


def build_prompt(color: BackgroundColor, clothing: ClothingOption) -> str:
    if clothing.outfit:
        clothing_clause = (
            f"3. CHANGE THE OUTFIT: Replace the person's current clothing with {clothing.outfit}. "
            "Ensure the fit is realistic, the neck connection is natural, and it looks like a "
            "high-quality professional headshot."
        )
    else:
        clothing_clause = "3. KEEP THE PERSON'S CLOTHING EXACTLY AS IS. Do not alter their clothes."

    return "\n".join([
        "Task: Create a professional passport photo from this portrait.",
        "Instructions:",
        "1. Identify the person in the foreground.",
        "2. KEEP THE PERSON'S FACE AND HAIR EXACTLY AS IS. Do not alter facial features or identity.",
        clothing_clause,
        f"4. Replace the entire background with a solid {color.label} color (Hex color code: {color.value}).",
        "5. Ensure a clean, professional edge cutout.",
        "6. CRITICAL: DO NOT WRITE THE HEX CODE OR ANY TEXT ON THE IMAGE. The image must be text-free.",
        "7. Output only the modified image.",
    ])


def classify_failure(err: Exception) -> NormalizationError:
    """Map a client exception onto the retryable / terminal error kinds."""
    code = getattr(err, "code", None)
    text = str(err)
    if code == 429 or "429" in text or "RESOURCE_EXHAUSTED" in text:
        return RateLimited(text or "Rate limited.")
    if code in (401, 403) or "API_KEY_INVALID" in text:
        return AuthenticationFailed("Invalid API Key. Please verify your key in Google AI Studio.")
    return NormalizationError(text or "An unexpected error occurred during AI processing.")


def _first_image(response: Any) -> RasterImage:
    candidates = getattr(response, "candidates", None) or []
    if candidates:
        content = candidates[0].content
        for part in (content.parts if content is not None else None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is None or not inline.data:
                continue
            data = inline.data
            if isinstance(data, str):
                data = base64.b64decode(data)
            try:
                return RasterImage.decode(data)
            except DecodeError as e:
                raise EmptyResponse(f"The AI returned an unreadable image: {e}") from e
    raise EmptyResponse("The AI returned a response but no image was found. Try a clearer photo.")


class GeminiReplacer:
    """
    Background and outfit replacement through the Gemini image model (google-genai).

    The client is created on first use, so a missing key surfaces as an
    ``AuthenticationFailed`` from ``replace_background`` like any other service error.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        payload_format: str = "PNG",
        quality: float = 0.95,
        client: Any = None,
    ):
        self._api_key = api_key
        self._client = client
        self.model = model
        self.payload_format = "JPEG" if payload_format.upper() in ("JPG", "JPEG") else "PNG"
        self.quality = quality

    def _get_client(self) -> Any:
        if self._client is None:
            key = self._api_key
            if not key or key in ("undefined", "null"):
                raise AuthenticationFailed("API key is missing. Set GEMINI_API_KEY (or API_KEY).")
            self._client = genai.Client(api_key=key)
        return self._client

    def replace_background(
        self,
        image: RasterImage,
        color: BackgroundColor,
        clothing: ClothingOption = ClothingOption.NONE,
    ) -> RasterImage:
        client = self._get_client()
        payload = encode_image(image, self.payload_format, self.quality)
        mime = "image/jpeg" if self.payload_format == "JPEG" else "image/png"
        contents = [
            types.Part.from_bytes(data=payload, mime_type=mime),
            build_prompt(color, clothing),
        ]
        logger.info("Requesting {} ({} bytes, background {}, outfit {})", self.model, len(payload), color.value, clothing.name)
        try:
            response = client.models.generate_content(model=self.model, contents=contents)
        except Exception as e:
            logger.error("Gemini API error: {}", e)
            raise classify_failure(e) from e
        return _first_image(response)
