"""
Google Cloud Vision OCR gateway.

Calls the `images:annotate` REST endpoint with DOCUMENT_TEXT_DETECTION and returns
the typed response; box geometry is mapped separately by `box_mapper`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from adscreen import config
from adscreen.models.vision import VisionTextResponse

logger = logging.getLogger(__name__)

VISION_ANNOTATE_URL = "https://vision.googleapis.com/v1/images:annotate"


class OCRError(RuntimeError):
    """OCR could not produce a result. Always fatal for an analysis job."""


class OCRCredentialsError(OCRError):
    pass


class OCRUpstreamError(OCRError):
    pass


def build_annotate_payload(image_base64: str, language_hints: List[str]) -> Dict[str, Any]:
    request: Dict[str, Any] = {
        "image": {"content": image_base64},
        "features": [{"type": "DOCUMENT_TEXT_DETECTION"}],
    }
    if language_hints:
        request["imageContext"] = {"languageHints": list(language_hints)}
    return {"requests": [request]}


class OCRGateway(ABC):
    """Text detection backend used by the analysis pipeline."""

    name: str = "unknown"

    @abstractmethod
    async def detect_text(self, image_base64: str) -> VisionTextResponse:
        """Return the annotated text for a base64 image; raise OCRError on failure."""


class GoogleVisionOCRGateway(OCRGateway):
    """Document text detection through the Vision REST API."""

    name = "google_vision"

    def __init__(
        self,
        api_key: Optional[str] = None,
        language_hints: Optional[List[str]] = None,
        timeout_sec: Optional[float] = None,
        url: str = VISION_ANNOTATE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else config.GOOGLE_VISION_API_KEY
        self.language_hints = language_hints if language_hints is not None else list(config.OCR_LANGUAGE_HINTS)
        self.timeout_sec = timeout_sec or config.OCR_TIMEOUT_SEC
        self.url = url
        self._transport = transport

    async def detect_text(self, image_base64: str) -> VisionTextResponse:
        if not self.api_key:
            raise OCRCredentialsError("GOOGLE_VISION_API_KEY is not configured.")

        payload = build_annotate_payload(image_base64, self.language_hints)
        try:
            async with httpx.AsyncClient(timeout=self.timeout_sec, transport=self._transport) as client:
                response = await client.post(self.url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as exc:
            raise OCRUpstreamError(f"Vision API request failed: {exc}") from exc

        if response.status_code != 200:
            message = response.text[:500] or "request failed"
            raise OCRUpstreamError(f"Vision API error ({response.status_code}): {message}")

        try:
            data = response.json()
        except ValueError as exc:
            raise OCRUpstreamError("Vision API returned a non-JSON body.") from exc

        return self._parse_response(data)

    def _parse_response(self, data: Any) -> VisionTextResponse:
        responses = data.get("responses") if isinstance(data, dict) else None
        first = responses[0] if isinstance(responses, list) and responses else {}
        try:
            parsed = VisionTextResponse.model_validate(first or {})
        except ValidationError as exc:
            raise OCRUpstreamError(f"Unexpected Vision response shape: {exc}") from exc

        if parsed.error and parsed.error.code:
            raise OCRUpstreamError(f"Vision API error ({parsed.error.code}): {parsed.error.message}")

        logger.debug(
            "Vision OCR returned %d chars, %d pages, %d annotations",
            len(parsed.full_text),
            len(parsed.pages),
            len(parsed.text_annotations),
        )
        return parsed
