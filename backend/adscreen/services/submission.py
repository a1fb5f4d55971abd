"""Validation of submitted ad images (data URI or raw base64)."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional, Tuple

DEFAULT_MIME_TYPE = "image/jpeg"
_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[^,]*)?;base64,(?P<data>.*)$", re.DOTALL)


class SubmissionError(ValueError):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class ImagePayload:
    mime_type: str
    base64_data: str
    raw: bytes

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_data}"

    @property
    def size(self) -> int:
        return len(self.raw)


def split_data_uri(value: str) -> Tuple[str, str]:
    """Return (mime_type, base64 body); raw base64 gets the default mime type."""
    value = (value or "").strip()
    match = _DATA_URI.match(value)
    if match:
        return (match.group("mime") or DEFAULT_MIME_TYPE), re.sub(r"\s+", "", match.group("data"))
    return DEFAULT_MIME_TYPE, re.sub(r"\s+", "", value)


def estimate_bytes(base64_data: str) -> int:
    return len(base64_data) * 3 // 4 - base64_data[-2:].count("=")


def validate_submission(ad_name: str, base64_image: str, max_bytes: Optional[int] = None) -> ImagePayload:
    if not (ad_name or "").strip():
        raise SubmissionError("ad_name is required.")
    mime_type, data = split_data_uri(base64_image)
    if not data:
        raise SubmissionError("base64_image is required.")
    if not mime_type.startswith("image/"):
        raise SubmissionError(f"Unsupported content type: {mime_type}")
    # Reject oversized payloads before decoding them.
    if max_bytes is not None and estimate_bytes(data) > max_bytes:
        raise SubmissionError(f"Image exceeds the {max_bytes} byte limit.", status_code=413)
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise SubmissionError("base64_image is not valid base64.") from exc
    if not raw:
        raise SubmissionError("base64_image is empty.")
    if max_bytes is not None and len(raw) > max_bytes:
        raise SubmissionError(f"Image exceeds the {max_bytes} byte limit.", status_code=413)
    return ImagePayload(mime_type=mime_type, base64_data=data, raw=raw)
