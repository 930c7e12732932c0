"""Image type detection for locators that carry no file extension."""

from __future__ import annotations

import logging
from typing import Optional

from filetype import guess

logger = logging.getLogger("ipfs_collector")

FALLBACK_EXTENSION = "bin"


def detect_image_format(data: bytes) -> Optional[str]:
    """Return the extension filetype recognises from the payload signature."""
    kind = guess(data)
    if kind is None or not kind.mime.startswith("image/"):
        return None
    return _normalise(kind.extension)


def extension_from_content_type(content_type: Optional[str]) -> Optional[str]:
    """Map an ``image/*`` Content-Type header to an extension."""
    if not content_type:
        return None
    major, _, minor = content_type.split(";")[0].strip().partition("/")
    if major.lower() != "image" or not minor:
        return None
    return _normalise(minor.split("+")[0])


def infer_image_extension(data: bytes, content_type: Optional[str] = None) -> str:
    """Guess a file extension from the payload, then the response header."""
    extension = detect_image_format(data) or extension_from_content_type(content_type)
    if extension:
        return extension
    logger.warning(
        "Could not detect image type from %d bytes (Content-Type=%s); saving as .%s",
        len(data),
        content_type,
        FALLBACK_EXTENSION,
    )
    return FALLBACK_EXTENSION


def _normalise(extension: str) -> str:
    extension = extension.strip().lower()
    return "jpg" if extension == "jpeg" else extension
