"""Utility helpers for locator strings and path handling."""

from __future__ import annotations

import re
from typing import Optional

_UNSAFE_NAME_PATTERN = re.compile(r"[/\\\x00-\x1f]")


def extension_of(segment: Optional[str]) -> Optional[str]:
    """Return the text after the last ``.`` of a path segment, if any."""
    if not segment or "." not in segment:
        return None
    ext = segment.rsplit(".", 1)[-1]
    return ext or None


def strip_last_segment(url: str) -> str:
    """Drop everything after the final ``/`` of a URL."""
    return url.rpartition("/")[0]


def safe_file_stem(value: str) -> str:
    """Neutralize path separators and control characters in a file name."""
    return _UNSAFE_NAME_PATTERN.sub("_", value)
