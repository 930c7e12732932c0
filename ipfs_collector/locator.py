"""Remote URL derivation for edition metadata and images."""

from __future__ import annotations

from typing import Optional

from .config import DEFAULT_GATEWAY
from .utils import extension_of, strip_last_segment


class AssetLocator:
    """Build per-edition URLs from one sample metadata URL."""

    def __init__(self, sample_url: str, gateway_base: str = DEFAULT_GATEWAY) -> None:
        self.sample_url = sample_url
        self.gateway_base = gateway_base.rstrip("/")
        self._base_url = strip_last_segment(sample_url)
        self._json_suffix = ".json" in sample_url

    def metadata_url(self, edition: int) -> str:
        """Sibling of the sample URL named ``{edition}.json`` or ``{edition}``."""
        if self._json_suffix:
            return f"{self._base_url}/{edition}.json"
        return f"{self._base_url}/{edition}"

    def image_url(self, edition: int, image_locator: str) -> str:
        """Gateway URL for an ``scheme://<cid>/<file>`` locator.

        The file is renamed after ``edition`` and keeps the original extension.
        Locators without a file segment resolve to the bare content identifier.
        """
        parts = image_locator.split("/")
        content_id = parts[2] if len(parts) > 2 else ""
        extension: Optional[str] = None
        if len(parts) > 3:
            extension = extension_of(parts[3])
        if extension:
            return f"{self.gateway_base}/{content_id}/{edition}.{extension}"
        return f"{self.gateway_base}/{content_id}"


def image_extension(image_locator: str) -> Optional[str]:
    """Extension of the locator's final segment, used for the local filename."""
    return extension_of(image_locator.rstrip("/").rsplit("/", 1)[-1])
