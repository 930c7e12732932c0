"""Exception hierarchy for the collector."""

from __future__ import annotations


class HarvestError(Exception):
    """Base class for failures absorbed by the crawl loop."""


class TransportError(HarvestError):
    """Fetch timed out, returned a non-2xx status, or navigation failed."""


class MetadataParseError(HarvestError):
    """Metadata response was not a JSON object."""


class StorageError(HarvestError):
    """Writing an artifact to local storage failed."""


class ConfigError(ValueError):
    """Startup configuration is missing or inconsistent."""
