"""Idempotent on-disk persistence of metadata and image artifacts."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from .config import HarvestConfig
from .errors import MetadataParseError, StorageError
from .models import Metadata
from .utils import safe_file_stem

logger = logging.getLogger("ipfs_collector")


class FileStore:
    """Stores ``metadata/{edition}.json`` and ``images/{name}.{ext}`` files.

    Callers gate every write on :meth:`exists`; existing files are never
    replaced, so re-running over the same directory writes nothing new.
    """

    def __init__(self, config: HarvestConfig) -> None:
        self.collection_name = config.collection_name
        self.metadata_dir = config.metadata_dir
        self.images_dir = config.images_dir
        self.metadata_written = 0
        self.images_written = 0

    def ensure_folders(self) -> None:
        try:
            self.metadata_dir.mkdir(parents=True, exist_ok=True)
            self.images_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create collection folders: {exc}") from exc

    def metadata_path(self, edition: int) -> Path:
        return self.metadata_dir / f"{edition}.json"

    def image_path(self, name: str, extension: str) -> Path:
        return self.images_dir / f"{safe_file_stem(name)}.{extension}"

    @staticmethod
    def exists(path: Path) -> bool:
        return path.exists()

    def find_image(self, name: str) -> Optional[Path]:
        """Return an existing image whose stem is ``name``, whatever its extension."""
        stem = safe_file_stem(name)
        if not self.images_dir.is_dir():
            return None
        for entry in self.images_dir.iterdir():
            if entry.stem == stem:
                return entry
        return None

    def read_metadata(self, path: Path) -> Metadata:
        """Load a previously saved metadata document."""
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise StorageError(f"Cannot read {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise MetadataParseError(f"Stored metadata {path} is not valid JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise MetadataParseError(f"Stored metadata {path} is not a JSON object")
        return document

    def write_metadata(self, path: Path, document: Metadata, edition: int) -> None:
        try:
            path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        except (OSError, ValueError) as exc:
            raise StorageError(f"Failed to write metadata {path}: {exc}") from exc
        self.metadata_written += 1
        logger.info("%s #%d metadata saved to %s", self.collection_name, edition, path)

    def write_image(self, path: Path, data: bytes, edition: int) -> None:
        try:
            with path.open("wb") as sink:
                sink.write(data)
        except (OSError, ValueError) as exc:
            raise StorageError(f"Failed to write image {path}: {exc}") from exc
        self.images_written += 1
        logger.info("%s #%d image saved to %s", self.collection_name, edition, path)

    def count_images(self) -> int:
        if not self.images_dir.is_dir():
            return 0
        return sum(1 for _ in self.images_dir.iterdir())
