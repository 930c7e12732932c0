"""High-level orchestration of the primary pass and the missing-edition drain."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Optional

from .config import HarvestConfig
from .errors import HarvestError, MetadataParseError
from .fetcher import WebFetchClient, open_client
from .images import infer_image_extension
from .locator import AssetLocator, image_extension
from .models import CrawlState, HarvestResult, Metadata, RetryDecision
from .retry import RetryClassifier
from .storage import FileStore

logger = logging.getLogger("ipfs_collector")


def parse_metadata(text: str, url: str) -> Metadata:
    """Decode a metadata page into a JSON object."""
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MetadataParseError(f"Metadata at {url} is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise MetadataParseError(f"Metadata at {url} is not a JSON object")
    return document


class CrawlEngine:
    """Walk ``[first_edition_id, last_edition_id]`` then drain diverted editions.

    All state lives in :attr:`state` and is mutated by one call chain, so at most
    one fetch is in flight at any time.
    """

    def __init__(
        self,
        config: HarvestConfig,
        client: WebFetchClient,
        store: Optional[FileStore] = None,
        locator: Optional[AssetLocator] = None,
    ) -> None:
        self.config = config
        self.client = client
        self.store = store or FileStore(config)
        self.locator = locator or AssetLocator(
            config.metadata_sample_url, config.gateway_base
        )
        self.state = CrawlState(cursor=config.first_edition_id)
        self.classifier = RetryClassifier(self.state, config.max_stuck_count)

    def is_complete(self) -> bool:
        return self.store.count_images() == self.config.collection_size

    async def process_edition(self, edition: int) -> None:
        """Fetch and persist whatever is missing on disk for one edition."""
        metadata_path = self.store.metadata_path(edition)
        if self.store.exists(metadata_path):
            metadata = self.store.read_metadata(metadata_path)
        else:
            url = self.locator.metadata_url(edition)
            metadata = parse_metadata(await self.client.fetch_text(url), url)
            self.store.write_metadata(metadata_path, metadata, edition)

        image_locator = metadata.get("image")
        if not image_locator:
            logger.debug("Edition %d has no image locator", edition)
            return
        await self._process_image(edition, metadata, str(image_locator))

    async def _process_image(self, edition: int, metadata: Metadata, image_locator: str) -> None:
        name = metadata.get("name")
        name = str(edition) if name is None else str(name)
        extension = image_extension(image_locator)

        if extension:
            image_path: Optional[Path] = self.store.image_path(name, extension)
            if self.store.exists(image_path):
                return
        elif self.store.find_image(name) is not None:
            return
        else:
            image_path = None

        data = await self.client.fetch_bytes(self.locator.image_url(edition, image_locator))
        if image_path is None:
            content_type = getattr(self.client, "last_content_type", None)
            image_path = self.store.image_path(name, infer_image_extension(data, content_type))
        self.store.write_image(image_path, data, edition)

    async def _recover(self, edition: int, exc: HarvestError) -> RetryDecision:
        logger.warning("Edition %d failed: %s", edition, exc)
        decision = self.classifier.classify(edition)
        if decision is RetryDecision.DIVERT:
            logger.info(
                "Edition %d is taking too much time to load at IPFS, the script will "
                "get the rest of the collection and get back to missing ones later!",
                edition,
            )
        try:
            await self.client.reset()
        except HarvestError as reset_exc:
            logger.warning("Could not reset the fetch client: %s", reset_exc)
        await asyncio.sleep(self.config.retry_delay)
        return decision

    async def primary_pass(self) -> bool:
        """Sweep the edition range; returns True once the collection is complete."""
        state = self.state
        while state.cursor <= self.config.last_edition_id:
            edition = state.cursor
            try:
                await self.process_edition(edition)
            except HarvestError as exc:
                if await self._recover(edition, exc) is RetryDecision.DIVERT:
                    state.missing_queue.append(edition)
                    state.cursor += 1
                continue

            state.cursor += 1
            if self.is_complete():
                return True
        return False

    async def drain_missing(self) -> bool:
        """Retry diverted editions until the queue empties or the collection is complete."""
        queue = self.state.missing_queue
        position = 0
        while queue:
            if position >= len(queue):
                position = 0
            edition = queue[position]
            try:
                await self.process_edition(edition)
            except HarvestError as exc:
                if await self._recover(edition, exc) is RetryDecision.DIVERT:
                    position += 1
                continue

            del queue[position]
            if self.is_complete():
                return True
        return self.is_complete()

    async def run(self) -> bool:
        if await self.primary_pass():
            return True
        if self.state.missing_queue:
            logger.info("Fetching missing files...")
        return await self.drain_missing()


async def run_harvest(
    config: HarvestConfig,
    client: Optional[WebFetchClient] = None,
) -> HarvestResult:
    """Materialize the configured collection under ``config.collection_dir``."""
    start = time.perf_counter()
    store = FileStore(config)
    store.ensure_folders()
    logger.info("Fetching files...")

    if client is None:
        async with open_client(config) as opened:
            engine = CrawlEngine(config, opened, store=store)
            complete = await engine.run()
    else:
        engine = CrawlEngine(config, client, store=store)
        complete = await engine.run()

    images = store.count_images()
    if complete:
        logger.info("Collection completely fetched!")
    else:
        logger.warning(
            "Finished with %d of %d images on disk",
            images,
            config.collection_size,
        )
    return HarvestResult(
        complete=complete,
        images_on_disk=images,
        missing=list(engine.state.missing_queue),
        metadata_written=store.metadata_written,
        images_written=store.images_written,
        total_seconds=time.perf_counter() - start,
    )
