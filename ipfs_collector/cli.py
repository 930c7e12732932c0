"""Command-line entry point for the IPFS collection fetcher."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Sequence

from .config import DEFAULT_GATEWAY, TRANSPORTS, HarvestConfig, load_config_file
from .crawler import run_harvest
from .errors import ConfigError, StorageError

logger = logging.getLogger("ipfs_collector.cli")

# CLI dest -> HarvestConfig field
_OVERRIDES = {
    "sample_url": "metadata_sample_url",
    "collection": "collection_name",
    "first": "first_edition_id",
    "last": "last_edition_id",
    "size": "collection_size",
    "timeout": "page_timeout",
    "output": "output_root",
    "gateway": "gateway_base",
    "max_stuck": "max_stuck_count",
    "retry_delay": "retry_delay",
    "transport": "transport",
}


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Download every edition's metadata and image of a numbered IPFS collection, "
            "resuming safely over an existing output directory."
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON file with ipfsMetadataSampleUrl, collectionName, firstEditionId, "
        "lastEditionId, collectionSize and pageTimeout (ms)",
    )
    parser.add_argument("--sample-url", help="Metadata URL of any one edition")
    parser.add_argument("--collection", help="Collection name, used as the folder name")
    parser.add_argument("--first", type=int, help="First edition id")
    parser.add_argument("--last", type=int, help="Last edition id")
    parser.add_argument("--size", type=int, help="Number of images in the full collection")
    parser.add_argument("--timeout", type=float, help="Page timeout in seconds")
    parser.add_argument(
        "--output",
        type=Path,
        help="Directory that holds the collection folder (default: current directory)",
    )
    parser.add_argument(
        "--gateway",
        default=os.getenv("IPFS_GATEWAY", DEFAULT_GATEWAY),
        help="IPFS gateway base URL (env: IPFS_GATEWAY)",
    )
    parser.add_argument(
        "--max-stuck",
        type=int,
        help="Consecutive failures on one edition before it is set aside",
    )
    parser.add_argument(
        "--retry-delay",
        type=float,
        help="Seconds to wait after a failed fetch",
    )
    parser.add_argument("--transport", choices=TRANSPORTS, help="How pages are fetched")
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window instead of running headless",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> HarvestConfig:
    """Merge the optional config file with command-line overrides."""
    values: Dict[str, Any] = {}
    if args.config:
        values.update(load_config_file(args.config))
    for dest, field_name in _OVERRIDES.items():
        value = getattr(args, dest)
        if value is not None:
            values[field_name] = value
    if args.headed:
        values["headless"] = False
    try:
        return HarvestConfig(**values)
    except TypeError as exc:
        raise ConfigError(f"Incomplete configuration: {exc}") from exc


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    try:
        config = build_config(args)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2

    try:
        result = asyncio.run(run_harvest(config))
    except StorageError as exc:
        logger.error("%s", exc)
        return 1

    logger.info(
        "Finished in %.2fs (%d/%d images, %d metadata and %d images written)",
        result.total_seconds,
        result.images_on_disk,
        config.collection_size,
        result.metadata_written,
        result.images_written,
    )
    if result.missing:
        logger.debug("Editions still missing: %s", result.missing)
    return 0


if __name__ == "__main__":
    sys.exit(main())
