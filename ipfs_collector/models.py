"""Data models used throughout the collector."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

Metadata = Dict[str, Any]


class RetryDecision(Enum):
    """Outcome of classifying a failed fetch."""

    RETRY = "retry"
    DIVERT = "divert"


@dataclass
class CrawlState:
    """Mutable crawl progress owned by a single engine."""

    cursor: int
    stuck_cursor: Optional[int] = None
    stuck_count: int = 0
    missing_queue: List[int] = field(default_factory=list)


@dataclass
class HarvestResult:
    """Summary of a finished harvest."""

    complete: bool
    images_on_disk: int
    missing: List[int]
    metadata_written: int
    images_written: int
    total_seconds: float
