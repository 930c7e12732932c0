"""Stuck-streak tracking for failed fetches."""

from __future__ import annotations

import logging

from .models import CrawlState, RetryDecision

logger = logging.getLogger("ipfs_collector")

MAX_STUCK_COUNT = 50


class RetryClassifier:
    """Decide whether a failing edition is retried in place or diverted.

    A streak counts consecutive failures at one cursor value. A failure at any
    other cursor starts a new streak of one. Once the streak reaches
    ``max_stuck_count`` the edition is diverted and tracking starts over.
    """

    def __init__(self, state: CrawlState, max_stuck_count: int = MAX_STUCK_COUNT) -> None:
        self.state = state
        self.max_stuck_count = max_stuck_count

    def classify(self, cursor: int) -> RetryDecision:
        state = self.state
        if cursor != state.stuck_cursor:
            state.stuck_cursor = cursor
            state.stuck_count = 1
        else:
            state.stuck_count += 1

        logger.debug(
            "Edition %d failed %d/%d times in a row",
            cursor,
            state.stuck_count,
            self.max_stuck_count,
        )
        if state.stuck_count >= self.max_stuck_count:
            state.stuck_cursor = None
            state.stuck_count = 0
            return RetryDecision.DIVERT
        return RetryDecision.RETRY
