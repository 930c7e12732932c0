"""Transports that fetch metadata text and image bytes from the gateway."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

import requests
from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    Response,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .config import HarvestConfig
from .errors import TransportError

logger = logging.getLogger("ipfs_collector")


class WebFetchClient(Protocol):
    """One request in flight at a time; failures raise ``TransportError``."""

    async def fetch_text(self, url: str) -> str: ...

    async def fetch_bytes(self, url: str) -> bytes: ...

    async def reset(self) -> None: ...


class PlaywrightFetchClient:
    """Navigate a single headless Chromium page to each URL."""

    def __init__(self, config: HarvestConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self.last_content_type: Optional[str] = None

    async def __aenter__(self) -> "PlaywrightFetchClient":
        self._playwright = await async_playwright().start()
        await self._launch_browser()
        await self._open_page()
        return self

    async def __aexit__(self, *exc_info) -> None:
        try:
            if self._browser is not None:
                await self._browser.close()
        finally:
            if self._playwright is not None:
                await self._playwright.stop()
            self._page = self._context = self._browser = self._playwright = None

    async def _launch_browser(self) -> None:
        assert self._playwright is not None
        self._browser = await self._playwright.chromium.launch(
            headless=self.config.headless
        )

    async def _open_page(self) -> None:
        assert self._browser is not None
        self._context = await self._browser.new_context(
            user_agent=self.config.user_agent,
            extra_http_headers={"Accept-Language": self.config.accept_language},
        )
        self._page = await self._context.new_page()
        self._page.set_default_timeout(self.config.page_timeout * 1000)

    async def reset(self) -> None:
        """Start from a clean browser context, relaunching Chromium if it died."""
        if self._context is not None:
            try:
                await self._context.close()
            except PlaywrightError as exc:
                logger.debug("Ignoring error while closing context: %s", exc)
        self._page = self._context = None
        if self._browser is not None:
            try:
                await self._open_page()
                return
            except PlaywrightError as exc:
                logger.warning("Browser is unusable, relaunching: %s", exc)
            try:
                await self._browser.close()
            except PlaywrightError as exc:
                logger.debug("Ignoring error while closing browser: %s", exc)
        self._browser = None
        try:
            await self._launch_browser()
            await self._open_page()
        except PlaywrightError as exc:
            raise TransportError(f"Cannot relaunch browser: {exc}") from exc

    async def _navigate(self, url: str) -> Response:
        if self._page is None:
            raise TransportError("Browser page is not open")
        logger.debug("Loading %s", url)
        try:
            response = await self._page.goto(url)
        except PlaywrightTimeoutError as exc:
            raise TransportError(f"Timeout while loading {url}: {exc}") from exc
        except PlaywrightError as exc:
            raise TransportError(f"Navigation to {url} failed: {exc}") from exc
        if response is None:
            raise TransportError(f"No response received for {url}")
        if not response.ok:
            raise TransportError(f"{url} returned HTTP {response.status}")
        return response

    async def fetch_text(self, url: str) -> str:
        await self._navigate(url)
        assert self._page is not None
        try:
            return await self._page.inner_text("body")
        except PlaywrightError as exc:
            raise TransportError(f"Cannot read page body of {url}: {exc}") from exc

    async def fetch_bytes(self, url: str) -> bytes:
        response = await self._navigate(url)
        self.last_content_type = response.headers.get("content-type")
        try:
            return await response.body()
        except PlaywrightError as exc:
            raise TransportError(f"Cannot read response body of {url}: {exc}") from exc


class RequestsFetchClient:
    """Plain HTTP transport backed by a ``requests.Session``."""

    def __init__(self, config: HarvestConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.last_content_type: Optional[str] = None
        self.session.headers.update(
            {
                "User-Agent": config.user_agent,
                "Accept-Language": config.accept_language,
            }
        )

    async def __aenter__(self) -> "RequestsFetchClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.session.close()

    def _get(self, url: str) -> requests.Response:
        logger.debug("Loading %s", url)
        try:
            resp = self.session.get(url, timeout=self.config.page_timeout or None)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"Failed to fetch {url}: {exc}") from exc
        return resp

    async def fetch_text(self, url: str) -> str:
        resp = await asyncio.to_thread(self._get, url)
        return resp.text

    async def fetch_bytes(self, url: str) -> bytes:
        resp = await asyncio.to_thread(self._get, url)
        self.last_content_type = resp.headers.get("Content-Type")
        return resp.content

    async def reset(self) -> None:
        return None


def open_client(config: HarvestConfig):
    """Return the async context manager for the configured transport."""
    if config.transport == "requests":
        return RequestsFetchClient(config)
    return PlaywrightFetchClient(config)
