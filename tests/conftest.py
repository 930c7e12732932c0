"""Shared fixtures: an in-memory gateway and Playwright stand-ins for the transports."""

from __future__ import annotations

import json
from typing import Dict, List

import pytest
from playwright.async_api import Error as PlaywrightError

from ipfs_collector.config import HarvestConfig
from ipfs_collector.errors import TransportError
from ipfs_collector.fetcher import PlaywrightFetchClient

SAMPLE_URL = "https://ipfs.io/ipfs/QmMeta/0.json"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeGateway:
    """Serves canned responses and fails selected URLs a set number of times."""

    def __init__(self) -> None:
        self.responses: Dict[str, bytes] = {}
        self.failures: Dict[str, int] = {}
        self.requests: List[str] = []
        self.resets = 0
        self.content_types: Dict[str, str] = {}
        self.last_content_type: str | None = None

    def add_edition(self, edition: int, image: str | None = None, name: str | None = None) -> None:
        document = {"name": name or f"Token {edition}"}
        document["image"] = image if image is not None else f"ipfs://QmImg/{edition}.png"
        self.responses[f"https://ipfs.io/ipfs/QmMeta/{edition}.json"] = json.dumps(document).encode()
        self.responses[f"https://ipfs.io/ipfs/QmImg/{edition}.png"] = PNG_BYTES

    def fail(self, url: str, times: int) -> None:
        self.failures[url] = times

    def _serve(self, url: str) -> bytes:
        self.requests.append(url)
        remaining = self.failures.get(url, 0)
        if remaining:
            self.failures[url] = remaining - 1
            raise TransportError(f"Timeout while loading {url}")
        if url not in self.responses:
            raise TransportError(f"{url} returned HTTP 404")
        return self.responses[url]

    async def fetch_text(self, url: str) -> str:
        return self._serve(url).decode()

    async def fetch_bytes(self, url: str) -> bytes:
        data = self._serve(url)
        self.last_content_type = self.content_types.get(url)
        return data

    async def reset(self) -> None:
        self.resets += 1


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_config(tmp_path):
    def _make(**overrides) -> HarvestConfig:
        values = dict(
            metadata_sample_url=SAMPLE_URL,
            collection_name="Apes",
            first_edition_id=1,
            last_edition_id=3,
            collection_size=3,
            output_root=tmp_path,
            retry_delay=0,
        )
        values.update(overrides)
        return HarvestConfig(**values)

    return _make


# Stand-ins for the Playwright objects PlaywrightFetchClient drives.


class StubResponse:
    def __init__(self, status: int = 200, body: bytes = b"", headers: dict | None = None) -> None:
        self.status = status
        self.ok = 200 <= status < 300
        self.headers = headers or {}
        self._body = body

    async def body(self) -> bytes:
        return self._body


class StubPage:
    def __init__(self, outcome=None, text: str = "") -> None:
        self.outcome = outcome
        self.text = text
        self.visited: list = []
        self.timeout = None

    def set_default_timeout(self, timeout: float) -> None:
        self.timeout = timeout

    async def goto(self, url: str):
        self.visited.append(url)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome

    async def inner_text(self, selector: str) -> str:
        assert selector == "body"
        return self.text


class StubContext:
    def __init__(self, page: StubPage) -> None:
        self.page = page
        self.closed = False

    async def new_page(self) -> StubPage:
        return self.page

    async def close(self) -> None:
        self.closed = True


class StubBrowser:
    def __init__(self, page: StubPage | None = None, dead: bool = False) -> None:
        self.page = page or StubPage()
        self.dead = dead
        self.contexts: list = []
        self.closed = False

    async def new_context(self, **options) -> StubContext:
        if self.dead:
            raise PlaywrightError("Target page, context or browser has been closed")
        context = StubContext(self.page)
        context.options = options
        self.contexts.append(context)
        return context

    async def close(self) -> None:
        self.closed = True
        if self.dead:
            raise PlaywrightError("Browser has been closed")


class StubChromium:
    def __init__(self, browsers: list) -> None:
        self.browsers = browsers
        self.launches = 0

    async def launch(self, headless: bool = True):
        self.launches += 1
        browser = self.browsers.pop(0)
        if isinstance(browser, Exception):
            raise browser
        return browser


class StubPlaywright:
    def __init__(self, *browsers) -> None:
        self.chromium = StubChromium(list(browsers))


def playwright_client(config, page: StubPage, playwright: StubPlaywright | None = None) -> PlaywrightFetchClient:
    client = PlaywrightFetchClient(config)
    client._playwright = playwright or StubPlaywright()
    client._browser = StubBrowser(page)
    client._context = StubContext(page)
    client._page = page
    return client


