# File: tests/conftest.py
import asyncio
from collections.abc import AsyncIterator
from typing import Callable, List, Optional

import pytest
from aiohttp import web

from silverfish.config import CrawlerConfig
from silverfish.extractor import PageExtractor
from silverfish.metrics import Metrics
from silverfish.models import CrawlEvent, SiteRecord


class FakeFetcher:
    """Fetcher stand-in: replays a scripted list of events and records visit() calls."""

    def __init__(self, on_event, script: Optional[List[CrawlEvent]] = None, error: Optional[Exception] = None):
        self.on_event = on_event
        self.script = list(script or [])
        self.error = error
        self.visits: List[tuple[str, int]] = []

    async def visit(self, url: str, depth: int) -> bool:
        self.visits.append((url, depth))
        return True

    async def run(self, seed_url: str) -> None:
        for event in self.script:
            await self.on_event(event)
        if self.error is not None:
            raise self.error


@pytest.fixture()
def crawler_config() -> CrawlerConfig:
    """
    Fast configuration for tests: no pacing, no retries, short timeout.
    """
    return CrawlerConfig(
        max_depth=3,
        parallelism=3,
        request_delay=0.0,
        timeout=2.0,
        retry_times=0,
        user_agent="TestAgent/1.0",
    )


@pytest.fixture()
def extractor(crawler_config) -> PageExtractor:
    return PageExtractor(crawler_config.follow_keywords, crawler_config.blocked_keywords)


@pytest.fixture()
def metrics() -> Metrics:
    return Metrics()


@pytest.fixture()
def results() -> "asyncio.Queue[Optional[SiteRecord]]":
    return asyncio.Queue()


@pytest.fixture()
def fake_fetchers() -> List[FakeFetcher]:
    """Every FakeFetcher built by ``make_factory`` ends up here."""
    return []


@pytest.fixture()
def make_factory(fake_fetchers) -> Callable[..., Callable]:
    def _make(script=None, error=None):
        def factory(on_event):
            fetcher = FakeFetcher(on_event, script, error)
            fake_fetchers.append(fetcher)
            return fetcher

        return factory

    return _make


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()
