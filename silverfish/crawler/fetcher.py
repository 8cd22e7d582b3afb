# silverfish/crawler/fetcher.py
"""
Page fetcher for one site: request scheduling, per-site pacing, depth limit,
retry/backoff and per-request timeout.

Every accepted URL produces ``FetchStarted`` followed by exactly one of
``FetchFailed`` or ``FetchCompleted`` (with ``PageFetched`` before the latter
for HTML pages). Events go to the ``on_event`` coroutine, normally
:meth:`silverfish.aggregator.SiteAggregator.handle`.
"""
from __future__ import annotations

import asyncio
import random
import time
from typing import Awaitable, Callable, Optional, Sequence, Set, Tuple
from urllib.parse import urlparse

from aiohttp import ClientError, ClientSession, ClientTimeout

from silverfish.config import CrawlerConfig
from silverfish.domain import normalize_domain
from silverfish.logger import logger
from silverfish.models import (
    CrawlEvent,
    FetchCompleted,
    FetchFailed,
    FetchStarted,
    PageFetched,
)

__all__ = ("PageFetcher", "HttpStatusError")


class HttpStatusError(ClientError):
    """Response status that counts as a failed fetch (>= 400)."""

    def __init__(self, status: int) -> None:
        super().__init__(f"HTTP {status}")
        self.status = status


class PageFetcher:
    """Crawls one site with a bounded pool of workers."""

    _RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)

    def __init__(
        self,
        session: ClientSession,
        config: CrawlerConfig,
        on_event: Callable[[CrawlEvent], Awaitable[None]],
    ) -> None:
        self.session = session
        self.config = config
        self._emit = on_event
        self._timeout = ClientTimeout(total=config.timeout)
        self._queue: asyncio.Queue[Tuple[str, int]] = asyncio.Queue()
        self._accepted: Set[str] = set()
        self._site_key: Optional[str] = None
        self._rate_lock = asyncio.Lock()
        self._last_request_ts = 0.0

    async def visit(self, url: str, depth: int) -> bool:
        """Queue *url* at *depth*. False if it is refused or already accepted."""
        if depth > self.config.max_depth:
            return False
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return False
        if self._site_key is not None and normalize_domain(url) != self._site_key:
            logger.debug("Skip off-site link %s", url)
            return False
        if url in self._accepted:
            return False
        self._accepted.add(url)
        # Counted before the parent page completes, so the site never looks idle early.
        await self._emit(FetchStarted(url))
        self._queue.put_nowait((url, depth))
        return True

    async def run(self, seed_url: str) -> None:
        self._site_key = normalize_domain(seed_url)
        if not await self.visit(seed_url, 1):
            logger.warning("Seed URL refused: %s", seed_url)
            return
        workers = [asyncio.create_task(self._worker()) for _ in range(self.config.parallelism)]
        try:
            await self._queue.join()
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

    async def _worker(self) -> None:
        while True:
            url, depth = await self._queue.get()
            try:
                await self._process(url, depth)
            except Exception:
                logger.exception("Worker error on %s", url)
            finally:
                self._queue.task_done()

    async def _process(self, url: str, depth: int) -> None:
        try:
            final_url, html = await self._fetch(url)
        except HttpStatusError as exc:
            await self._emit(FetchFailed(url, exc.status, str(exc)))
            return
        except (ClientError, asyncio.TimeoutError) as exc:
            await self._emit(FetchFailed(url, 0, str(exc) or type(exc).__name__))
            return

        try:
            if html is not None:
                await self._emit(PageFetched(final_url, html, depth))
        except Exception as exc:
            logger.exception("Processing %s failed", url)
            await self._emit(FetchFailed(url, 0, f"processing error: {exc}"))
            return
        await self._emit(FetchCompleted(url))

    async def _fetch(self, url: str) -> Tuple[str, Optional[str]]:
        """GET *url* with retries. Returns the final URL and HTML text (None for non-HTML)."""
        attempts = 0
        while True:
            await self._wait_for_rate_limit()
            try:
                async with self.session.get(url, timeout=self._timeout) as resp:
                    if resp.status >= 400:
                        raise HttpStatusError(resp.status)
                    mime = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
                    if mime not in ("text/html", "application/xhtml+xml"):
                        return str(resp.url), None
                    return str(resp.url), await resp.text(errors="replace")
            except HttpStatusError as exc:
                if exc.status not in self._RETRY_STATUS or attempts >= self.config.retry_times:
                    raise
                attempts += 1
            except (ClientError, asyncio.TimeoutError):
                if attempts >= self.config.retry_times:
                    raise
                attempts += 1
            backoff = min(60, 2**attempts + random.random())
            logger.debug("Retry %d/%d for %s after %.2f s", attempts, self.config.retry_times, url, backoff)
            await asyncio.sleep(backoff)

    async def _wait_for_rate_limit(self) -> None:
        interval = self.config.request_delay
        if interval <= 0:
            return
        async with self._rate_lock:
            now = time.monotonic()
            wait = interval - (now - self._last_request_ts)
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request_ts = time.monotonic()
