# File: silverfish/aggregator.py
"""silverfish.aggregator: агрегатор одного сайта.

Собирает события загрузки страниц (FetchStarted / PageFetched / FetchFailed /
FetchCompleted) в одну запись :class:`~silverfish.models.SiteRecord` и
отдаёт её в очередь результатов ровно один раз, когда счётчик запросов в
полёте опускается до нуля.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, List, Optional, Protocol

from silverfish.extractor import PageExtractor, PageFindings
from silverfish.logger import logger
from silverfish.metrics import Metrics
from silverfish.models import (
    CrawlEvent,
    FetchCompleted,
    FetchFailed,
    FetchStarted,
    PageFetched,
    SiteRecord,
)

__all__ = ["SiteAggregator", "Fetcher", "EventHandler", "MAX_ORDERING_LINKS"]

#: Сколько ссылок на онлайн-заказ хранится для сайта.
MAX_ORDERING_LINKS = 2

EventHandler = Callable[[CrawlEvent], Awaitable[None]]


class Fetcher(Protocol):
    """Загрузчик страниц, которым управляет агрегатор."""

    async def visit(self, url: str, depth: int) -> bool:
        ...

    async def run(self, seed_url: str) -> None:
        ...


FetcherFactory = Callable[[EventHandler], Fetcher]


@dataclass(slots=True)
class _WorkingRecord:
    """Изменяемая запись сайта; живёт только под замком агрегатора."""

    url: str
    phone_numbers: List[str] = field(default_factory=list)
    emails: List[str] = field(default_factory=list)
    ordering_links: List[str] = field(default_factory=list)
    blocked_link_seen: bool = False

    def merge(self, findings: PageFindings) -> None:
        _append_unique(self.phone_numbers, findings.phones)
        if findings.email:
            _append_unique(self.emails, (findings.email,))
        for link in findings.ordering_links:
            if len(self.ordering_links) >= MAX_ORDERING_LINKS:
                break
            _append_unique(self.ordering_links, (link,))
        if findings.blocked_links:
            self.blocked_link_seen = True

    def snapshot(self) -> SiteRecord:
        return SiteRecord(
            url=self.url,
            phone_numbers=tuple(self.phone_numbers),
            emails=tuple(self.emails),
            ordering_links=tuple(self.ordering_links),
            # Онлайн-заказ: ссылка на платформу доставки ИЛИ хотя бы одна ссылка "order".
            has_online_ordering=self.blocked_link_seen or bool(self.ordering_links),
        )


def _append_unique(target: List[str], items: Iterable[str]) -> None:
    for item in items:
        if item not in target:
            target.append(item)


class SiteAggregator:
    """Конечный автомат ACTIVE → DONE для одного стартового URL."""

    def __init__(
        self,
        seed_url: str,
        extractor: PageExtractor,
        results: "asyncio.Queue[Optional[SiteRecord]]",
        metrics: Metrics,
        fetcher_factory: FetcherFactory,
    ) -> None:
        self.seed_url = seed_url
        self._extractor = extractor
        self._results = results
        self._metrics = metrics

        # PendingState: счётчик, флаг и запись под одним замком.
        self._lock = asyncio.Lock()
        self._pending = 0
        self._emitted = False
        self._record = _WorkingRecord(url=seed_url)

        # VisitedSet: отдельный замок, не удерживается при вызове fetcher.visit().
        self._visited_lock = asyncio.Lock()
        self._visited: set[str] = set()

        self._started = time.monotonic()
        self._fetcher = fetcher_factory(self.handle)

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def done(self) -> bool:
        return self._emitted

    async def run(self) -> None:
        """Обходит сайт и гарантирует ровно одну запись в очереди результатов."""
        self._metrics.domains_started += 1
        logger.info("Crawling %s", self.seed_url)
        try:
            await self._fetcher.run(self.seed_url)
        except Exception as exc:
            logger.error("Crawl of %s aborted: %s", self.seed_url, exc)
            # Незавершённые запросы уже не придут: сбрасываем счётчик.
            async with self._lock:
                if self._pending:
                    self._metrics.requests_errored += self._pending
                    self._pending = 0
        # Сайт без единого запроса (или с упавшим загрузчиком) тоже даёт запись.
        await self.attempt_finalize()

    async def handle(self, event: CrawlEvent) -> None:
        """Единственная точка входа для событий загрузчика."""
        if isinstance(event, FetchStarted):
            async with self._lock:
                self._pending += 1
                self._metrics.requests_started += 1
            logger.debug("[%s] start %s (pending=%d)", self.seed_url, event.url, self._pending)
        elif isinstance(event, PageFetched):
            await self._on_page(event)
        elif isinstance(event, FetchFailed):
            logger.warning(
                "[%s] failed %s status=%d err=%s", self.seed_url, event.url, event.status, event.error
            )
            async with self._lock:
                self._pending -= 1
                self._metrics.requests_errored += 1
            await self.attempt_finalize()
        elif isinstance(event, FetchCompleted):
            async with self._lock:
                self._pending -= 1
                self._metrics.requests_ok += 1
            logger.debug("[%s] done %s (pending=%d)", self.seed_url, event.url, self._pending)
            await self.attempt_finalize()
        else:
            raise TypeError(f"Unknown crawl event: {event!r}")

    async def attempt_finalize(self) -> bool:
        """Отдаёт запись, если запросов в полёте нет и она ещё не отдана.

        Фаза 1 (под замком): проверка, перевод emitted в True, снимок записи.
        Фаза 2 (без замка): передача снимка в очередь, затем метрики.
        """
        async with self._lock:
            if self._pending != 0 or self._emitted:
                return False
            self._emitted = True
            snapshot = self._record.snapshot()

        await self._results.put(snapshot)

        self._metrics.domains_finished += 1
        if snapshot.emails:
            self._metrics.domains_with_email += 1
        if snapshot.phone_numbers:
            self._metrics.domains_with_phone += 1
        self._metrics.emails_found += len(snapshot.emails)
        self._metrics.phones_found += len(snapshot.phone_numbers)

        logger.info(
            "Finished %s in %.2f s: %d phones, %d emails, %d ordering links",
            self.seed_url,
            time.monotonic() - self._started,
            len(snapshot.phone_numbers),
            len(snapshot.emails),
            len(snapshot.ordering_links),
        )
        return True

    async def _on_page(self, event: PageFetched) -> None:
        findings = self._extractor.extract(event.content, event.url)

        async with self._lock:
            if self._emitted:
                logger.debug("[%s] page %s arrived after finalize", self.seed_url, event.url)
            self._record.merge(findings)

        for link in await self._claim(findings.follow_links):
            await self._fetcher.visit(link, event.depth + 1)

    async def _claim(self, links: Iterable[str]) -> List[str]:
        """Отмечает ссылки как посещённые и возвращает только новые."""
        fresh: List[str] = []
        async with self._visited_lock:
            for link in links:
                if link not in self._visited:
                    self._visited.add(link)
                    fresh.append(link)
        return fresh
