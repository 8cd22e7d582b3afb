# File: silverfish/engine.py
"""silverfish.engine: оркестрация — один агрегатор на сайт, общий приёмник результатов."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TextIO, Union

from aiohttp import ClientSession, ClientTimeout

from silverfish.aggregator import EventHandler, Fetcher, SiteAggregator
from silverfish.config import CrawlerConfig, load_config
from silverfish.crawler.fetcher import PageFetcher
from silverfish.extractor import PageExtractor
from silverfish.logger import logger
from silverfish.metrics import Metrics
from silverfish.models import Place, SiteRecord
from silverfish.places import build_source, website_urls
from silverfish.sink import ResultSink, SinkStats

__all__ = ["CrawlSummary", "Engine", "crawl_sites", "discover_places", "start_crawl"]


@dataclass(slots=True)
class CrawlSummary:
    """Итог запуска: метрики и статистика приёмника."""

    metrics: Metrics
    stats: SinkStats

    @property
    def records(self) -> List[SiteRecord]:
        return self.stats.records


def _session(config: CrawlerConfig) -> ClientSession:
    return ClientSession(
        timeout=ClientTimeout(total=config.timeout),
        headers={"User-Agent": config.user_agent},
        raise_for_status=False,
    )


async def discover_places(
    config: CrawlerConfig,
    session: ClientSession,
    extra_seeds: Sequence[Place] = (),
) -> List[Place]:
    """Места из Google Places или из конфига, плюс сайты из командной строки."""
    source = build_source(config.places, config.seeds, session=session, timeout=config.timeout)
    places = await source.fetch_places()
    return [*places, *extra_seeds]


async def crawl_sites(
    urls: Sequence[str],
    config: CrawlerConfig,
    output: TextIO,
    *,
    session: Optional[ClientSession] = None,
    fetcher_factory: Optional[Callable[[EventHandler], Fetcher]] = None,
) -> CrawlSummary:
    """Обходит все *urls* параллельно и пишет CSV в *output*.

    Либо *session* (реальный PageFetcher), либо *fetcher_factory* (тесты).
    """
    if fetcher_factory is None:
        if session is None:
            raise ValueError("crawl_sites needs a session or a fetcher_factory")
        fetcher_factory = partial(PageFetcher, session, config)

    metrics = Metrics()
    results: asyncio.Queue[Optional[SiteRecord]] = asyncio.Queue(maxsize=config.queue_size)
    sink = ResultSink(output)
    sink_task = asyncio.create_task(sink.run(results))

    extractor = PageExtractor(config.follow_keywords, config.blocked_keywords)
    limiter = asyncio.Semaphore(config.site_concurrency)

    async def _crawl_one(url: str) -> None:
        async with limiter:
            aggregator = SiteAggregator(url, extractor, results, metrics, fetcher_factory)
            await aggregator.run()

    outcomes = await asyncio.gather(*(_crawl_one(url) for url in urls), return_exceptions=True)
    for url, outcome in zip(urls, outcomes):
        if isinstance(outcome, BaseException):
            logger.error("Site task for %s crashed: %r", url, outcome)

    # Все сайты завершены: закрываем очередь и даём приёмнику дочитать её.
    await results.put(None)
    stats = await sink_task

    metrics.log_summary()
    return CrawlSummary(metrics=metrics, stats=stats)


async def start_crawl(
    config: CrawlerConfig,
    extra_seeds: Sequence[Place] = (),
) -> CrawlSummary:
    """Полный запуск: поиск мест, обход сайтов, запись config.output_path."""
    async with _session(config) as session:
        places = await discover_places(config, session, extra_seeds)
        urls = website_urls(places)

        output_path = Path(config.output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", encoding="utf-8", newline="") as output:
            summary = await crawl_sites(urls, config, output, session=session)

    logger.info("Results written to %s", output_path)
    return summary


class Engine:
    """Синхронный фасад для CLI: загрузка конфига, поиск мест и полный обход."""

    @staticmethod
    def load_config(path: Union[str, Path, None]) -> CrawlerConfig:
        """Загружает конфиг из YAML/JSON или использует значения по умолчанию."""
        return load_config(path)

    def __init__(self, config: CrawlerConfig) -> None:
        self.config = config

    def discover(self, extra_seeds: Sequence[Place] = ()) -> List[Place]:
        """Места для обхода без самого обхода (Google Places или seeds из конфига)."""

        async def _runner() -> List[Place]:
            async with _session(self.config) as session:
                return await discover_places(self.config, session, extra_seeds)

        return asyncio.run(_runner())

    def start_crawl(
        self,
        output_path: Union[str, Path, None] = None,
        extra_seeds: Sequence[Place] = (),
        timeout: Optional[float] = None,
    ) -> CrawlSummary:
        """Запускает обход и возвращает итог; *timeout* ограничивает весь запуск."""
        config = self.config
        if output_path is not None:
            config = config.model_copy(update={"output_path": Path(output_path)})
        logger.info("Starting crawl, results -> %s", config.output_path)

        runner = start_crawl(config, extra_seeds)
        try:
            if timeout:
                return asyncio.run(asyncio.wait_for(runner, timeout=timeout))
            return asyncio.run(runner)
        except asyncio.TimeoutError:
            logger.error("Crawl did not finish within %s seconds", timeout)
            raise
        except Exception as exc:
            logger.error("Crawl failed: %s", exc)
            raise
