"""silverfish.crawler: загрузчик страниц одного сайта на aiohttp."""

from .fetcher import HttpStatusError, PageFetcher

__all__ = ["PageFetcher", "HttpStatusError"]
