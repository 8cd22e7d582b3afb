# File: silverfish/sink.py
"""silverfish.sink: единственный потребитель записей сайтов — дедупликация по домену и CSV."""

from __future__ import annotations

import asyncio
import csv
from dataclasses import dataclass, field
from typing import List, Optional, Set, TextIO

from silverfish.domain import normalize_domain
from silverfish.logger import logger
from silverfish.models import SiteRecord

__all__ = ["CSV_HEADER", "ResultSink", "SinkStats"]

CSV_HEADER = ("URL", "Phones", "Emails", "OrderingLinks")


@dataclass(slots=True)
class SinkStats:
    """Итоги работы приёмника результатов."""

    written: int = 0
    duplicates: int = 0
    failed: int = 0
    records: List[SiteRecord] = field(default_factory=list)


class ResultSink:
    """Читает SiteRecord из очереди до sentinel ``None``; первая запись на домен выигрывает."""

    def __init__(self, stream: TextIO) -> None:
        self._writer = csv.writer(stream)
        self._stream = stream
        self._seen: Set[str] = set()
        self.stats = SinkStats()

    async def run(self, queue: "asyncio.Queue[Optional[SiteRecord]]") -> SinkStats:
        logger.info("Result sink ready")
        self._write_row(list(CSV_HEADER))
        while True:
            record = await queue.get()
            try:
                if record is None:
                    break
                self.consume(record)
            finally:
                queue.task_done()
        self._flush()
        logger.info(
            "Result sink closed: %d written, %d duplicates, %d failed",
            self.stats.written,
            self.stats.duplicates,
            self.stats.failed,
        )
        return self.stats

    def consume(self, record: SiteRecord) -> bool:
        """Записывает *record*, если его домен ещё не встречался. True — строка записана."""
        key = normalize_domain(record.url)
        if key is None:
            logger.warning("Cannot normalize domain of %r, keying by raw URL", record.url)
            key = record.url

        if key in self._seen:
            self.stats.duplicates += 1
            logger.debug("Duplicate domain %s (%s) dropped", key, record.url)
            return False
        self._seen.add(key)

        if self._write_row(record.csv_row(key)):
            self.stats.written += 1
            self.stats.records.append(record)
            return True
        self.stats.failed += 1
        return False

    def _write_row(self, row: List[str]) -> bool:
        try:
            self._writer.writerow(row)
        except (OSError, csv.Error) as exc:
            logger.error("Error writing row %s: %s", row[:1], exc)
            return False
        return True

    def _flush(self) -> None:
        try:
            self._stream.flush()
        except OSError as exc:
            logger.error("Error flushing results: %s", exc)
