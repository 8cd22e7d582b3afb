# File: silverfish/metrics.py
"""silverfish.metrics: счётчики процесса, обновляемые агрегаторами сайтов."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, fields
from typing import Dict, Union

from silverfish.logger import logger

__all__ = ["Metrics"]


@dataclass(slots=True)
class Metrics:
    """Счётчики одного запуска.

    Все агрегаторы работают в одном event loop, поэтому ``+=`` над int
    не требует блокировок. Порядок обновлений не гарантируется.
    """

    domains_started: int = 0
    domains_finished: int = 0
    domains_with_email: int = 0
    domains_with_phone: int = 0

    requests_started: int = 0
    requests_ok: int = 0
    requests_errored: int = 0

    emails_found: int = 0
    phones_found: int = 0

    started_at: float = field(default_factory=time.monotonic, repr=False)

    def elapsed(self) -> float:
        return time.monotonic() - self.started_at

    def as_dict(self) -> Dict[str, Union[int, float]]:
        """Счётчики и длительность запуска для отчётов."""
        data: Dict[str, Union[int, float]] = {
            f.name: getattr(self, f.name) for f in fields(self) if f.name != "started_at"
        }
        data["elapsed_seconds"] = round(self.elapsed(), 3)
        return data

    def log_summary(self) -> None:
        logger.info(
            "Domains: %d/%d finished (%d with email, %d with phone)",
            self.domains_finished,
            self.domains_started,
            self.domains_with_email,
            self.domains_with_phone,
        )
        logger.info(
            "Requests: %d started, %d ok, %d errored",
            self.requests_started,
            self.requests_ok,
            self.requests_errored,
        )
        logger.info(
            "Found %d emails and %d phones in %.2f s",
            self.emails_found,
            self.phones_found,
            self.elapsed(),
        )
