# silverfish/models.py
"""
Data models shared by the Silverfish crawler: places, site records and crawl events.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

__all__ = (
    "Place",
    "SiteRecord",
    "FetchStarted",
    "PageFetched",
    "FetchFailed",
    "FetchCompleted",
    "CrawlEvent",
)


class Place(BaseModel):
    """A discovered restaurant: display name and its website (may be empty)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = ""
    website_uri: str = Field("", alias="websiteUri")


@dataclass(frozen=True, slots=True)
class SiteRecord:
    """Finalized contact data for one seed site. Immutable once emitted."""

    url: str
    phone_numbers: Tuple[str, ...] = ()
    emails: Tuple[str, ...] = ()
    ordering_links: Tuple[str, ...] = ()
    has_online_ordering: bool = False

    def csv_row(self, key: str) -> list[str]:
        """Row for the results file; *key* replaces the raw seed URL."""
        return [
            key,
            ";".join(self.phone_numbers),
            ";".join(self.emails),
            ";".join(self.ordering_links),
        ]


# --------------------------------------------------------------------------- #
# Crawl events emitted by the page fetcher                                    #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class FetchStarted:
    """A request was accepted and is now in flight."""

    url: str


@dataclass(frozen=True, slots=True)
class PageFetched:
    """An HTML page arrived. *url* is the final URL after redirects."""

    url: str
    content: str = field(repr=False)
    depth: int = 1


@dataclass(frozen=True, slots=True)
class FetchFailed:
    """The request ended with an HTTP error (*status*) or a transport error (status 0)."""

    url: str
    status: int
    error: str = ""


@dataclass(frozen=True, slots=True)
class FetchCompleted:
    """The request finished successfully and its page (if any) has been processed."""

    url: str


CrawlEvent = Union[FetchStarted, PageFetched, FetchFailed, FetchCompleted]
