# silverfish/extractor.py
"""
Contact extraction and link-follow policy for a single fetched page.

The extractor is pure: it never touches site state. The site aggregator
merges :class:`PageFindings` into its record under its own lock.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple
from urllib.parse import unquote, urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup
from bs4.element import Tag

from silverfish.phone import find_phones, normalize_phone

__all__ = ("PageFindings", "PageExtractor", "normalize_link")


@dataclass(frozen=True, slots=True)
class PageFindings:
    """Everything one page contributes to its site's record."""

    phones: Tuple[str, ...] = ()
    email: Optional[str] = None
    ordering_links: Tuple[str, ...] = ()
    follow_links: Tuple[str, ...] = ()
    blocked_links: Tuple[str, ...] = ()


def _unique(items: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(items))


def normalize_link(url: str) -> str:
    """Drop query and fragment, then one trailing slash, so links dedupe."""
    parsed = urlparse(url)
    link = urlunparse((parsed.scheme, parsed.netloc, parsed.path, parsed.params, "", ""))
    if link.endswith("/"):
        link = link[:-1]
    return link


class PageExtractor:
    """Finds phones, emails and ordering links, and decides which links to follow."""

    ORDER_MARKER = "order"

    def __init__(self, follow_keywords: Sequence[str], blocked_keywords: Sequence[str]) -> None:
        self.follow_keywords: Tuple[str, ...] = tuple(k.lower() for k in follow_keywords)
        self.blocked_keywords: Tuple[str, ...] = tuple(k.lower() for k in blocked_keywords)

    def extract(self, html: str, base_url: str) -> PageFindings:
        soup = BeautifulSoup(html, "html.parser")
        anchors = [
            (tag, tag["href"].strip())
            for tag in soup.find_all("a", href=True)
            if isinstance(tag, Tag) and isinstance(tag.get("href"), str)
        ]

        phones: List[str] = []
        email: Optional[str] = None
        for _, href in anchors:
            lowered = href.lower()
            if lowered.startswith("tel:"):
                normalized = normalize_phone(unquote(href[4:]))
                if normalized is not None:
                    phones.append(normalized)
            elif email is None and lowered.startswith("mailto:"):
                email = self._mailto_address(href) or None

        # Text pass runs after tel: links so those keep priority in the ordering.
        for element in soup(["script", "style", "noscript"]):
            element.decompose()
        text = " ".join(soup.get_text(" ").split())
        phones.extend(find_phones(text))

        ordering: List[str] = []
        follow: List[str] = []
        blocked: List[str] = []
        for _, href in anchors:
            absolute = self._absolute(base_url, href)
            if not absolute:
                continue
            if self.ORDER_MARKER in absolute:
                ordering.append(absolute)

            link = normalize_link(absolute)
            if not link.lower().startswith(("http://", "https://")):
                continue
            if not self.should_follow(link):
                continue
            if self.is_blocked(link):
                blocked.append(link)
            else:
                follow.append(link)

        return PageFindings(
            phones=_unique(phones),
            email=email,
            ordering_links=_unique(ordering),
            follow_links=_unique(follow),
            blocked_links=_unique(blocked),
        )

    def should_follow(self, link: str) -> bool:
        """True when the lower-cased link contains any follow keyword."""
        lowered = link.lower()
        return any(keyword in lowered for keyword in self.follow_keywords)

    def is_blocked(self, link: str) -> bool:
        """Delivery platform link: ``://<kw>`` scheme prefix or ``.<kw>.`` in the host."""
        lowered = link.lower()
        return any(
            f"://{keyword}" in lowered or f".{keyword}." in lowered
            for keyword in self.blocked_keywords
        )

    @staticmethod
    def _absolute(base_url: str, href: str) -> str:
        if not href or href.startswith("#"):
            return ""
        try:
            return urljoin(base_url, href)
        except ValueError:
            return ""

    @staticmethod
    def _mailto_address(href: str) -> str:
        address = href[len("mailto:"):].split("?", 1)[0]
        return unquote(address).strip()
