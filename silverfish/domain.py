# File: silverfish/domain.py
"""silverfish.domain: приведение URL сайта к ключу регистрируемого домена (eTLD+1)."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

import tldextract

from silverfish.logger import logger

__all__ = ("normalize_domain",)

_NON_WEB_SCHEMES = ("mailto:", "tel:", "javascript:", "data:")
_WWW_PREFIX_RE = re.compile(r"^www\d*\.")

# Bundled public suffix snapshot only, never fetched over the network.
# Private suffixes (wixsite.com, github.io) count: every tenant is its own site.
_EXTRACT = tldextract.TLDExtract(suffix_list_urls=(), include_psl_private_domains=True)


def normalize_domain(website: str) -> Optional[str]:
    """Возвращает регистрируемый домен для *website* или None.

    ``https://WWW2.Example.co.uk/path?x=1`` → ``example.co.uk``.
    Если публичный суффикс не определён (localhost, IP, голый суффикс),
    возвращается сам хост.
    """
    s = (website or "").strip()
    if not s:
        return None

    if s.lower().startswith(_NON_WEB_SCHEMES):
        return None

    if s.startswith("//"):
        s = "https:" + s
    if "://" not in s:
        s = "https://" + s

    try:
        host = urlparse(s).hostname
    except ValueError as exc:
        logger.debug("Cannot parse URL %r: %s", website, exc)
        return None
    if not host:
        return None

    host = _WWW_PREFIX_RE.sub("", host.lower().rstrip("."))
    if not host:
        return None

    ext = _EXTRACT(host)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return host
