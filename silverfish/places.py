# File: silverfish/places.py
"""silverfish.places: источники стартовых сайтов — статический список и Google Places (searchNearby)."""

from __future__ import annotations

import asyncio
import json
import os
from typing import Any, Dict, List, Optional, Protocol, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout
from dotenv import load_dotenv
from pydantic import ValidationError

from silverfish.config import PlacesSettings
from silverfish.logger import logger
from silverfish.models import Place

__all__ = [
    "PlaceSourceError",
    "PlaceSource",
    "StaticPlaceSource",
    "NearbyPlacesClient",
    "resolve_api_key",
    "website_urls",
    "build_source",
]

_FIELD_MASK = "places.displayName,places.websiteUri"


class PlaceSourceError(RuntimeError):
    """Источник мест недоступен: запуск прерывается до начала обхода."""


class PlaceSource(Protocol):
    async def fetch_places(self) -> List[Place]:
        ...


class StaticPlaceSource:
    """Места из конфигурации или командной строки."""

    def __init__(self, places: Sequence[Place]) -> None:
        self._places = list(places)

    async def fetch_places(self) -> List[Place]:
        return list(self._places)


def resolve_api_key(env_var: str) -> str:
    """Берёт ключ API из окружения (с подгрузкой .env)."""
    load_dotenv(override=False)
    key = os.getenv(env_var, "").strip()
    if not key:
        raise PlaceSourceError(f"{env_var} is not set (environment or .env file)")
    return key


class NearbyPlacesClient:
    """Клиент Google Places API (New): POST places:searchNearby."""

    def __init__(
        self,
        session: ClientSession,
        api_key: str,
        settings: PlacesSettings,
        timeout: float = 10.0,
    ) -> None:
        self.session = session
        self.api_key = api_key
        self.settings = settings
        self.timeout = timeout

    def _request_body(self) -> Dict[str, Any]:
        s = self.settings
        return {
            "includedTypes": list(s.included_types),
            "maxResultCount": s.max_results,
            "locationRestriction": {
                "circle": {
                    "center": {"latitude": s.latitude, "longitude": s.longitude},
                    "radius": s.radius,
                }
            },
        }

    async def fetch_places(self) -> List[Place]:
        headers = {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": _FIELD_MASK,
        }
        try:
            async with self.session.post(
                self.settings.endpoint,
                json=self._request_body(),
                headers=headers,
                timeout=ClientTimeout(total=self.timeout),
            ) as resp:
                body = await resp.text()
                if resp.status != 200:
                    raise PlaceSourceError(f"non-200 response: {resp.status}, body: {body[:500]}")
        except (ClientError, asyncio.TimeoutError) as exc:
            raise PlaceSourceError(f"request error: {exc}") from exc

        try:
            payload = json.loads(body) if body.strip() else {}
        except json.JSONDecodeError as exc:
            raise PlaceSourceError(f"error decoding response: {exc}") from exc
        if not isinstance(payload, dict):
            raise PlaceSourceError("unexpected response shape")
        return [self._parse_place(raw) for raw in payload.get("places", []) or []]

    @staticmethod
    def _parse_place(raw: Dict[str, Any]) -> Place:
        try:
            display = raw.get("displayName") or {}
            return Place(name=display.get("text", ""), website_uri=raw.get("websiteUri", ""))
        except (AttributeError, ValidationError) as exc:
            raise PlaceSourceError(f"malformed place entry {raw!r}: {exc}") from exc


def website_urls(places: Sequence[Place]) -> List[str]:
    """URL сайтов в порядке поступления; места без сайта пропускаются."""
    urls: List[str] = []
    for place in places:
        logger.info("Place: %s - website: %s", place.name or "?", place.website_uri or "-")
        if place.website_uri:
            urls.append(place.website_uri)
    logger.info("Total places: %d, with website: %d", len(places), len(urls))
    return urls


def build_source(
    settings: PlacesSettings,
    seeds: Sequence[Place],
    session: Optional[ClientSession] = None,
    timeout: float = 10.0,
) -> PlaceSource:
    """Google Places, если он включён в настройках, иначе статический список."""
    if settings.enabled:
        if session is None:
            raise PlaceSourceError("Google Places source needs an HTTP session")
        return NearbyPlacesClient(session, resolve_api_key(settings.api_key_env), settings, timeout)
    return StaticPlaceSource(seeds)
