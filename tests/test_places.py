# File: tests/test_places.py
from __future__ import annotations

import json
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import ClientSession, web

from silverfish.config import PlacesSettings
from silverfish.models import Place
from silverfish.places import (
    NearbyPlacesClient,
    PlaceSourceError,
    StaticPlaceSource,
    build_source,
    resolve_api_key,
    website_urls,
)

from conftest import serve_app


@pytest_asyncio.fixture
async def places_api(unused_tcp_port: int) -> AsyncIterator[dict]:
    state: dict = {"requests": [], "status": 200, "body": None}
    app = web.Application()

    async def search_nearby(request: web.Request):
        state["requests"].append({"headers": request.headers, "json": await request.json()})
        body = state["body"]
        if body is None:
            body = json.dumps(
                {
                    "places": [
                        {"displayName": {"text": "Joe's Diner"}, "websiteUri": "https://joes.test/"},
                        {"displayName": {"text": "Food Truck"}},
                    ]
                }
            )
        return web.Response(text=body, status=state["status"], content_type="application/json")

    app.router.add_post("/v1/places:searchNearby", search_nearby)

    async for base in serve_app(app, unused_tcp_port):
        state["endpoint"] = f"{base}/v1/places:searchNearby"
        yield state


@pytest_asyncio.fixture
async def session() -> AsyncIterator[ClientSession]:
    async with ClientSession() as s:
        yield s


@pytest.mark.asyncio()
async def test_nearby_request_and_parsing(places_api, session):
    settings = PlacesSettings(endpoint=places_api["endpoint"], radius=750.0, max_results=5)
    client = NearbyPlacesClient(session, "secret-key", settings)

    places = await client.fetch_places()

    assert places == [
        Place(name="Joe's Diner", website_uri="https://joes.test/"),
        Place(name="Food Truck", website_uri=""),
    ]
    [sent] = places_api["requests"]
    assert sent["headers"]["X-Goog-Api-Key"] == "secret-key"
    assert sent["headers"]["X-Goog-FieldMask"] == "places.displayName,places.websiteUri"
    assert sent["json"] == {
        "includedTypes": ["restaurant"],
        "maxResultCount": 5,
        "locationRestriction": {
            "circle": {"center": {"latitude": 34.0549, "longitude": -118.2426}, "radius": 750.0}
        },
    }
    assert website_urls(places) == ["https://joes.test/"]


@pytest.mark.asyncio()
async def test_non_200_raises(places_api, session):
    places_api["status"] = 403
    places_api["body"] = '{"error": "denied"}'
    client = NearbyPlacesClient(session, "k", PlacesSettings(endpoint=places_api["endpoint"]))
    with pytest.raises(PlaceSourceError, match="403"):
        await client.fetch_places()


@pytest.mark.asyncio()
async def test_malformed_json_raises(places_api, session):
    places_api["body"] = "{not json"
    client = NearbyPlacesClient(session, "k", PlacesSettings(endpoint=places_api["endpoint"]))
    with pytest.raises(PlaceSourceError):
        await client.fetch_places()


@pytest.mark.asyncio()
async def test_empty_response_means_no_places(places_api, session):
    places_api["body"] = "{}"
    client = NearbyPlacesClient(session, "k", PlacesSettings(endpoint=places_api["endpoint"]))
    assert await client.fetch_places() == []


@pytest.mark.asyncio()
async def test_unreachable_endpoint_raises(session, unused_tcp_port):
    settings = PlacesSettings(endpoint=f"http://localhost:{unused_tcp_port}/v1/places:searchNearby")
    with pytest.raises(PlaceSourceError, match="request error"):
        await NearbyPlacesClient(session, "k", settings).fetch_places()


def test_resolve_api_key(monkeypatch):
    monkeypatch.setenv("SILVERFISH_TEST_KEY", " abc ")
    assert resolve_api_key("SILVERFISH_TEST_KEY") == "abc"
    monkeypatch.setenv("SILVERFISH_TEST_KEY", "")
    with pytest.raises(PlaceSourceError):
        resolve_api_key("SILVERFISH_TEST_KEY")


@pytest.mark.asyncio()
async def test_build_source(monkeypatch, session):
    seeds = [Place(name="A", website_uri="https://a.example")]
    static = build_source(PlacesSettings(), seeds)
    assert isinstance(static, StaticPlaceSource)
    assert await static.fetch_places() == seeds

    monkeypatch.setenv("SILVERFISH_TEST_KEY", "abc")
    enabled = PlacesSettings(enabled=True, api_key_env="SILVERFISH_TEST_KEY")
    assert isinstance(build_source(enabled, seeds, session=session), NearbyPlacesClient)
    with pytest.raises(PlaceSourceError):
        build_source(enabled, seeds)
