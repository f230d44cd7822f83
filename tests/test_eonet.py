"""Tests for the EONET catalog client."""

import asyncio
from decimal import Decimal

import pytest
from aiohttp import web

from conftest import FakeEonet, make_category, raw_event, serve
from ourplanet.api import eonet
from ourplanet.api.eonet import CatalogClient, build_url
from ourplanet.config.client import ClientConfig
from ourplanet.errors import InvalidParameter, InvalidURL

API = "https://eonet.gsfc.nasa.gov/api/v2.1"


class TestBuildUrl:
    def test_joins_endpoint(self) -> None:
        assert build_url(API, "/categories") == f"{API}/categories"

    def test_trailing_slash_on_base(self) -> None:
        assert build_url(API + "/", "events") == f"{API}/events"

    def test_encodes_query(self) -> None:
        url = build_url(API, "/events", {"days": 360, "status": "open"})
        assert url == f"{API}/events?days=360&status=open"

    def test_bool_query_value(self) -> None:
        assert build_url(API, "/events", {"closed": True}).endswith("?closed=true")

    @pytest.mark.parametrize("base", ["", "not a url", "ftp://example.com/api", "/relative/api"])
    def test_invalid_base(self, base) -> None:
        with pytest.raises(InvalidURL):
            build_url(base, "/categories")

    def test_endpoint_with_whitespace(self) -> None:
        with pytest.raises(InvalidURL):
            build_url(API, "/bad endpoint")

    @pytest.mark.parametrize("value", [None, [1, 2], {"a": 1}, Decimal("1.5")])
    def test_unencodable_parameter(self, value) -> None:
        with pytest.raises(InvalidParameter) as exc:
            build_url(API, "/events", {"days": value})
        assert exc.value.name == "days"


class TestFetchCategories:
    def test_parses_and_sorts(self) -> None:
        fake = FakeEonet(
            categories=[
                {"id": 8, "title": "Wildfires"},
                {"id": 6, "title": "Drought"},
                {"title": "missing id"},
            ]
        )

        categories = asyncio.run(serve(fake.app(), lambda s, c: eonet.fetch_categories(s, config=c)))

        assert [(c.id, c.name) for c in categories] == [("6", "Drought"), ("8", "Wildfires")]

    def test_server_error_degrades_to_empty(self) -> None:
        async def broken(request: web.Request) -> web.Response:
            return web.Response(status=503)

        app = web.Application()
        app.router.add_get("/api/categories", broken)

        assert asyncio.run(serve(app, lambda s, c: eonet.fetch_categories(s, config=c))) == []

    def test_missing_categories_key_degrades_to_empty(self) -> None:
        async def wrong_shape(request: web.Request) -> web.Response:
            return web.json_response({"events": []})

        app = web.Application()
        app.router.add_get("/api/categories", wrong_shape)

        assert asyncio.run(serve(app, lambda s, c: eonet.fetch_categories(s, config=c))) == []

    def test_non_json_body_degrades_to_empty(self) -> None:
        async def html(request: web.Request) -> web.Response:
            return web.Response(text="<html>maintenance</html>", content_type="text/html")

        app = web.Application()
        app.router.add_get("/api/categories", html)

        assert asyncio.run(serve(app, lambda s, c: eonet.fetch_categories(s, config=c))) == []

    def test_unreachable_host_degrades_to_empty(self) -> None:
        async def run():
            import aiohttp

            config = ClientConfig(api_base="http://127.0.0.1:9/api", timeout_seconds=2)
            async with aiohttp.ClientSession() as session:
                return await eonet.fetch_categories(session, config=config)

        assert asyncio.run(run()) == []


class TestFetchEvents:
    def test_category_events_open_then_closed(self) -> None:
        fake = FakeEonet(
            categories=[{"id": "floods", "title": "Floods"}],
            events={
                "floods": {
                    "open": [raw_event("O1", "floods")],
                    "closed": [raw_event("C1", "floods", closed="2024-02-01T00:00:00Z")],
                }
            },
        )

        async def run(session, config):
            return await eonet.fetch_all_category_events(
                session, make_category("floods"), days=30, config=config,
            )

        events = asyncio.run(serve(fake.app(), run))

        assert [e.id for e in events] == ["O1", "C1"]
        assert fake.requests[("floods", "open")] == 1
        assert fake.requests[("floods", "closed")] == 1

    def test_global_events_endpoint(self) -> None:
        fake = FakeEonet(
            categories=[],
            events={
                "a": {"open": [raw_event("1", "a")], "closed": [raw_event("2", "a", closed="2024-02-01T00:00:00Z")]},
                "b": {"open": [raw_event("3", "b")]},
            },
        )

        events = asyncio.run(serve(fake.app(), lambda s, c: eonet.fetch_all_events(s, days=7, config=c)))

        assert sorted(e.id for e in events) == ["1", "2", "3"]
        assert fake.requests[("events", "open")] == 1
        assert fake.requests[("events", "closed")] == 1

    def test_not_found_degrades_to_empty(self) -> None:
        app = web.Application()

        async def run(session, config):
            return await eonet.fetch_category_events(
                session, make_category("nope"), days=30, closed=False, config=config,
            )

        assert asyncio.run(serve(app, run)) == []

    def test_bad_base_degrades_to_empty(self) -> None:
        async def run():
            import aiohttp

            config = ClientConfig(api_base="not a url")
            async with aiohttp.ClientSession() as session:
                return await eonet.fetch_events(session, days=1, closed=True, config=config)

        assert asyncio.run(run()) == []


class TestCatalogClient:
    def test_categories_fetched_once(self) -> None:
        fake = FakeEonet(categories=[{"id": 1, "title": "Wildfires"}])

        async def run(session, config):
            client = CatalogClient(session, config)
            first, second = await asyncio.gather(client.categories(), client.categories())
            third = await client.categories()
            return first, second, third

        first, second, third = asyncio.run(serve(fake.app(), run))

        assert first == second == third
        assert fake.requests["categories"] == 1

    def test_category_events_uses_configured_window(self) -> None:
        seen = {}

        async def handler(request: web.Request) -> web.Response:
            seen.update(request.query)
            return web.json_response({"events": [raw_event("E", "6")]})

        app = web.Application()
        app.router.add_get("/api/categories/{id}", handler)

        async def run(session, config):
            config.days = 45
            return await CatalogClient(session, config).category_events(make_category("6"))

        events = asyncio.run(serve(app, run))

        assert [e.id for e in events] == ["E", "E"]
        assert seen["days"] == "45"


class TestUndecodableBody:
    """A body that is not valid UTF-8 degrades like any other bad JSON."""

    @staticmethod
    def _app() -> web.Application:
        async def garbled(request: web.Request) -> web.Response:
            return web.Response(
                body=b'{"events": ["\xff"], "categories": ["\xfe"]}',
                content_type="application/json",
                charset="utf-8",
            )

        app = web.Application()
        app.router.add_get("/api/categories", garbled)
        app.router.add_get("/api/categories/{id}", garbled)
        app.router.add_get("/api/events", garbled)
        return app

    def test_categories(self) -> None:
        assert asyncio.run(serve(self._app(), lambda s, c: eonet.fetch_categories(s, config=c))) == []

    def test_category_events(self) -> None:
        async def run(session, config):
            return await eonet.fetch_category_events(
                session, make_category("floods"), days=30, closed=False, config=config,
            )

        assert asyncio.run(serve(self._app(), run)) == []

    def test_catalog_client_events(self) -> None:
        async def run(session, config):
            return await CatalogClient(session, config).events()

        assert asyncio.run(serve(self._app(), run)) == []

    def test_fetch_json_raises_invalid_json(self) -> None:
        from ourplanet.errors import InvalidJSON
        from ourplanet.http.client import fetch_json

        async def run(session, config):
            with pytest.raises(InvalidJSON):
                await fetch_json(session, config.api_base + "/events")
            return True

        assert asyncio.run(serve(self._app(), run))
