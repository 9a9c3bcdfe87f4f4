"""
Tests for the platform REST client against an in-process transport.
"""

import asyncio
import json

import httpx
import pytest

from automap.adapters.platform_client import PlatformClient
from automap.utils.exceptions import PlatformError

BASE_URL = "https://platform.test/rest"


def _client(handler, **kwargs) -> PlatformClient:
    kwargs.setdefault("email", "ops@example.test")
    kwargs.setdefault("password", "secret")
    return PlatformClient(BASE_URL, transport=httpx.MockTransport(handler), **kwargs)


def _run(coro):
    return asyncio.run(coro)


class TestRequests:
    """Tests for paths, bodies and the session cookie."""

    def test_login_cookie_reused(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path == "/rest/login":
                return httpx.Response(200, headers={"Set-Cookie": "SESSION=abc; Path=/"})
            return httpx.Response(200, json=[{"name": "production.signup", "state": "UNMAPPED"}])

        async def scenario():
            async with _client(handler) as client:
                await client.login()
                return await client.list_event_types()

        listing = _run(scenario())

        assert json.loads(seen[0].content) == {"email": "ops@example.test", "password": "secret"}
        assert seen[1].url.path == "/rest/event-types"
        assert "SESSION=abc" in seen[1].headers.get("cookie", "")
        assert [(e.name, e.state) for e in listing] == [("production.signup", "UNMAPPED")]

    def test_event_type_paths(self) -> None:
        seen = []

        async def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.raw_path.decode()))
            return httpx.Response(200, json={"name": "production.signup", "fields": []})

        async def scenario():
            async with _client(handler) as client:
                await client.get_event_type("production.signup")
                await client.run_auto_map({"name": "production.signup", "fields": []})
                await client.create_table("dataflux", "production.signup", [])
                await client.commit_mapping("production.signup", {"name": "production.signup"})
                await client.delete_event_type("weird name")

        _run(scenario())

        assert seen == [
            ("GET", "/rest/event-types/production.signup"),
            ("POST", "/rest/event-types/production.signup/auto-map"),
            ("POST", "/rest/tables/dataflux/production.signup"),
            ("POST", "/rest/event-types/production.signup/mapping"),
            ("DELETE", "/rest/event-types/weird%20name"),
        ]

    def test_commit_defaults_to_strict(self) -> None:
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(204)

        async def scenario():
            async with _client(handler) as client:
                return await client.commit_mapping("a.b", {"name": "a.b", "fields": []})

        assert _run(scenario()) is None
        assert bodies[0]["mappingMode"] == "STRICT"

    def test_text_response(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="ok")

        async def scenario():
            async with _client(handler) as client:
                return await client.delete_event_type("a.b")

        assert _run(scenario()) == "ok"


class TestErrors:
    """Tests for transport and HTTP failures."""

    def test_http_error_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        async def scenario():
            async with _client(handler) as client:
                await client.get_event_type("a.b")

        with pytest.raises(PlatformError) as exc_info:
            _run(scenario())

        assert exc_info.value.status_code == 500
        assert exc_info.value.method == "GET"
        assert "boom" in str(exc_info.value)

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async def scenario():
            async with _client(handler) as client:
                await client.list_event_types()

        with pytest.raises(PlatformError) as exc_info:
            _run(scenario())

        assert exc_info.value.status_code is None

    def test_missing_credentials(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        async def scenario():
            async with _client(handler, password=None) as client:
                await client.login()

        with pytest.raises(PlatformError, match="credentials"):
            _run(scenario())
        assert calls == []

    def test_listing_not_a_list(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"error": "nope"})

        async def scenario():
            async with _client(handler) as client:
                await client.list_event_types()

        with pytest.raises(PlatformError):
            _run(scenario())


def test_commit_leaves_caller_body_untouched() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200)

    body = {"name": "a.b", "fields": []}

    async def scenario():
        async with _client(handler) as client:
            await client.commit_mapping("a.b", body)

    _run(scenario())
    assert body == {"name": "a.b", "fields": []}
