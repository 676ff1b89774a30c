"""
Edge case tests: configuration errors, chaining, exclusions and the ASGI plumbing.
"""

import asyncio

import pytest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from starlette.testclient import TestClient


async def echo_headers(request):
    return JSONResponse(
        {
            "accept": request.headers.get("accept"),
            "accept-charset": request.headers.get("accept-charset"),
            "accept-encoding": request.headers.get("accept-encoding"),
            "accept-language": request.headers.get("accept-language"),
            "path": request.url.path,
        }
    )


class TestChainEdgeCases:
    def test_full_chain(self):
        from fastNegotiation import (
            ContentCharsetMiddleware,
            ContentEncodingMiddleware,
            ContentLanguageMiddleware,
            ContentTypeMiddleware,
        )

        app = Starlette(routes=[Route("/{path:path}", echo_headers)])
        app.add_middleware(ContentLanguageMiddleware, languages=["en", "es"], use_path=True)
        app.add_middleware(ContentEncodingMiddleware, encodings=["gzip"])
        app.add_middleware(ContentCharsetMiddleware, charsets=["UTF-8", "ISO-8859-1"])
        app.add_middleware(ContentTypeMiddleware, charsets=["UTF-8", "ISO-8859-1"])
        client = TestClient(app)

        response = client.get(
            "/es/items.json",
            headers={
                "Accept": "text/html",
                "Accept-Charset": "ISO-8859-1",
                "Accept-Encoding": "deflate, gzip;q=0.5",
                "Accept-Language": "en",
            },
        )
        assert response.status_code == 200
        assert response.json() == {
            "accept": "application/json",
            "accept-charset": "ISO-8859-1",
            "accept-encoding": "gzip",
            "accept-language": "es",
            "path": "/items.json",
        }
        # The handler set its own Content-Type.
        assert response.headers["content-type"] == "application/json"
        assert response.headers["x-content-type-options"] == "nosniff"

    def test_repeated_header_fields_are_joined(self):
        from fastNegotiation import ContentEncodingMiddleware

        async def endpoint(request):
            return JSONResponse({"values": request.headers.getlist("accept-encoding")})

        app = Starlette(routes=[Route("/", endpoint)])
        app.add_middleware(ContentEncodingMiddleware, encodings=["br", "gzip"])
        client = TestClient(app)

        response = client.get(
            "/", headers=[("Accept-Encoding", "gzip;q=0.5"), ("Accept-Encoding", "br")]
        )
        assert response.json() == {"values": ["br"]}


class TestMalformedHeaderEdgeCases:
    def test_malformed_accept_falls_back_to_default(self):
        from fastNegotiation import ContentTypeMiddleware

        app = Starlette(routes=[Route("/", echo_headers)])
        app.add_middleware(ContentTypeMiddleware)
        client = TestClient(app)

        response = client.get("/", headers={"Accept": "application/json;q=high"})
        assert response.status_code == 200
        assert response.json()["accept"] == "text/html"

    def test_malformed_accept_without_default_is_406(self):
        from fastNegotiation import ContentTypeMiddleware

        app = Starlette(routes=[Route("/", echo_headers)])
        app.add_middleware(ContentTypeMiddleware, use_default=False)
        client = TestClient(app)

        response = client.get("/", headers={"Accept": "json"})
        assert response.status_code == 406

    def test_malformed_encoding_is_empty(self):
        from fastNegotiation import ContentEncodingMiddleware

        app = Starlette(routes=[Route("/", echo_headers)])
        app.add_middleware(ContentEncodingMiddleware)
        client = TestClient(app)

        response = client.get("/", headers={"Accept-Encoding": "gzip;q=2"})
        assert response.json()["accept-encoding"] == ""


class TestExcludePathsEdgeCases:
    def test_excluded_paths_are_untouched(self):
        from fastNegotiation import ContentTypeMiddleware

        app = Starlette(routes=[Route("/{path:path}", echo_headers)])
        app.add_middleware(ContentTypeMiddleware, use_default=False, exclude_paths={"/health"})
        client = TestClient(app)

        response = client.get("/health/live", headers={"Accept": "application/x-unknown"})
        assert response.status_code == 200
        assert response.json()["accept"] == "application/x-unknown"
        assert "x-content-type-options" not in response.headers

        response = client.get("/healthy", headers={"Accept": "application/x-unknown"})
        assert response.status_code == 406


class TestConfigEdgeCases:
    def test_empty_formats_rejected(self):
        from fastNegotiation import ContentTypeConfig, NegotiationConfigError

        with pytest.raises(NegotiationConfigError):
            ContentTypeConfig(formats={})

    def test_empty_charsets_rejected(self):
        from fastNegotiation import ContentTypeMiddleware, NegotiationConfigError

        with pytest.raises(NegotiationConfigError):
            ContentTypeMiddleware(app=None, charsets=[])

    def test_bad_supported_values_rejected(self):
        from fastNegotiation import (
            ContentCharsetMiddleware,
            ContentEncodingMiddleware,
            ContentLanguageMiddleware,
            ContentTypeConfig,
            NegotiationConfigError,
        )

        with pytest.raises(NegotiationConfigError):
            ContentEncodingMiddleware(app=None, encodings=["gzip, br"])
        with pytest.raises(NegotiationConfigError):
            ContentEncodingMiddleware(app=None, encodings="gzip")
        # Values are written back into request headers, so they must be tokens.
        with pytest.raises(NegotiationConfigError):
            ContentLanguageMiddleware(app=None, languages=["中文"])
        with pytest.raises(NegotiationConfigError):
            ContentLanguageMiddleware(app=None, languages=["en", "español"], use_path=True)
        with pytest.raises(NegotiationConfigError):
            ContentCharsetMiddleware(app=None, charsets=["utf 8"])
        with pytest.raises(NegotiationConfigError):
            ContentTypeConfig(formats={"doc": {"mime_types": ["text/plain text"]}})
        with pytest.raises(NegotiationConfigError):
            ContentTypeConfig(formats={"doc": {"mime_types": ["text/plaın"]}})

    def test_token_values_with_punctuation_are_accepted(self):
        from fastNegotiation import ContentCharsetMiddleware, ContentLanguageMiddleware

        assert ContentLanguageMiddleware(app=None, languages=["zh-Hant-TW"]).config.languages == (
            "zh-Hant-TW",
        )
        assert ContentCharsetMiddleware(app=None, charsets=["x-user_defined"]).config.charsets == (
            "x-user_defined",
        )

    def test_valid_language_serves_requests(self):
        from fastNegotiation import ContentLanguageMiddleware

        app = Starlette(routes=[Route("/", echo_headers)])
        app.add_middleware(ContentLanguageMiddleware, languages=["zh-Hant", "en"])
        client = TestClient(app)

        response = client.get("/", headers={"Accept-Language": "zh-hant"})
        assert response.status_code == 200
        assert response.json()["accept-language"] == "zh-Hant"

    def test_config_is_immutable(self):
        from dataclasses import FrozenInstanceError

        from fastNegotiation import ContentLanguageMiddleware

        middleware = ContentLanguageMiddleware(app=None, languages=["en"])
        with pytest.raises(FrozenInstanceError):
            middleware.config.languages = ("es",)

    def test_config_object_and_overrides(self):
        from fastNegotiation import ContentLanguageConfig, ContentLanguageMiddleware

        config = ContentLanguageConfig(languages=["en", "es"], use_path=True)
        middleware = ContentLanguageMiddleware(app=None, config=config, redirect=True)

        assert middleware.config.languages == ("en", "es")
        assert middleware.config.use_path is True
        assert middleware.config.redirect is True
        assert config.redirect is False

    def test_format_mappings_are_accepted(self):
        from fastNegotiation import ContentTypeConfig

        config = ContentTypeConfig(
            formats={"csv": {"mime_types": ["text/csv"], "extensions": ["CSV"]}}
        )
        assert config.formats["csv"].extensions == frozenset({"csv"})
        assert config.mime_types == ("text/csv",)


class TestASGIEdgeCases:
    def test_non_http_scope_passes_through(self):
        from fastNegotiation import ContentTypeMiddleware

        seen = []

        async def app(scope, receive, send):
            seen.append(scope)

        middleware = ContentTypeMiddleware(app, use_default=False)
        scope = {"type": "lifespan"}
        asyncio.run(middleware(scope, None, None))

        assert seen == [scope]

    def test_incoming_scope_is_not_modified(self):
        from fastNegotiation import ContentEncodingMiddleware

        seen = []

        async def app(scope, receive, send):
            seen.append(scope)
            await Response("ok")(scope, receive, send)

        async def receive():
            return {"type": "http.request", "body": b"", "more_body": False}

        async def send(message):
            pass

        scope = {
            "type": "http",
            "method": "GET",
            "path": "/",
            "raw_path": b"/",
            "query_string": b"",
            "headers": [(b"accept-encoding", b"br, gzip")],
        }
        middleware = ContentEncodingMiddleware(app, encodings=["gzip"])
        asyncio.run(middleware(scope, receive, send))

        assert scope["headers"] == [(b"accept-encoding", b"br, gzip")]
        assert seen[0]["headers"] == [(b"accept-encoding", b"gzip")]

    def test_call_next_only_once(self):
        from fastNegotiation import FastNegotiationMiddleware

        class TwiceMiddleware(FastNegotiationMiddleware):
            async def dispatch(self, request, call_next):
                await call_next(request)
                await call_next(request)

        app = Starlette(routes=[Route("/", echo_headers)])
        app.add_middleware(TwiceMiddleware)
        client = TestClient(app)

        with pytest.raises(RuntimeError):
            client.get("/")

    def test_request_helpers_copy_on_write(self):
        from fastNegotiation.messages import header_line, with_header, with_path

        scope = {
            "type": "http",
            "path": "/es/ola",
            "raw_path": b"/es/ola",
            "query_string": b"",
            "headers": [(b"accept", b"text/html"), (b"accept", b"*/*;q=0.1")],
        }
        request = Request(scope)

        assert header_line(request, "Accept") == "text/html, */*;q=0.1"
        assert header_line(request, "Accept-Language") == ""

        rewritten = with_path(with_header(request, "ACCEPT", "application/json"), "/ola")
        assert rewritten.headers.getlist("accept") == ["application/json"]
        assert rewritten.url.path == "/ola"
        assert request.url.path == "/es/ola"
        assert header_line(request, "Accept") == "text/html, */*;q=0.1"
