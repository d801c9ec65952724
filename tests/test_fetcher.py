"""
Unit tests for the content fetcher: form building, response validation,
and the aiohttp transport against a local test server.
"""

import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from conftest import FakeTransport, ok
from handy_custom.exceptions import ApplicationError, MalformedResponseError, TransportError
from handy_custom.fetcher import AiohttpTransport, ContentFetcher, parse_filter_response, server_message
from handy_custom.models import ContextBoundary, RequestContext


def _context(**overrides):
    values = dict(
        content_type="products",
        generation=1,
        filters={"grade": "premium", "market_segment": ""},
        boundary=ContextBoundary(context_category="shrimp", context_subcategory="breaded"),
        display_mode="list",
        last_changed="grade",
    )
    values.update(overrides)
    return RequestContext(**values)


class TestFormData:
    """Tests for the admin-ajax request body"""

    def test_products_form(self):
        form = _context().form_data("n0nce")
        assert form == {
            "action": "filter_products",
            "nonce": "n0nce",
            "display": "list",
            "grade": "premium",
            "context_category": "shrimp",
            "context_subcategory": "breaded",
        }

    def test_recipes_form_has_no_display(self):
        form = _context(content_type="recipes", filters={"category": "soups"},
                        boundary=ContextBoundary(), display_mode=None).form_data("")
        assert form == {
            "action": "filter_recipes",
            "nonce": "",
            "category": "soups",
            "context_category": "",
            "context_subcategory": "",
        }

    def test_products_display_defaults_to_categories(self):
        assert _context(display_mode=None).form_data("")["display"] == "categories"

    def test_unknown_content_type_rejected(self):
        with pytest.raises(ValueError):
            _context(content_type="posts")

    def test_context_is_immutable(self):
        context = _context()
        with pytest.raises(Exception):
            context.last_changed = "market_segment"


class TestParseFilterResponse:
    """Tests for response classification"""

    def test_success(self):
        response = parse_filter_response("filter_recipes", ok("<div>x</div>", {"category": [{"slug": "a", "name": "A"}]}))
        assert response.data.html == "<div>x</div>"
        assert response.data.updated_filter_options["category"][0].slug == "a"

    def test_success_without_options(self):
        response = parse_filter_response("filter_recipes", ok("<div>x</div>"))
        assert response.data.updated_filter_options is None

    def test_application_error_with_message(self):
        with pytest.raises(ApplicationError) as exc:
            parse_filter_response("filter_recipes", {"success": False, "data": {"message": "Limit reached"}})
        assert exc.value.server_message == "Limit reached"

    def test_application_error_with_bare_string(self):
        with pytest.raises(ApplicationError) as exc:
            parse_filter_response("filter_recipes", {"success": False, "data": "Security check failed"})
        assert exc.value.server_message == "Security check failed"

    def test_application_error_without_message(self):
        with pytest.raises(ApplicationError) as exc:
            parse_filter_response("filter_recipes", {"success": False})
        assert exc.value.server_message is None

    @pytest.mark.parametrize("payload", [
        {"success": True},
        {"success": True, "data": {}},
        {"success": True, "data": {"html": ""}},
        {"success": True, "data": {"html": 5}},
        ["not", "an", "object"],
    ])
    def test_malformed(self, payload):
        with pytest.raises(MalformedResponseError):
            parse_filter_response("filter_recipes", payload)

    def test_malformed_options(self):
        with pytest.raises(MalformedResponseError):
            parse_filter_response("filter_recipes", ok("<div>x</div>", {"category": [{"slug": "a"}]}))

    def test_php_empty_array_options(self):
        response = parse_filter_response("filter_recipes", ok("<div>x</div>", []))
        assert response.data.updated_filter_options is None

    def test_php_object_term_list(self):
        options = {"category": {"2": {"slug": "b", "name": "B"}, "5": {"slug": "c", "name": "C"}}}
        response = parse_filter_response("filter_recipes", ok("<div>x</div>", options))
        assert [t.slug for t in response.data.updated_filter_options["category"]] == ["b", "c"]

    def test_whitespace_html_is_accepted(self):
        response = parse_filter_response("filter_recipes", ok("  \n"))
        assert response.data.html == "  \n"

    def test_server_message_ignores_blank(self):
        assert server_message({"success": False, "data": {"message": "  "}}) is None


class TestContentFetcher:
    """Tests for ContentFetcher with a fake transport"""

    @pytest.mark.asyncio
    async def test_fetch_posts_form(self, settings):
        transport = FakeTransport(ok())
        fetcher = ContentFetcher("https://example.com/wp-admin/admin-ajax.php", "abc",
                                 transport=transport, settings=settings)

        response = await fetcher.fetch(_context())

        assert response.success is True
        call = transport.calls[0]
        assert call["url"] == "https://example.com/wp-admin/admin-ajax.php"
        assert call["timeout"] == 30.0
        assert call["data"]["nonce"] == "abc"
        assert call["data"]["action"] == "filter_products"

    @pytest.mark.asyncio
    async def test_transport_errors_propagate(self, settings):
        transport = FakeTransport(TransportError("down"))
        fetcher = ContentFetcher("https://example.com/x", transport=transport, settings=settings)
        with pytest.raises(TransportError):
            await fetcher.fetch(_context())
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_close(self, settings):
        transport = FakeTransport()
        fetcher = ContentFetcher("https://example.com/x", transport=transport, settings=settings)
        await fetcher.close()
        assert transport.closed


class TestAiohttpTransport:
    """Tests for the real transport against a local aiohttp server"""

    @pytest.mark.asyncio
    async def test_round_trip(self):
        received = {}

        async def handler(request):
            received.update(await request.post())
            received["xhr"] = request.headers.get("X-Requested-With")
            return web.json_response(ok("<div>ok</div>"))

        app = web.Application()
        app.router.add_post("/wp-admin/admin-ajax.php", handler)
        server = test_utils.TestServer(app)
        await server.start_server()
        transport = AiohttpTransport(user_agent="test-agent")
        try:
            payload = await transport(str(server.make_url("/wp-admin/admin-ajax.php")),
                                      {"action": "filter_recipes", "category": "soups"}, 5)
        finally:
            await transport.close()
            await server.close()

        assert payload["data"]["html"] == "<div>ok</div>"
        assert received["action"] == "filter_recipes"
        assert received["category"] == "soups"
        assert received["xhr"] == "XMLHttpRequest"

    @pytest.mark.asyncio
    async def test_http_error(self):
        async def handler(request):
            return web.Response(status=500, text="fatal")

        app = web.Application()
        app.router.add_post("/ajax", handler)
        server = test_utils.TestServer(app)
        await server.start_server()
        transport = AiohttpTransport()
        try:
            with pytest.raises(TransportError) as exc:
                await transport(str(server.make_url("/ajax")), {}, 5)
        finally:
            await transport.close()
            await server.close()
        assert exc.value.status_code == 500

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        async def handler(request):
            return web.Response(text="<html>Fatal error</html>")

        app = web.Application()
        app.router.add_post("/ajax", handler)
        server = test_utils.TestServer(app)
        await server.start_server()
        transport = AiohttpTransport()
        try:
            with pytest.raises(TransportError):
                await transport(str(server.make_url("/ajax")), {}, 5)
        finally:
            await transport.close()
            await server.close()

    @pytest.mark.asyncio
    async def test_undecodable_body(self):
        async def handler(request):
            return web.Response(body=b'{"success": true, "data": {"html": "\xff\xfe"}}',
                                content_type="application/json", charset="utf-8")

        app = web.Application()
        app.router.add_post("/ajax", handler)
        server = test_utils.TestServer(app)
        await server.start_server()
        transport = AiohttpTransport()
        try:
            with pytest.raises(TransportError) as exc:
                await transport(str(server.make_url("/ajax")), {}, 5)
        finally:
            await transport.close()
            await server.close()
        assert exc.value.status_code == 200
        assert exc.value.response_body.startswith('{"success": true')

    @pytest.mark.asyncio
    async def test_timeout(self):
        async def handler(request):
            await asyncio.sleep(0.5)
            return web.json_response(ok())

        app = web.Application()
        app.router.add_post("/ajax", handler)
        server = test_utils.TestServer(app)
        await server.start_server()
        transport = AiohttpTransport()
        try:
            with pytest.raises(TransportError) as exc:
                await transport(str(server.make_url("/ajax")), {}, 0.1)
        finally:
            await transport.close()
            await server.close()
        assert exc.value.timed_out is True
