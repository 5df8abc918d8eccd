# =============================================================================
# tests/test_pipeline.py - Request Pipeline Tests
# =============================================================================
# End-to-end checks through the full middleware chain:
# - Middleware order
# - Catch-all fallback (400 + rendered error page)
# - Security headers and CORS
# - Static asset short-circuit
# - Request timestamp
# =============================================================================

import time

import pytest
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.middleware import (
    AccessLogMiddleware,
    BodyParserMiddleware,
    CookieParserMiddleware,
    InjectionSanitizeMiddleware,
    RateLimitMiddleware,
    RequestTimestampMiddleware,
    SecurityHeadersMiddleware,
    SlowDownMiddleware,
    StaticAssetMiddleware,
    UnhandledErrorMiddleware,
    XSSSanitizeMiddleware,
)
from app.pipeline import build_middleware
from app.routing import exact_path


# =============================================================================
# Ordering
# =============================================================================

class TestMiddlewareOrder:
    """The chain is defined once, in request order."""

    def test_order(self, settings):
        classes = [entry.cls for entry in build_middleware(settings)]

        assert classes == [
            StaticAssetMiddleware,
            AccessLogMiddleware,
            InjectionSanitizeMiddleware,
            XSSSanitizeMiddleware,
            CORSMiddleware,
            SecurityHeadersMiddleware,
            UnhandledErrorMiddleware,
            RateLimitMiddleware,
            SlowDownMiddleware,
            BodyParserMiddleware,
            CookieParserMiddleware,
            SessionMiddleware,
            AuthenticationMiddleware,
            RequestTimestampMiddleware,
        ]

    def test_session_cookie_settings(self, make_settings):
        settings = make_settings(SESSION_MAX_AGE_DAYS=90, SESSION_COOKIE_NAME="sid")
        session = next(m for m in build_middleware(settings) if m.cls is SessionMiddleware)

        assert session.kwargs["max_age"] == 90 * 24 * 60 * 60
        assert session.kwargs["session_cookie"] == "sid"
        assert session.kwargs["secret_key"] == settings.SESSION_SECRET_KEY


# =============================================================================
# Fallback
# =============================================================================

class TestFallback:
    """Every unmatched request gets 400 and the error page."""

    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "PATCH", "DELETE"])
    def test_any_method_unknown_path(self, client, method):
        response = client.request(method, "/no/such/page")

        assert response.status_code == 400
        assert "text/html" in response.headers["content-type"]
        assert "cannot find the path: /no/such/page on this server" in response.text

    def test_query_string_in_message(self, client):
        response = client.get("/shop/items?page=2")

        assert response.status_code == 400
        assert "/shop/items?page=2" in response.text

    def test_message_shows_query_before_sanitizing(self, client):
        response = client.get("/foo?a.b=1")

        assert response.status_code == 400
        assert "cannot find the path: /foo?a.b=1 on this server" in response.text

    def test_root_path(self, client):
        response = client.get("/")

        assert response.status_code == 400
        assert "cannot find the path: / on this server" in response.text

    def test_wrong_method_on_known_path(self, client):
        response = client.post("/health")

        assert response.status_code == 400
        assert "cannot find the path: /health on this server" in response.text


# =============================================================================
# Security Headers & CORS
# =============================================================================

class TestSecurityHeaders:
    """Security headers are on every response the pipeline produces."""

    @pytest.mark.parametrize("path", ["/missing", "/health", "/u/profile"])
    def test_headers_present(self, client, path):
        response = client.get(path)

        assert response.headers["x-frame-options"] == "DENY"
        assert response.headers["referrer-policy"] == "no-referrer"
        assert response.headers["x-xss-protection"] == "0"
        assert "default-src 'self'" in response.headers["content-security-policy"]
        assert "https://www.paypal.com" in response.headers["content-security-policy"]
        assert response.headers["x-content-type-options"] == "nosniff"
        assert "cross-origin-embedder-policy" not in response.headers

    def test_headers_on_unexpected_error(self, client):
        async def broken(request):
            raise RuntimeError("handler bug")

        client.app.state.route_table.add(exact_path("/broken"), broken)

        response = client.get("/broken")

        assert response.status_code == 500
        assert response.json()["code"] == "INTERNAL_ERROR"
        assert response.headers["x-frame-options"] == "DENY"
        assert "default-src 'self'" in response.headers["content-security-policy"]

    def test_cors_any_origin(self, client):
        response = client.get("/missing", headers={"Origin": "https://example.com"})

        assert response.headers["access-control-allow-origin"] == "*"

    def test_cors_preflight(self, client):
        response = client.options(
            "/u/profile",
            headers={
                "Origin": "https://example.com",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert "POST" in response.headers["access-control-allow-methods"]

    def test_cors_restricted_origins(self, make_client, make_settings):
        client = make_client(make_settings(CORS_ORIGINS="https://shop.example.com"))

        allowed = client.get("/missing", headers={"Origin": "https://shop.example.com"})
        denied = client.get("/missing", headers={"Origin": "https://evil.example.com"})

        assert allowed.headers["access-control-allow-origin"] == "https://shop.example.com"
        assert "access-control-allow-origin" not in denied.headers


# =============================================================================
# Static Assets
# =============================================================================

class TestStaticAssets:
    """Files under STATIC_DIR short-circuit the chain."""

    def test_serves_file(self, client):
        response = client.get("/robots.txt")

        assert response.status_code == 200
        assert "User-agent" in response.text

    def test_serves_nested_file(self, client):
        response = client.get("/css/style.css")

        assert response.status_code == 200
        assert "text/css" in response.headers["content-type"]

    def test_bypasses_rest_of_chain(self, client):
        response = client.get("/robots.txt")

        assert "x-frame-options" not in response.headers

    def test_post_to_static_file_falls_through(self, client):
        response = client.post("/robots.txt")

        assert response.status_code == 400

    def test_directory_falls_through(self, client):
        response = client.get("/css")

        assert response.status_code == 400

    def test_traversal_falls_through(self, client):
        response = client.get("/../config.py")

        assert response.status_code == 400

    def test_custom_static_dir(self, make_client, make_settings, tmp_path):
        (tmp_path / "hello.txt").write_text("hi there")
        client = make_client(make_settings(STATIC_DIR=tmp_path))

        assert client.get("/hello.txt").text == "hi there"
        assert client.get("/robots.txt").status_code == 400

    def test_missing_static_dir(self, make_client, make_settings, tmp_path):
        client = make_client(make_settings(STATIC_DIR=tmp_path / "nope"))

        assert client.get("/robots.txt").status_code == 400


# =============================================================================
# Request Timestamp
# =============================================================================

class TestRequestTimestamp:

    def test_received_at(self, client):
        before = int(time.time() * 1000)
        response = client.get("/echo")
        after = int(time.time() * 1000)

        assert response.status_code == 200
        assert before <= response.json()["received_at"] <= after
