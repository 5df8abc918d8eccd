# =============================================================================
# tests/test_sanitize.py - Input Sanitization Tests
# =============================================================================
# Unit tests for the sanitizer functions, plus request-level tests showing
# they apply to the query string and to parsed bodies.
# =============================================================================

from app.middleware.sanitize import (
    apply_sanitizers,
    escape_markup,
    is_operator_key,
    sanitize_query_string,
    strip_operator_keys,
)


# =============================================================================
# Sanitizer Functions
# =============================================================================

class TestStripOperatorKeys:

    def test_operator_key_detection(self):
        assert is_operator_key("$where")
        assert is_operator_key("profile.email")
        assert not is_operator_key("email")
        assert not is_operator_key("price$")

    def test_bracket_segments(self):
        assert is_operator_key("user[$ne]")
        assert is_operator_key("filter[price][$gt]")
        assert is_operator_key("user[profile.email]")
        assert not is_operator_key("user[name]")
        assert not is_operator_key("tags[]")

    def test_removes_nested_keys(self):
        value = {
            "name": "widget",
            "$gt": 1,
            "a.b": 2,
            "filters": {"$ne": None, "color": "red"},
            "tags": [{"$in": ["x"]}, "plain"],
        }

        assert strip_operator_keys(value) == {
            "name": "widget",
            "filters": {"color": "red"},
            "tags": [{}, "plain"],
        }

    def test_scalars_untouched(self):
        assert strip_operator_keys("$literal") == "$literal"
        assert strip_operator_keys(42) == 42


class TestEscapeMarkup:

    def test_escapes_values(self):
        value = {"comment": "<script>alert(1)</script>", "list": ["<b>", 3]}

        assert escape_markup(value) == {
            "comment": "&lt;script>alert(1)&lt;/script>",
            "list": ["&lt;b>", 3],
        }

    def test_keys_untouched(self):
        assert escape_markup({"<k>": "v"}) == {"<k>": "v"}

    def test_apply_in_order(self):
        value = {"$x": "<a>", "y": "<b>"}

        assert apply_sanitizers(value, [strip_operator_keys, escape_markup]) == {"y": "&lt;b>"}


class TestQueryString:

    def test_unchanged_query_is_returned_as_is(self):
        raw = b"q=red+shoes&page=2"

        assert sanitize_query_string(raw, strip_operator_keys) is raw

    def test_drops_operator_params(self):
        cleaned = sanitize_query_string(b"name=a&%24where=1&a.b=2", strip_operator_keys)

        assert cleaned == b"name=a"

    def test_empty(self):
        assert sanitize_query_string(b"", escape_markup) == b""


# =============================================================================
# Through the Pipeline
# =============================================================================

class TestSanitizationInPipeline:

    def test_query_operator_keys_removed(self, client):
        response = client.get("/echo", params={"name": "a", "$where": "1", "a.b": "2"})

        assert response.json()["query"] == {"name": "a"}

    def test_query_bracket_operator_removed(self, client):
        response = client.get("/echo", params={"user[$ne]": "x", "name": "a"})

        assert response.json()["query"] == {"name": "a"}

    def test_query_markup_escaped(self, client):
        response = client.get("/echo", params={"q": "<img src=x>"})

        assert response.json()["query"] == {"q": "&lt;img src=x>"}

    def test_json_body_sanitized(self, client):
        response = client.post(
            "/echo",
            json={"$gt": 1, "name": "<script>", "nested": {"a.b": 1, "ok": "x"}},
        )

        assert response.json()["body"] == {"name": "&lt;script>", "nested": {"ok": "x"}}

    def test_form_body_sanitized(self, client):
        response = client.post("/echo", data={"name": "<i>", "$x": "1"})

        assert response.json()["body"] == {"name": "&lt;i>"}

    def test_form_bracket_operator_removed(self, client):
        response = client.post("/echo", data={"user[$ne]": "x", "name": "a"})

        assert response.json()["body"] == {"name": "a"}

    def test_error_page_escapes_path(self, client):
        response = client.get("/<script>")

        assert response.status_code == 400
        assert "<script>" not in response.text
