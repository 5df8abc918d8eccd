# =============================================================================
# tests/test_body_parser.py - Body Parsing Tests
# =============================================================================
# - JSON bodies up to 300 KiB, URL-encoded bodies up to 10 KiB
# - Oversize bodies rejected with 413, malformed JSON with 400
# - Other content types pass through untouched
# =============================================================================

import json

from app.middleware.body_parser import is_json_media_type, media_type_of, parse_form

JSON_LIMIT = 300 * 1024
FORM_LIMIT = 10 * 1024


def json_body_of_size(size: int) -> bytes:
    """A JSON document of exactly `size` bytes."""
    overhead = len(json.dumps({"data": ""}))
    return json.dumps({"data": "x" * (size - overhead)}).encode()


class TestHelpers:

    def test_media_type_of(self):
        assert media_type_of("Application/JSON; charset=utf-8") == "application/json"
        assert media_type_of("") == ""

    def test_json_suffix(self):
        assert is_json_media_type("application/vnd.api+json")
        assert not is_json_media_type("text/plain")

    def test_parse_form_repeated_keys(self):
        assert parse_form(b"a=1&b=2&b=3&c=") == {"a": "1", "b": ["2", "3"], "c": ""}


class TestJsonBodies:

    def test_parsed_into_state(self, client):
        response = client.post("/echo", json={"item": "lamp", "qty": 2})

        assert response.status_code == 200
        assert response.json()["body"] == {"item": "lamp", "qty": 2}

    def test_at_limit_accepted(self, client):
        body = json_body_of_size(JSON_LIMIT)
        assert len(body) == JSON_LIMIT

        response = client.post("/echo", content=body, headers={"Content-Type": "application/json"})

        assert response.status_code == 200

    def test_over_limit_rejected(self, client):
        body = json_body_of_size(JSON_LIMIT + 1)

        response = client.post("/echo", content=body, headers={"Content-Type": "application/json"})

        assert response.status_code == 413
        assert response.json()["code"] == "PAYLOAD_TOO_LARGE"
        assert response.json()["details"]["limit_bytes"] == JSON_LIMIT

    def test_over_limit_without_content_length(self, client):
        def chunks():
            for _ in range(4):
                yield b"x" * (100 * 1024)

        response = client.post("/echo", content=chunks(), headers={"Content-Type": "application/json"})

        assert response.status_code == 413

    def test_malformed(self, client):
        response = client.post("/echo", content=b"{not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json()["code"] == "MALFORMED_BODY"

    def test_empty_body(self, client):
        response = client.post("/echo", content=b"", headers={"Content-Type": "application/json"})

        assert response.json()["body"] == {}

    def test_limit_from_settings(self, make_client, make_settings):
        client = make_client(make_settings(JSON_BODY_LIMIT_KB=1))

        response = client.post("/echo", json={"data": "x" * 2048})

        assert response.status_code == 413


class TestFormBodies:

    def test_parsed_into_state(self, client):
        response = client.post("/echo", data={"email": "a@example.com", "remember": "on"})

        assert response.json()["body"] == {"email": "a@example.com", "remember": "on"}

    def test_over_limit_rejected(self, client):
        response = client.post("/echo", data={"a": "x" * FORM_LIMIT})

        assert response.status_code == 413
        assert response.json()["details"]["limit_bytes"] == FORM_LIMIT

    def test_under_limit_accepted(self, client):
        response = client.post("/echo", data={"a": "x" * (FORM_LIMIT - 10)})

        assert response.status_code == 200


class TestOtherContentTypes:

    def test_passed_through(self, client):
        response = client.post("/echo", content=b"x" * (JSON_LIMIT * 2), headers={"Content-Type": "text/plain"})

        assert response.status_code == 200
        assert response.json()["body"] == {}

    def test_malformed_rejected_on_any_path(self, client):
        response = client.post("/u/orders", content=b"[", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json()["code"] == "MALFORMED_BODY"
