"""Tests for X-Request-ID middleware.

Tests cover:
- Request ID generation when missing
- Request ID preservation when valid
- Request ID normalization (UUID lowercase)
- Request ID replacement when invalid or too long
- Request ID in error response body
"""

from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from folio.middleware.request_id import resolve_request_id


class TestResolveRequestId:
    def test_missing_generates_uuid(self):
        UUID(resolve_request_id(None))

    def test_uuid_lowercased(self):
        value = "A1B2C3D4-E5F6-47A8-99B0-C1D2E3F4A5B6"

        assert resolve_request_id(value) == value.lower()

    @pytest.mark.parametrize("value", ["req.1", "req_1", "req-1", "a" * 128])
    def test_valid_ids_kept(self, value: str):
        assert resolve_request_id(value) == value

    @pytest.mark.parametrize("value", ["has space", "semi;colon", "a" * 129, ""])
    def test_invalid_ids_replaced(self, value: str):
        result = resolve_request_id(value)

        assert result != value
        UUID(result)


class TestRequestIdMiddleware:
    """Tests for the middleware mounted on the app."""

    def test_request_id_generated_when_missing(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        UUID(response.headers["X-Request-ID"])

    def test_request_id_preserved_when_valid(self, client: TestClient):
        response = client.get("/health", headers={"X-Request-ID": "reader-123"})

        assert response.headers["X-Request-ID"] == "reader-123"

    def test_request_id_replaced_when_invalid(self, client: TestClient):
        response = client.get("/health", headers={"X-Request-ID": "bad id!"})

        assert response.headers["X-Request-ID"] != "bad id!"
        UUID(response.headers["X-Request-ID"])

    def test_error_response_includes_request_id_in_body(self, client: TestClient):
        response = client.get("/highlights/missing", headers={"X-Request-ID": "trace-9"})

        assert response.status_code == 404
        assert response.headers["X-Request-ID"] == "trace-9"
        assert response.json()["error"]["request_id"] == "trace-9"

    def test_validation_error_carries_request_id(self, client: TestClient):
        response = client.post(
            "/articles/a1/highlights",
            json={"text": "x", "color": "teal"},
            headers={"X-Request-ID": "trace-10"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["request_id"] == "trace-10"
