"""
Tests for error handling and the request context middleware.
Tests custom exceptions, validation message mapping, and error response formatting.
"""

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.exc import IntegrityError
from unittest.mock import Mock
import json

from marketplace.services.error_handler import ErrorHandlerService
from marketplace.middleware import RequestContextMiddleware
from marketplace.utils.exceptions import (
    APIException,
    ValidationError,
    ConflictError,
    PropertyAccessDeniedError,
    UpstreamError
)


class TestErrorHandlerService:
    """Test error handler service functionality."""

    def test_format_error_response(self):
        response = ErrorHandlerService.format_error_response(
            error_code="TEST_ERROR",
            message="Test error message",
            details=[{"field": "test", "message": "Test field error"}],
            request_id="test123"
        )

        assert response["error"]["code"] == "TEST_ERROR"
        assert response["error"]["message"] == "Test error message"
        assert response["error"]["request_id"] == "test123"
        assert response["error"]["details"][0]["field"] == "test"
        assert response["error"]["timestamp"].endswith("Z")

    def test_details_omitted_when_empty(self):
        response = ErrorHandlerService.format_error_response("NOT_FOUND", "Property not found")
        assert "details" not in response["error"]

    def test_handle_api_exception(self):
        response = ErrorHandlerService.handle_api_exception(ValidationError("Test validation error"))

        assert response.status_code == 400
        data = json.loads(response.body)
        assert data["error"]["code"] == "VALIDATION_ERROR"
        assert data["error"]["message"] == "Test validation error"

    def test_conflict_is_reported_as_bad_request(self):
        response = ErrorHandlerService.handle_api_exception(
            ConflictError("Inquiry has already been responded to")
        )
        assert response.status_code == 400

    def test_seller_scope_denial_looks_like_not_found(self):
        response = ErrorHandlerService.handle_api_exception(PropertyAccessDeniedError())

        assert response.status_code == 404
        assert json.loads(response.body)["error"]["message"] == "Property not found or access denied"

    def test_missing_field_message(self):
        error = Mock()
        error.errors.return_value = [
            {"loc": ("body", "title"), "msg": "Field required", "type": "missing", "input": None},
            {"loc": ("body", "price"), "msg": "Field required", "type": "missing", "input": None},
        ]

        response = ErrorHandlerService.handle_validation_error(error)

        assert response.status_code == 400
        data = json.loads(response.body)
        assert data["error"]["message"] == "Missing required field: title"
        assert [d["field"] for d in data["error"]["details"]] == ["title", "price"]

    def test_value_error_uses_validator_message(self):
        error = Mock()
        error.errors.return_value = [{
            "loc": ("body", "message"),
            "msg": "Value error, Message must be at least 10 characters",
            "type": "value_error",
            "ctx": {"error": ValueError("Message must be at least 10 characters")},
        }]

        data = json.loads(ErrorHandlerService.handle_validation_error(error).body)
        assert data["error"]["message"] == "Message must be at least 10 characters"

    def test_other_validation_errors_are_generic(self):
        error = Mock()
        error.errors.return_value = [
            {"loc": ("query", "page"), "msg": "Input should be a valid integer", "type": "int_parsing"}
        ]

        data = json.loads(ErrorHandlerService.handle_validation_error(error).body)
        assert data["error"]["message"] == "Request validation failed"

    def test_database_error_hides_backend_text(self):
        exc = IntegrityError("INSERT INTO users ...", {}, Exception("duplicate key value violates users_email_key"))

        response = ErrorHandlerService.handle_database_error(exc)

        body = response.body.decode()
        assert "users_email_key" not in body
        assert "INSERT INTO" not in body

    def test_unexpected_error_is_generic(self):
        response = ErrorHandlerService.handle_unexpected_error(RuntimeError("secret connection string"))

        assert response.status_code == 500
        assert "secret connection string" not in response.body.decode()

    def test_upstream_error_keeps_generic_message(self):
        exc = UpstreamError()
        assert isinstance(exc, APIException)
        assert exc.status_code == 500
        assert exc.error_code == "UPSTREAM_ERROR"


def _middleware_app(**options) -> FastAPI:
    test_app = FastAPI()
    test_app.add_middleware(RequestContextMiddleware, enable_request_logging=False, **options)

    @test_app.get("/ping")
    async def ping():
        return {"ok": True}

    @test_app.post("/echo")
    async def echo(data: dict):
        return data

    return test_app


class TestRequestContextMiddleware:
    """Request ids, size limits and rate limiting."""

    @pytest.mark.asyncio
    async def test_request_id_and_timing_headers(self):
        transport = ASGITransport(app=_middleware_app())
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/ping")

        assert response.status_code == 200
        assert response.headers["X-Request-ID"]
        assert float(response.headers["X-Processing-Time"]) >= 0

    @pytest.mark.asyncio
    async def test_incoming_request_id_is_kept(self):
        transport = ASGITransport(app=_middleware_app())
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/ping", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_oversized_request_rejected(self):
        transport = ASGITransport(app=_middleware_app(max_request_size=100))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/echo", json={"data": "x" * 500})

        assert response.status_code == 413
        assert response.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"

    @pytest.mark.asyncio
    async def test_rate_limit(self):
        transport = ASGITransport(app=_middleware_app(
            enable_rate_limiting=True, rate_limit_requests=2, rate_limit_window=60
        ))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            first = await client.get("/ping")
            second = await client.get("/ping")
            third = await client.get("/ping")

        assert first.status_code == 200
        assert second.status_code == 200
        assert third.status_code == 429
        assert int(third.headers["Retry-After"]) >= 1
        assert third.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"


class TestServiceInfo:
    """GET /"""

    @pytest.mark.asyncio
    async def test_root(self, client: AsyncClient):
        response = await client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["documentation"]["swagger_ui"] == "/docs"
        assert response.headers["X-Request-ID"]
