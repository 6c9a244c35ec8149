"""Tests for logging, Sentry filtering and error handling."""

import pytest
import structlog
from fastapi import APIRouter
from httpx import ASGITransport, AsyncClient

from posledger.core.errors import (
    AlreadyClosedError,
    AlreadyReceivedError,
    AlreadySettledError,
    AppError,
    ConflictError,
    ErrorDetail,
    InternalError,
    NoOpenShiftError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from posledger.core.logging import bind_request_context, get_request_id, set_request_id
from posledger.core.sentry import filter_sensitive_data
from posledger.main import create_app


class TestErrorClasses:
    """Test custom exception classes."""

    def test_app_error_to_response_omits_empty_details(self):
        exc = AppError(code="SOMETHING", message="Went wrong", status_code=400)

        response = exc.to_response()
        assert isinstance(response, ErrorDetail)
        assert response.details is None

    def test_validation_error_creates_correct_response(self):
        exc = ValidationError("Invalid amount", details={"field": "amount"})

        assert exc.code == "VALIDATION_ERROR"
        assert exc.status_code == 422
        assert exc.to_response().details == {"field": "amount"}

    def test_not_found_error_includes_resource_context(self):
        exc = NotFoundError(resource="Receivable", resource_id="123")

        assert exc.code == "NOT_FOUND"
        assert exc.status_code == 404
        assert exc.details == {"resource": "Receivable", "resource_id": "123"}

    @pytest.mark.parametrize(
        "exc,code",
        [
            (ConflictError("Store already has an open shift"), "CONFLICT"),
            (AlreadySettledError("Payable", "p-1"), "ALREADY_SETTLED"),
            (AlreadyClosedError("s-1"), "ALREADY_CLOSED"),
            (AlreadyReceivedError("po-1"), "ALREADY_RECEIVED"),
            (NoOpenShiftError("store-1"), "NO_OPEN_SHIFT"),
        ],
    )
    def test_state_conflicts_are_409(self, exc, code):
        assert exc.status_code == 409
        assert exc.code == code

    def test_unauthorized_and_internal(self):
        assert UnauthorizedError().status_code == 401
        internal = InternalError()
        assert internal.status_code == 500
        assert internal.code == "INTERNAL_ERROR"


class TestRequestIDContext:
    """Test request ID injection."""

    def test_set_and_get_request_id(self):
        set_request_id("test-request-123")

        assert get_request_id() == "test-request-123"

    def test_request_context_replaces_previous_tenant(self):
        bind_request_context("req-1", store_id="store-1", actor="cashier-1")
        bind_request_context("req-2")

        bound = structlog.contextvars.get_contextvars()
        assert bound == {"request_id": "req-2"}
        assert get_request_id() == "req-2"


class TestSentryFilter:
    def test_sql_extras_are_removed(self):
        event = {
            "extra": {
                "sql": "UPDATE receivables SET outstanding_balance = 0",
                "cause": "sqlalchemy.exc.IntegrityError",
                "store_id": "s-1",
            }
        }

        filtered = filter_sensitive_data(event, {})

        assert set(filtered["extra"]) == {"store_id"}
        assert filtered["extra"]["store_id"] == "s-1"

    def test_sql_breadcrumbs_are_removed(self):
        event = {
            "breadcrumbs": {
                "values": [
                    {"category": "query", "message": "SELECT * FROM payables"},
                    {"category": "http", "message": "POST /financials/payables"},
                ]
            }
        }

        filtered = filter_sensitive_data(event, {})

        assert [b["category"] for b in filtered["breadcrumbs"]["values"]] == ["http"]


class TestErrorHandling:
    """Test global error handlers."""

    @pytest.fixture
    def app(self):
        app = create_app()
        router = APIRouter()

        @router.get("/boom")
        async def boom():
            raise RuntimeError("connection string postgres://secret")

        @router.get("/context")
        async def context():
            return structlog.contextvars.get_contextvars()

        @router.get("/domain")
        async def domain():
            raise AlreadyClosedError("s-1")

        app.include_router(router)
        return app

    async def test_domain_error_body(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/domain")

        assert response.status_code == 409
        assert response.json() == {
            "code": "ALREADY_CLOSED",
            "message": "Shift s-1 is already closed",
            "details": {"resource": "Shift", "resource_id": "s-1"},
        }

    async def test_unexpected_error_is_generic_500(self, app):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/boom")

        assert response.status_code == 500
        assert response.json() == {"code": "INTERNAL_ERROR", "message": "Internal error"}
        assert "secret" not in response.text

    async def test_request_id_header_in_response(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/domain", headers={"X-Request-ID": "external-123"})

        assert response.headers.get("X-Request-ID") == "external-123"

    async def test_request_id_generated_when_absent(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/domain")

        assert len(response.headers["X-Request-ID"]) > 0

    async def test_tenant_headers_are_bound_to_request_logs(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get(
                "/context",
                headers={"X-Request-ID": "req-9", "X-Store-ID": "store-9", "X-Actor": "cashier-9"},
            )

        assert response.json() == {
            "request_id": "req-9",
            "store_id": "store-9",
            "actor": "cashier-9",
        }
