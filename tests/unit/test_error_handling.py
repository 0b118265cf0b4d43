"""Unit tests for error handling middleware and PII filtering."""

import json
from unittest.mock import Mock

import pytest
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from giftcard_api.api.middleware.error_handler import (
    handle_app_error,
    handle_generic_error,
    handle_http_exception,
    handle_integrity_error,
    handle_validation_error,
)
from giftcard_api.api.middleware.logging import filter_pii
from giftcard_api.core.exceptions import (
    AuthenticationError,
    InsufficientBalanceError,
    NotFoundError,
    PermissionDeniedError,
)


def _request(path: str = "/api/test", method: str = "GET") -> Request:
    request = Mock(spec=Request)
    request.url.path = path
    request.method = method
    return request


def _body(response: JSONResponse) -> dict:
    return json.loads(response.body.decode())


class TestAppErrorHandler:
    """Test domain exception handling."""

    @pytest.mark.asyncio
    async def test_not_found(self):
        response = await handle_app_error(_request(), NotFoundError("Gift card not found"))

        assert response.status_code == 404
        assert _body(response) == {"success": False, "message": "Gift card not found"}

    @pytest.mark.asyncio
    async def test_authentication_error(self):
        response = await handle_app_error(_request(), AuthenticationError("Invalid or expired token"))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_permission_denied_carries_required_action(self):
        exc = PermissionDeniedError(
            "Please complete your merchant profile",
            requires_action="COMPLETE_PROFILE",
            profile_status="INCOMPLETE",
        )
        response = await handle_app_error(_request(), exc)
        body = _body(response)

        assert response.status_code == 403
        assert body["requiresAction"] == "COMPLETE_PROFILE"
        assert body["profileStatus"] == "INCOMPLETE"

    @pytest.mark.asyncio
    async def test_insufficient_balance_is_bad_request(self):
        exc = InsufficientBalanceError("Insufficient balance", extra={"availableBalance": "10.00"})
        response = await handle_app_error(_request("/api/purchases/redeem", "POST"), exc)

        assert response.status_code == 400
        assert _body(response)["availableBalance"] == "10.00"


class TestHttpExceptionHandler:
    @pytest.mark.asyncio
    async def test_wraps_detail_in_envelope(self):
        response = await handle_http_exception(_request(), StarletteHTTPException(405, "Method Not Allowed"))

        assert response.status_code == 405
        assert _body(response) == {"success": False, "message": "Method Not Allowed"}


class TestValidationErrorHandler:
    """Test validation error handling."""

    @pytest.mark.asyncio
    async def test_handle_validation_error(self):
        exc = RequestValidationError(
            [
                {"loc": ("body", "email"), "msg": "value is not a valid email address", "type": "value_error"},
                {"loc": ("body", "password"), "msg": "Value error, Password too weak", "type": "value_error"},
            ]
        )

        response = await handle_validation_error(_request("/api/auth/login", "POST"), exc)
        body = _body(response)

        assert response.status_code == 400
        assert body["success"] is False
        assert body["message"] == "Validation error"
        assert body["errors"] == [
            {"field": "email", "message": "value is not a valid email address"},
            {"field": "password", "message": "Password too weak"},
        ]

    @pytest.mark.asyncio
    async def test_model_level_error_reports_body(self):
        exc = RequestValidationError([{"loc": ("body",), "msg": "Value error, Passwords do not match", "type": "value_error"}])
        body = _body(await handle_validation_error(_request(), exc))
        assert body["errors"] == [{"field": "body", "message": "Passwords do not match"}]


class TestIntegrityErrorHandler:
    """Test database integrity error handling."""

    @pytest.mark.asyncio
    async def test_unique_violation_returns_409(self):
        exc = IntegrityError("INSERT ...", {}, Exception("UNIQUE constraint failed: users.email"))
        response = await handle_integrity_error(_request("/api/auth/merchant/register", "POST"), exc)

        assert response.status_code == 409
        assert _body(response)["message"] == "Resource already exists"

    @pytest.mark.asyncio
    async def test_other_integrity_error_returns_500(self):
        exc = IntegrityError("INSERT ...", {}, Exception("CHECK constraint failed: ck_redemptions_amount_positive"))
        response = await handle_integrity_error(_request(), exc)

        assert response.status_code == 500
        assert _body(response)["message"] == "Database operation failed"


class TestGenericErrorHandler:
    """Test generic exception handling."""

    @pytest.mark.asyncio
    async def test_handle_generic_error(self):
        response = await handle_generic_error(_request(), RuntimeError("boom"))
        body = _body(response)

        assert response.status_code == 500
        assert body["success"] is False
        assert body["message"] == "Internal server error"
        # Outside production the exception is described for debugging
        assert body["error"]["type"] == "RuntimeError"
        assert body["error"]["detail"] == "boom"

    @pytest.mark.asyncio
    async def test_generic_error_hides_details_in_production(self, monkeypatch):
        from giftcard_api.config import settings

        monkeypatch.setattr(settings, "app_env", "production")
        body = _body(await handle_generic_error(_request(), RuntimeError("secret detail")))

        assert "error" not in body
        assert "secret detail" not in json.dumps(body)


class TestPIIFiltering:
    """Test PII filtering in logs."""

    def test_filter_email(self):
        assert filter_pii("Gift card sent to priya.sharma@example.com") == "Gift card sent to [EMAIL]"

    def test_filter_phone_numbers(self):
        assert "[PHONE]" in filter_pii("Customer phone 9876543210")
        assert "+91" not in filter_pii("Call +91 98765 43210 for help")

    def test_filter_card_number(self):
        filtered = filter_pii("Card 4111 1111 1111 1111 used")
        assert "4111" not in filtered
        assert "[CARD]" in filtered

    def test_amounts_and_codes_untouched(self):
        text = "Redeemed 250.00 on THNX-DIGITAL-LX2K9Q-AB12CD34EF56AB78"
        assert filter_pii(text) == text

    def test_empty_text(self):
        assert filter_pii("") == ""
