"""Application exception hierarchy.

Every error the API reports on purpose is an ``AppError``. The global
handlers in ``giftcard_api.api.middleware.error_handler`` turn these into the
``{success: false, message, errors?}`` envelope with the right status code.
"""

from typing import Any


class AppError(Exception):
    """Base exception for all expected API errors.

    Attributes:
        message: Human-readable message returned to the client
        status_code: HTTP status code to respond with
        errors: Optional field-level or item-level details
        extra: Additional top-level keys merged into the error body
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        errors: Any = None,
        extra: dict[str, Any] | None = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors
        self.extra = extra or {}
        super().__init__(message)


class BadRequestError(AppError):
    """Malformed or semantically invalid input (400)."""

    status_code = 400


class BusinessRuleError(BadRequestError):
    """A domain rule forbids the operation (400)."""


class InsufficientBalanceError(BusinessRuleError):
    """Redemption amount exceeds the card's current balance."""


class CardExpiredError(BusinessRuleError):
    """The gift card (template or purchased instance) is past its expiry."""


class CardNotActiveError(BusinessRuleError):
    """The purchased card is fully redeemed, expired or cancelled."""


class GiftCardLimitReachedError(BusinessRuleError):
    """The merchant already has the maximum number of active gift cards."""


class AuthenticationError(AppError):
    """Missing, invalid or expired credentials (401)."""

    status_code = 401


class PermissionDeniedError(AppError):
    """Authenticated but not allowed to perform the action (403)."""

    status_code = 403

    def __init__(
        self,
        message: str,
        *,
        requires_action: str | None = None,
        profile_status: str | None = None,
    ):
        extra: dict[str, Any] = {}
        if requires_action:
            extra["requiresAction"] = requires_action
        if profile_status:
            extra["profileStatus"] = profile_status
        super().__init__(message, extra=extra)


class NotFoundError(AppError):
    """Requested resource does not exist (404)."""

    status_code = 404


class ConflictError(AppError):
    """Resource already exists (409)."""

    status_code = 409
