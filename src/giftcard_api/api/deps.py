"""FastAPI dependency injection for authentication, services and the job queue."""

from typing import Annotated, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.core.exceptions import AuthenticationError, PermissionDeniedError
from giftcard_api.core.security import TokenClaims, get_claims_from_token
from giftcard_api.db.session import get_db
from giftcard_api.models.enums import ProfileStatus, UserRole
from giftcard_api.services.activity_log import ActivityLogger, ActivityLogService
from giftcard_api.services.auth import AuthService
from giftcard_api.services.gift_card import GiftCardService
from giftcard_api.services.merchant import MerchantService
from giftcard_api.services.notification import NotificationService
from giftcard_api.services.purchase import PurchaseService
from giftcard_api.worker.queue import JobQueue

# Bearer token scheme; missing credentials are reported by get_current_claims
security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_job_queue(request: Request) -> JobQueue:
    """Queue opened in the application lifespan; a disconnected one drops jobs."""
    queue = getattr(request.app.state, "job_queue", None)
    return queue if queue is not None else JobQueue(None)


def get_activity_logger(
    request: Request, queue: JobQueue = Depends(get_job_queue)
) -> ActivityLogger:
    forwarded = request.headers.get("X-Forwarded-For")
    ip_address = forwarded.split(",")[0].strip() if forwarded else (request.client.host if request.client else None)
    return ActivityLogger(queue, ip_address=ip_address, user_agent=request.headers.get("User-Agent"))


async def get_current_claims(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> TokenClaims:
    """
    Decode the bearer access token.

    Authorization is decided from the token claims alone; no user lookup.

    Raises:
        AuthenticationError: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise AuthenticationError("Authentication required")

    try:
        claims = get_claims_from_token(credentials.credentials)
    except (JWTError, ValueError):
        raise AuthenticationError("Invalid or expired token")

    request.state.user_id = str(claims.user_id)
    return claims


CurrentClaims = Annotated[TokenClaims, Depends(get_current_claims)]


def require_roles(*roles: UserRole) -> Callable:
    """Dependency factory allowing only the given roles."""
    allowed = {role.value for role in roles}

    async def checker(claims: CurrentClaims) -> TokenClaims:
        if claims.role not in allowed:
            raise PermissionDeniedError("You do not have permission to perform this action")
        return claims

    return checker


async def require_verification(claims: CurrentClaims) -> TokenClaims:
    """
    Let merchants through only once their profile is VERIFIED.

    Other roles pass. The 403 names the step the merchant has to take next.
    """
    if claims.role != UserRole.MERCHANT.value:
        return claims

    status = claims.profile_status or ProfileStatus.INCOMPLETE.value
    if status == ProfileStatus.VERIFIED.value:
        return claims
    if status == ProfileStatus.INCOMPLETE.value:
        raise PermissionDeniedError(
            "Please complete your merchant profile to access this feature",
            requires_action="COMPLETE_PROFILE",
            profile_status=status,
        )
    if status == ProfileStatus.PENDING_VERIFICATION.value:
        raise PermissionDeniedError(
            "Your profile is pending verification. Please wait for admin approval.",
            requires_action="WAIT_FOR_VERIFICATION",
            profile_status=status,
        )
    raise PermissionDeniedError(
        "Your profile was rejected. Please update and resubmit it.",
        requires_action="RESUBMIT_PROFILE",
        profile_status=status,
    )


async def require_complete_profile(claims: CurrentClaims) -> TokenClaims:
    """Let merchants through once a profile has been submitted, whatever its review state."""
    if claims.role != UserRole.MERCHANT.value:
        return claims
    if (claims.profile_status or ProfileStatus.INCOMPLETE.value) == ProfileStatus.INCOMPLETE.value:
        raise PermissionDeniedError(
            "Please complete your merchant profile first",
            requires_action="COMPLETE_PROFILE",
            profile_status=ProfileStatus.INCOMPLETE.value,
        )
    return claims


AdminClaims = Annotated[TokenClaims, Depends(require_roles(UserRole.ADMIN))]
MerchantClaims = Annotated[TokenClaims, Depends(require_roles(UserRole.MERCHANT))]


async def get_verified_merchant(
    claims: Annotated[TokenClaims, Depends(require_roles(UserRole.MERCHANT))],
) -> TokenClaims:
    return await require_verification(claims)


VerifiedMerchantClaims = Annotated[TokenClaims, Depends(get_verified_merchant)]
ActivityDep = Annotated[ActivityLogger, Depends(get_activity_logger)]
QueueDep = Annotated[JobQueue, Depends(get_job_queue)]


# Services


def get_auth_service(db: DbSession, queue: QueueDep, activity: ActivityDep) -> AuthService:
    return AuthService(db, queue, activity)


def get_merchant_service(db: DbSession, queue: QueueDep, activity: ActivityDep) -> MerchantService:
    return MerchantService(db, queue, activity)


def get_gift_card_service(db: DbSession, activity: ActivityDep) -> GiftCardService:
    return GiftCardService(db, activity)


def get_purchase_service(db: DbSession, queue: QueueDep, activity: ActivityDep) -> PurchaseService:
    return PurchaseService(db, queue, activity)


def get_notification_service(db: DbSession, queue: QueueDep) -> NotificationService:
    return NotificationService(db, queue)


def get_activity_log_service(db: DbSession) -> ActivityLogService:
    return ActivityLogService(db)
