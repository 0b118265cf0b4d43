"""Merchant lifecycle: profile submission, verification and administration."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.config import settings
from giftcard_api.core.dates import utc_now
from giftcard_api.core.exceptions import BadRequestError, NotFoundError
from giftcard_api.core.security import hash_password
from giftcard_api.models.enums import ProfileStatus, UserRole
from giftcard_api.models.gift_card import GiftCard
from giftcard_api.models.merchant import REQUIRED_PROFILE_FIELDS, CardSettings, MerchantProfile
from giftcard_api.models.purchase import PurchasedGiftCard
from giftcard_api.models.user import User
from giftcard_api.repositories.merchant import MerchantProfileRepository
from giftcard_api.repositories.user import RefreshTokenRepository, UserRepository
from giftcard_api.schemas.auth import TokenPair
from giftcard_api.schemas.merchant import ProfileCompletion
from giftcard_api.services.activity_log import ActivityLogger
from giftcard_api.services.auth import issue_token_pair
from giftcard_api.services.notification import NotificationService
from giftcard_api.worker.queue import JobQueue

logger = logging.getLogger(__name__)

# Fields a merchant may change after verification
EDITABLE_FIELDS = ("description", "website", "logo")


def profile_completion(profile: MerchantProfile | None) -> ProfileCompletion:
    """Share of required fields filled in, plus status flags."""
    if profile is None:
        return ProfileCompletion(
            percentage=0,
            missing_fields=list(REQUIRED_PROFILE_FIELDS),
            is_complete=False,
            is_verified=False,
            is_pending=False,
            is_rejected=False,
            profile_status=ProfileStatus.INCOMPLETE,
        )

    missing = [name for name in REQUIRED_PROFILE_FIELDS if not getattr(profile, name)]
    filled = len(REQUIRED_PROFILE_FIELDS) - len(missing)
    return ProfileCompletion(
        percentage=round(filled * 100 / len(REQUIRED_PROFILE_FIELDS)),
        missing_fields=missing,
        is_complete=not missing,
        is_verified=profile.profile_status == ProfileStatus.VERIFIED,
        is_pending=profile.profile_status == ProfileStatus.PENDING_VERIFICATION,
        is_rejected=profile.profile_status == ProfileStatus.REJECTED,
        profile_status=profile.profile_status,
    )


class MerchantService:
    """Service for merchant profiles and their verification."""

    def __init__(self, db: AsyncSession, queue: JobQueue, activity: ActivityLogger):
        self.db = db
        self.queue = queue
        self.activity = activity
        self.user_repo = UserRepository(db)
        self.profile_repo = MerchantProfileRepository(db)
        self.token_repo = RefreshTokenRepository(db)
        self.notifications = NotificationService(db, queue)

    async def _get_merchant_user(self, user_id: UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None or user.role != UserRole.MERCHANT:
            raise NotFoundError("Merchant not found")
        return user

    async def _get_profile(self, user_id: UUID) -> MerchantProfile:
        profile = await self.profile_repo.get_by_user_id(user_id)
        if profile is None:
            raise NotFoundError("Merchant profile not found")
        return profile

    async def complete_profile(self, user_id: UUID, data: dict[str, Any]) -> tuple[MerchantProfile, TokenPair]:
        """
        Submit the business profile for verification (INCOMPLETE -> PENDING_VERIFICATION).

        Returns:
            The new profile and a token pair carrying the new profile status

        Raises:
            BadRequestError: If a profile was already submitted
        """
        user = await self._get_merchant_user(user_id)
        existing = user.merchant_profile
        if existing is not None:
            if existing.profile_status == ProfileStatus.VERIFIED:
                raise BadRequestError("Profile is already verified")
            raise BadRequestError(
                "Profile already submitted. Use resubmit to update a rejected profile."
            )

        profile = MerchantProfile(
            user_id=user.id,
            profile_status=ProfileStatus.PENDING_VERIFICATION,
            is_verified=False,
            gift_card_limit=settings.default_gift_card_limit,
            **{**data, "additional_documents": data.get("additional_documents") or []},
        )
        self.db.add(profile)
        user.merchant_profile = profile
        tokens = await issue_token_pair(self.db, user)
        logger.info("Merchant profile submitted", extra={"user_id": str(user.id)})

        await self.notifications.on_profile_submitted_for_verification(user.id, profile.business_name, profile.id)
        await self.activity.merchant_profile_submitted(user.id, profile.id, profile.business_name)
        return profile, tokens

    async def get_profile(self, user_id: UUID) -> tuple[MerchantProfile | None, ProfileCompletion]:
        profile = await self.profile_repo.get_by_user_id(user_id)
        return profile, profile_completion(profile)

    async def update_profile(self, user_id: UUID, data: dict[str, Any]) -> MerchantProfile:
        """Update the freely editable fields of a submitted profile."""
        updates = {k: v for k, v in data.items() if k in EDITABLE_FIELDS and v is not None}
        if not updates:
            raise BadRequestError("No valid fields to update")

        profile = await self._get_profile(user_id)
        profile = await self.profile_repo.update(profile.id, updates)
        await self.activity.merchant_profile_updated(user_id, profile.id, sorted(updates))
        return profile

    async def resubmit(self, user_id: UUID, data: dict[str, Any]) -> tuple[MerchantProfile, TokenPair]:
        """
        Send a rejected profile back for review (REJECTED -> PENDING_VERIFICATION).

        Fields not supplied, including earlier document references, are kept.
        """
        user = await self._get_merchant_user(user_id)
        profile = user.merchant_profile
        if profile is None:
            raise NotFoundError("Merchant profile not found")
        if profile.profile_status != ProfileStatus.REJECTED:
            raise BadRequestError("Only rejected profiles can be resubmitted")

        for key, value in data.items():
            if value is not None and hasattr(profile, key):
                setattr(profile, key, value)
        profile.profile_status = ProfileStatus.PENDING_VERIFICATION
        profile.is_verified = False
        profile.rejection_reason = None
        profile.rejected_at = None
        profile.verified_at = None
        profile.verified_by_id = None
        profile.verification_notes = None

        tokens = await issue_token_pair(self.db, user)
        await self.notifications.on_profile_submitted_for_verification(user.id, profile.business_name, profile.id)
        await self.activity.merchant_profile_submitted(user.id, profile.id, profile.business_name)
        return profile, tokens

    # Admin

    async def create_merchant(self, admin_id: UUID, data: dict[str, Any]) -> User:
        """Create a merchant account whose profile is verified from the start."""
        if await self.user_repo.email_exists(data["email"]):
            raise BadRequestError("User with this email already exists")

        now = utc_now()
        user = User(
            email=data.pop("email").lower(),
            password_hash=hash_password(data.pop("password")),
            name=data.pop("name"),
            phone=data.pop("phone", None),
            role=UserRole.MERCHANT,
            email_verified=True,
            created_by_id=admin_id,
        )
        limit = data.pop("gift_card_limit", None) or settings.default_gift_card_limit
        profile = MerchantProfile(
            profile_status=ProfileStatus.VERIFIED,
            is_verified=True,
            verified_at=now,
            verified_by_id=admin_id,
            gift_card_limit=limit,
            **{**data, "additional_documents": data.get("additional_documents") or []},
        )
        user.merchant_profile = profile
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("Merchant created by admin", extra={"user_id": str(user.id)})

        await self.queue.enqueue_email("welcome_email", user.email, user.name)
        await self.activity.user_created(admin_id, user.id, user.email)
        return user

    async def list_merchants(
        self, status: ProfileStatus | None, page: int, limit: int
    ) -> tuple[list[MerchantProfile], int]:
        return await self.profile_repo.list_profiles(status, skip=(page - 1) * limit, limit=limit)

    async def verify_merchant(
        self,
        admin_id: UUID,
        merchant_id: UUID,
        action: str,
        rejection_reason: str | None = None,
        verification_notes: str | None = None,
    ) -> MerchantProfile:
        """
        Approve or reject a pending profile.

        Raises:
            NotFoundError: No profile for this merchant
            BadRequestError: Profile is already verified or not awaiting review
        """
        profile = await self._get_profile(merchant_id)
        if profile.profile_status == ProfileStatus.VERIFIED:
            raise BadRequestError("Merchant is already verified")
        if profile.profile_status != ProfileStatus.PENDING_VERIFICATION:
            raise BadRequestError("Only profiles pending verification can be reviewed")

        now = utc_now()
        profile.verified_by_id = admin_id
        profile.verification_notes = verification_notes
        if action == "approve":
            profile.profile_status = ProfileStatus.VERIFIED
            profile.is_verified = True
            profile.verified_at = now
            profile.rejection_reason = None
            profile.rejected_at = None
        else:
            profile.profile_status = ProfileStatus.REJECTED
            profile.is_verified = False
            profile.rejection_reason = rejection_reason
            profile.rejected_at = now
        await self.db.commit()
        logger.info(
            f"Merchant {action}d",
            extra={"user_id": str(admin_id), "resource_id": str(profile.id)},
        )

        merchant = profile.user
        if action == "approve":
            await self.notifications.on_profile_verified(merchant_id, admin_id)
            await self.queue.enqueue_email(
                "merchant_approved_email", merchant.email, merchant.name, business_name=profile.business_name
            )
            await self.activity.merchant_verified(admin_id, merchant_id, profile.id, profile.business_name)
        else:
            await self.notifications.on_profile_rejected(merchant_id, rejection_reason, admin_id)
            await self.queue.enqueue_email(
                "merchant_rejected_email",
                merchant.email,
                merchant.name,
                business_name=profile.business_name,
                reason=rejection_reason,
            )
            await self.activity.merchant_rejected(
                admin_id, merchant_id, profile.id, profile.business_name, rejection_reason or ""
            )
        return profile

    async def delete_merchant(self, admin_id: UUID, merchant_id: UUID, hard_delete: bool = False) -> None:
        """
        Deactivate a merchant, or remove the account entirely.

        Soft delete keeps all data and revokes sessions. Hard delete is refused
        while customers hold cards issued by the merchant.
        """
        user = await self._get_merchant_user(merchant_id)

        if not hard_delete:
            user.is_active = False
            await self.token_repo.delete_for_user(user.id)
            await self.db.commit()
            await self.activity.user_deactivated(admin_id, user.id, hard_delete=False)
            return

        sold = await self.db.execute(
            select(PurchasedGiftCard.id).where(PurchasedGiftCard.merchant_id == user.id).limit(1)
        )
        if sold.scalar_one_or_none() is not None:
            raise BadRequestError(
                "Merchant has sold gift cards and cannot be permanently deleted. Deactivate instead."
            )

        await self.token_repo.delete_for_user(user.id)
        await self.db.execute(delete(GiftCard).where(GiftCard.merchant_id == user.id))
        await self.db.execute(delete(CardSettings).where(CardSettings.merchant_id == user.id))
        await self.db.execute(delete(MerchantProfile).where(MerchantProfile.user_id == user.id))
        await self.db.delete(user)
        await self.db.commit()
        await self.activity.user_deactivated(admin_id, merchant_id, hard_delete=True)
