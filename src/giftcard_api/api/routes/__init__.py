"""API routes, mounted under ``/api``."""

from fastapi import APIRouter

from giftcard_api.api.routes import activity_logs, auth, gift_cards, merchants, notifications, purchases

router = APIRouter(prefix="/api")

router.include_router(auth.router)
router.include_router(merchants.router)
router.include_router(gift_cards.router)
router.include_router(purchases.router)
router.include_router(notifications.router)
router.include_router(activity_logs.router)
