"""Redemption code generation and QR image rendering."""

import base64
import logging
import secrets
import time
from io import BytesIO

import qrcode
import qrcode.constants
from qrcode.main import QRCode

from giftcard_api.config import settings

logger = logging.getLogger(__name__)

QR_CODE_PREFIX = "THNX-DIGITAL"
_BASE36_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_qr_code() -> str:
    """
    Generate a unique redemption code.

    Format: ``THNX-DIGITAL-<base36 millisecond timestamp>-<16 hex chars>``.
    """
    timestamp = _to_base36(int(time.time() * 1000))
    random_part = secrets.token_hex(8).upper()
    return f"{QR_CODE_PREFIX}-{timestamp}-{random_part}"


def verification_url(qr_code: str) -> str:
    """URL encoded into the QR image; scanning it opens the balance check page."""
    return f"{settings.app_url.rstrip('/')}/verify/{qr_code}"


def generate_qr_png(data: str, box_size: int = 10, border: int = 2) -> bytes:
    """Render ``data`` as a PNG QR image with high error correction."""
    qr = QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffered = BytesIO()
    img.save(buffered, format="PNG")
    return buffered.getvalue()


def generate_qr_data_url(qr_code: str) -> str:
    """Return the verification URL for ``qr_code`` as a ``data:image/png`` URL."""
    png = generate_qr_png(verification_url(qr_code))
    img_base64 = base64.b64encode(png).decode()
    logger.debug("Generated QR image", extra={"bytes": len(png)})
    return f"data:image/png;base64,{img_base64}"
