"""HTML bodies for every transactional email kind."""

import base64
from dataclasses import dataclass, field
from html import escape
from typing import Any, Callable

from giftcard_api.config import settings
from giftcard_api.core.qr import generate_qr_png, verification_url


@dataclass
class RenderedEmail:
    subject: str
    html: str
    # (filename, base64 content)
    attachments: list[tuple[str, str]] = field(default_factory=list)


def _layout(title: str, body: str) -> str:
    return (
        "<html><body style=\"font-family: Arial, sans-serif; color: #222;\">"
        f"<h2>{escape(title)}</h2>{body}"
        f"<p style=\"color:#888;font-size:12px\">{escape(settings.email_from_name)}</p>"
        "</body></html>"
    )


def _welcome(data: dict[str, Any]) -> RenderedEmail:
    name = escape(data.get("name") or "there")
    body = (
        f"<p>Hi {name},</p>"
        "<p>Your merchant account is ready. Complete your business profile to get verified "
        "and start selling gift cards.</p>"
        f"<p><a href=\"{settings.frontend_url}/merchant/profile\">Complete your profile</a></p>"
    )
    return RenderedEmail(subject=f"Welcome to {settings.email_from_name}", html=_layout("Welcome!", body))


def _gift_card(data: dict[str, Any]) -> RenderedEmail:
    qr_code = data["qr_code"]
    png = generate_qr_png(verification_url(qr_code))
    body = (
        f"<p>Hi {escape(data.get('name') or '')},</p>"
        f"<p>Thank you for purchasing <strong>{escape(data.get('title', 'a gift card'))}</strong>"
        f" from {escape(data.get('merchant_name') or 'our merchant')}.</p>"
        f"<p>Amount: <strong>{escape(str(data.get('amount')))} {settings.currency}</strong><br/>"
        f"Code: <strong>{escape(qr_code)}</strong><br/>"
        f"Valid until: {escape(str(data.get('expires_at', '')))}</p>"
        "<p>Show the attached QR code at the store to redeem.</p>"
        f"<p><a href=\"{verification_url(qr_code)}\">Check your balance</a></p>"
    )
    return RenderedEmail(
        subject="Your gift card is ready",
        html=_layout("Your gift card", body),
        attachments=[(f"{qr_code}.png", base64.b64encode(png).decode())],
    )


def _otp(data: dict[str, Any]) -> RenderedEmail:
    body = (
        f"<p>Your verification code is</p><h1 style=\"letter-spacing:4px\">{escape(data['otp'])}</h1>"
        f"<p>It expires in {settings.otp_expire_minutes} minutes. "
        "If you did not request it, you can ignore this email.</p>"
    )
    return RenderedEmail(subject="Your password reset code", html=_layout("Verification code", body))


def _password_changed(data: dict[str, Any]) -> RenderedEmail:
    body = (
        f"<p>Hi {escape(data.get('name') or 'there')},</p>"
        "<p>Your password was changed. If this was not you, contact support immediately.</p>"
    )
    return RenderedEmail(subject="Your password was changed", html=_layout("Password changed", body))


def _merchant_approved(data: dict[str, Any]) -> RenderedEmail:
    body = (
        f"<p>Congratulations, <strong>{escape(data.get('business_name') or '')}</strong> is now verified.</p>"
        "<p>You can start creating gift cards.</p>"
        f"<p><a href=\"{settings.frontend_url}/merchant/gift-cards\">Create a gift card</a></p>"
    )
    return RenderedEmail(subject="Your merchant profile is verified", html=_layout("Profile approved", body))


def _merchant_rejected(data: dict[str, Any]) -> RenderedEmail:
    body = (
        f"<p>We could not verify <strong>{escape(data.get('business_name') or '')}</strong>.</p>"
        f"<p>Reason: {escape(data.get('reason') or 'Not specified')}</p>"
        "<p>Update your details and resubmit the profile for review.</p>"
    )
    return RenderedEmail(subject="Your merchant profile needs changes", html=_layout("Profile rejected", body))


def _generic(data: dict[str, Any]) -> RenderedEmail:
    return RenderedEmail(
        subject=data["subject"],
        html=data.get("html") or _layout(data["subject"], f"<p>{escape(data.get('text', ''))}</p>"),
    )


TEMPLATES: dict[str, Callable[[dict[str, Any]], RenderedEmail]] = {
    "welcome_email": _welcome,
    "gift_card_email": _gift_card,
    "otp_email": _otp,
    "password_changed_email": _password_changed,
    "merchant_approved_email": _merchant_approved,
    "merchant_rejected_email": _merchant_rejected,
    "generic_email": _generic,
}


def render_email(kind: str, data: dict[str, Any]) -> RenderedEmail:
    """Render an email body.

    Raises:
        ValueError: If ``kind`` is not a known email kind
    """
    renderer = TEMPLATES.get(kind)
    if renderer is None:
        raise ValueError(f"Unknown email kind: {kind}")
    return renderer(data)
