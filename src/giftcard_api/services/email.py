"""Transactional email delivery through the Brevo API."""

import asyncio
import logging

import sib_api_v3_sdk
from sib_api_v3_sdk.rest import ApiException

from giftcard_api.config import settings
from giftcard_api.services.email_templates import RenderedEmail

logger = logging.getLogger(__name__)


class EmailSender:
    """Thin async wrapper over the blocking Brevo SDK."""

    def __init__(self, api_key: str | None = None):
        api_key = api_key if api_key is not None else settings.brevo_api_key
        if not api_key:
            logger.warning("BREVO_API_KEY not configured - emails will be skipped")
            self.transactional_emails_api = None
            return

        configuration = sib_api_v3_sdk.Configuration()
        configuration.api_key["api-key"] = api_key
        api_client = sib_api_v3_sdk.ApiClient(configuration)
        self.transactional_emails_api = sib_api_v3_sdk.TransactionalEmailsApi(api_client)

    @property
    def enabled(self) -> bool:
        return self.transactional_emails_api is not None

    async def send(self, to_email: str, to_name: str | None, email: RenderedEmail) -> str | None:
        """
        Send one email.

        Returns:
            Brevo message id, or None when delivery is disabled

        Raises:
            ApiException: When Brevo rejects the request (the job is retried)
        """
        if not self.enabled:
            logger.info(f"Email delivery disabled, skipping '{email.subject}'")
            return None

        attachments = [
            sib_api_v3_sdk.SendSmtpEmailAttachment(content=content, name=name)
            for name, content in email.attachments
        ] or None
        send_smtp_email = sib_api_v3_sdk.SendSmtpEmail(
            to=[sib_api_v3_sdk.SendSmtpEmailTo(email=to_email, name=to_name or to_email)],
            sender=sib_api_v3_sdk.SendSmtpEmailSender(
                name=settings.email_from_name, email=settings.email_from_address
            ),
            subject=email.subject,
            html_content=email.html,
            attachment=attachments,
        )

        try:
            # The SDK is blocking; keep it off the event loop.
            response = await asyncio.to_thread(
                self.transactional_emails_api.send_transac_email, send_smtp_email
            )
        except ApiException as e:
            logger.warning(f"Brevo API error: status={e.status} reason={e.reason}")
            raise

        return getattr(response, "message_id", None)
