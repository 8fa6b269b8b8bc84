"""SMS and contact-form notifications."""

import html
import logging
import re
from datetime import datetime, timezone

import httpx
from pydantic import BaseModel
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from rezkyoo.config import get_config
from rezkyoo.errors import UpstreamError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


def _digits(phone: str) -> str:
    return re.sub(r"\D", "", phone)


def to_e164(phone: str) -> str | None:
    """Convert a US phone number to E.164, or None if it is not one."""
    cleaned = _digits(phone)
    if len(cleaned) == 10:
        return f"+1{cleaned}"
    if len(cleaned) == 11 and cleaned.startswith("1"):
        return f"+{cleaned}"
    return None


def is_valid_phone_number(phone: str) -> bool:
    return to_e164(phone) is not None


def format_phone_number(phone: str) -> str:
    """Format a US number as (555) 123-4567; other input is returned unchanged."""
    cleaned = _digits(phone)
    if len(cleaned) == 11 and cleaned.startswith("1"):
        cleaned = cleaned[1:]
    if len(cleaned) == 10:
        return f"({cleaned[:3]}) {cleaned[3:6]}-{cleaned[6:]}"
    return phone


def build_payment_sms_body(batch_url: str, available_count: int) -> str:
    """Post-payment SMS text, including STOP opt-out language."""
    emoji = "🎉" if available_count > 1 else "✅"
    restaurants = "1 restaurant" if available_count == 1 else f"{available_count} restaurants"
    return "\n".join(
        [
            f"{emoji} RezKyoo: {restaurants} available!",
            "Your hold expires in 15 min. Finish booking now:",
            batch_url,
            "",
            "Reply STOP to opt out of texts.",
        ]
    )


class SmsResult(BaseModel):
    ok: bool
    message_id: str | None = None
    error: str | None = None


class SmsService:
    """Sends SMS through Twilio. Failures are reported, never raised."""

    def __init__(self, client: Client | None = None) -> None:
        self.config = get_config()
        if client is not None:
            self.client = client
        elif self.config.has_twilio_config():
            self.client = Client(
                self.config.twilio_account_sid, self.config.twilio_auth_token
            )
        else:
            self.client = None

    def is_configured(self) -> bool:
        return self.client is not None and bool(self.config.twilio_phone_number)

    def send(self, to: str, body: str) -> SmsResult:
        """Send an SMS to a US number.

        Args:
            to: Raw phone number (formatted to E.164 here)
            body: Message text

        Returns:
            SmsResult with the Twilio message SID on success
        """
        if not self.is_configured():
            logger.warning("SMS skipped - Twilio not configured")
            return SmsResult(ok=False, error="SMS not configured")

        e164 = to_e164(to)
        if not e164:
            logger.warning(f"SMS skipped - invalid phone number: {to}")
            return SmsResult(ok=False, error="Invalid phone number")

        from_e164 = to_e164(self.config.twilio_phone_number)
        if not from_e164:
            logger.warning(f"SMS skipped - invalid from number: {self.config.twilio_phone_number}")
            return SmsResult(ok=False, error="Invalid from number")

        try:
            message = self.client.messages.create(body=body, from_=from_e164, to=e164)
        except TwilioRestException as e:
            logger.error(f"Twilio SMS error: {e.status} {e.msg}")
            return SmsResult(ok=False, error=f"Twilio API error: {e.status}")

        logger.info(f"SMS sent: {message.sid} -> {e164}")
        return SmsResult(ok=True, message_id=message.sid)


class ContactMessage(BaseModel):
    name: str
    email: str
    message: str


async def deliver_contact_message(
    contact: ContactMessage, transport: httpx.AsyncBaseTransport | None = None
) -> str:
    """Deliver a contact form submission.

    Sends an email through Resend when RESEND_API_KEY is set, otherwise posts
    to CONTACT_FORM_WEBHOOK_URL, otherwise only logs it.

    Returns:
        User-facing confirmation message

    Raises:
        UpstreamError: If the email service rejects the message
    """
    config = get_config()

    async with httpx.AsyncClient(timeout=15.0, transport=transport) as client:
        if config.resend_api_key:
            safe_name = html.escape(contact.name)
            safe_email = html.escape(contact.email)
            safe_message = html.escape(contact.message).replace("\n", "<br>")
            response = await client.post(
                RESEND_API_URL,
                headers={"Authorization": f"Bearer {config.resend_api_key}"},
                json={
                    "from": config.contact_from_email,
                    "to": config.contact_to_email,
                    "reply_to": contact.email,
                    "subject": f"Contact Form: Message from {safe_name}",
                    "html": (
                        "<h2>New Contact Form Submission</h2>"
                        f"<p><strong>From:</strong> {safe_name}</p>"
                        f'<p><strong>Email:</strong> <a href="mailto:{safe_email}">{safe_email}</a></p>'
                        "<hr /><p><strong>Message:</strong></p>"
                        f"<p>{safe_message}</p>"
                    ),
                },
            )
            if not response.is_success:
                logger.error(f"Resend API error: {response.text}")
                raise UpstreamError("Failed to send email")
            logger.info(f"Contact form sent via Resend to {config.contact_to_email}")
            return "Message sent successfully"

        logger.info(f"Contact form submission from {contact.name} <{contact.email}>")

        if config.contact_form_webhook_url:
            await client.post(
                config.contact_form_webhook_url,
                json={
                    **contact.model_dump(),
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "source": "rezkyoo-contact-form",
                },
            )
            return "Message sent to webhook"

    return "Message received! We'll get back to you soon."
