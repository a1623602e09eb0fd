"""Contact submission service: builds the notification email and relays it.

The service knows nothing about HTTP or rate limiting; it receives an
already validated and admitted submission.
"""

import hashlib
import logging
from email.message import EmailMessage

from contact_api.adapters.mail.base import AbstractMailRelay
from contact_api.core.errors import MailRelayAppError
from contact_api.schemas.contact import ContactForm

logger = logging.getLogger(__name__)

SUBJECT_PREFIX = "Contact Form Submission"


def build_subject(form: ContactForm) -> str:
    return f"{SUBJECT_PREFIX} {form.name}"


def build_body(form: ContactForm) -> str:
    """Render the plain-text body listing name, email and message."""
    return f"Name: {form.name}\nEmail: {form.email}\nMessage: {form.message}"


def build_contact_email(form: ContactForm, *, sender: str, recipient: str) -> EmailMessage:
    """Build the notification email for a contact submission.

    Args:
        form: Validated submission.
        sender: Address for the From header.
        recipient: Address for the To header.

    Returns:
        EmailMessage ready to hand to a relay.
    """
    message = EmailMessage()
    message["From"] = sender
    message["To"] = recipient
    message["Subject"] = build_subject(form)
    message["Reply-To"] = form.email
    message.set_content(build_body(form))
    return message


def _hash_email(address: str) -> str:
    return hashlib.sha256(address.lower().encode()).hexdigest()[:16]


class ContactService:
    """Relays contact submissions to a fixed mailbox."""

    def __init__(self, relay: AbstractMailRelay, *, sender: str, recipient: str) -> None:
        self._relay = relay
        self._sender = sender
        self._recipient = recipient

    async def submit(self, form: ContactForm) -> None:
        """Build and send the notification email for ``form``.

        Delivery is attempted once. Failures are logged with full detail and
        re-raised for the exception handlers to turn into an opaque 500.

        Raises:
            MailRelayAppError: If the relay fails to deliver the message.
        """
        message = build_contact_email(form, sender=self._sender, recipient=self._recipient)
        log_context = {
            "sender_hash": _hash_email(form.email),
            "message_chars": len(form.message),
        }

        try:
            await self._relay.send(message)
        except MailRelayAppError as exc:
            logger.error(
                "contact.relay_failed",
                extra={
                    **log_context,
                    "error_code": exc.code,
                    "error_cause": repr(exc.__cause__) if exc.__cause__ else None,
                },
                exc_info=True,
            )
            raise

        logger.info("contact.relayed", extra=log_context)
