"""SMTP mail relay adapter."""

import asyncio
import logging
import smtplib
import ssl
from email.message import EmailMessage

from contact_api.adapters.mail.base import AbstractMailRelay
from contact_api.core.errors import MailRelayAppError

logger = logging.getLogger(__name__)


class SMTPMailRelay(AbstractMailRelay):
    """Relay that submits messages to an authenticated SMTP server.

    The standard library client is blocking, so each send runs in the
    default executor to keep the event loop free.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        *,
        use_starttls: bool = True,
        timeout_seconds: float = 30.0,
    ) -> None:
        """Initialize the SMTP relay.

        Args:
            host: SMTP server host name.
            port: SMTP server port (587 for STARTTLS submission).
            username: Account used to authenticate.
            password: Account password or app password.
            use_starttls: Upgrade the connection with STARTTLS before login.
            timeout_seconds: Socket timeout for the whole SMTP conversation.
        """
        self.host = host
        self.port = port
        self.username = username
        self._password = password
        self.use_starttls = use_starttls
        self.timeout_seconds = timeout_seconds

    async def send(self, message: EmailMessage) -> None:
        """Send ``message`` through the configured SMTP server.

        Raises:
            MailRelayAppError: On connection, authentication or delivery failure.
        """
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._send_blocking, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailRelayAppError(
                code="mail_delivery_failed",
                message="Failed to send email. Please try again later.",
            ) from exc

    def _send_blocking(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds) as client:
            if self.use_starttls:
                client.starttls(context=ssl.create_default_context())
            client.login(self.username, self._password)
            client.send_message(message)

        logger.debug(
            "mail.smtp_sent",
            extra={"smtp_host": self.host, "smtp_port": self.port},
        )
