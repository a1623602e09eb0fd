"""Factory for creating the configured mail relay."""

from contact_api.adapters.mail.base import AbstractMailRelay
from contact_api.adapters.mail.smtp_relay import SMTPMailRelay
from contact_api.core.config import MailSettings, settings
from contact_api.core.errors import ValidationAppError


def create_mail_relay(mail_settings: MailSettings | None = None) -> AbstractMailRelay:
    """Instantiate the SMTP relay from configuration.

    Args:
        mail_settings: Optional mail settings; defaults to global settings.

    Returns:
        AbstractMailRelay: Configured relay instance.

    Raises:
        ValidationAppError: If SMTP credentials are not configured.
    """
    cfg = mail_settings or settings.mail

    if not cfg.password:
        raise ValidationAppError(
            code="mail_missing_password",
            message="SMTP relay requires MAIL_PASSWORD environment variable",
        )

    return SMTPMailRelay(
        host=cfg.smtp_host,
        port=cfg.smtp_port,
        username=cfg.username or cfg.from_address,
        password=cfg.password,
        use_starttls=cfg.use_starttls,
        timeout_seconds=cfg.timeout_seconds,
    )
