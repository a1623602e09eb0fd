"""Mail relay adapter layer - abstracts over outbound mail transports."""

from contact_api.adapters.mail.base import AbstractMailRelay
from contact_api.adapters.mail.factory import create_mail_relay
from contact_api.adapters.mail.smtp_relay import SMTPMailRelay

__all__ = [
    "AbstractMailRelay",
    "SMTPMailRelay",
    "create_mail_relay",
]
