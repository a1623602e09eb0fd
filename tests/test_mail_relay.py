"""Tests for the SMTP relay adapter and its factory."""

import smtplib
from email.message import EmailMessage
from unittest.mock import MagicMock, patch

import pytest

from contact_api.adapters.mail import SMTPMailRelay, create_mail_relay
from contact_api.core.config import MailSettings
from contact_api.core.errors import MailRelayAppError, ValidationAppError


def _message() -> EmailMessage:
    message = EmailMessage()
    message["From"] = "site@example.com"
    message["To"] = "owner@example.com"
    message["Subject"] = "Contact Form Submission Jo"
    message.set_content("Name: Jo")
    return message


def _relay(**overrides) -> SMTPMailRelay:
    params = {
        "host": "smtp.example.com",
        "port": 587,
        "username": "site@example.com",
        "password": "secret",
    }
    params.update(overrides)
    return SMTPMailRelay(**params)


class TestSMTPMailRelay:
    @pytest.mark.asyncio
    async def test_send_uses_starttls_login_and_send_message(self) -> None:
        relay = _relay(timeout_seconds=5.0)
        message = _message()

        with patch("contact_api.adapters.mail.smtp_relay.smtplib.SMTP") as smtp_cls:
            client = smtp_cls.return_value.__enter__.return_value
            await relay.send(message)

        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=5.0)
        client.starttls.assert_called_once()
        client.login.assert_called_once_with("site@example.com", "secret")
        client.send_message.assert_called_once_with(message)

    @pytest.mark.asyncio
    async def test_starttls_can_be_disabled(self) -> None:
        relay = _relay(use_starttls=False)

        with patch("contact_api.adapters.mail.smtp_relay.smtplib.SMTP") as smtp_cls:
            client = smtp_cls.return_value.__enter__.return_value
            await relay.send(_message())

        client.starttls.assert_not_called()

    @pytest.mark.asyncio
    async def test_auth_error_becomes_opaque_relay_error(self) -> None:
        relay = _relay()

        with patch("contact_api.adapters.mail.smtp_relay.smtplib.SMTP") as smtp_cls:
            client = smtp_cls.return_value.__enter__.return_value
            client.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
            with pytest.raises(MailRelayAppError) as exc_info:
                await relay.send(_message())

        assert exc_info.value.code == "mail_delivery_failed"
        assert "bad credentials" not in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, smtplib.SMTPAuthenticationError)

    @pytest.mark.asyncio
    async def test_connection_error_becomes_relay_error(self) -> None:
        relay = _relay()

        with patch(
            "contact_api.adapters.mail.smtp_relay.smtplib.SMTP",
            MagicMock(side_effect=ConnectionRefusedError("refused")),
        ):
            with pytest.raises(MailRelayAppError):
                await relay.send(_message())


MAIL_ENV_VARS = (
    "MAIL_FROM_ADDRESS",
    "MAIL_TO_ADDRESS",
    "MAIL_PASSWORD",
    "EMAIL_FROM",
    "EMAIL_TO",
    "EMAIL_APP_PASSWORD",
)


@pytest.fixture
def clean_mail_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove mail variables seeded by conftest so each test sets its own."""
    for name in MAIL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestMailSettings:
    def test_email_variable_names_are_accepted(self, clean_mail_env: pytest.MonkeyPatch) -> None:
        clean_mail_env.setenv("EMAIL_FROM", "site@example.com")
        clean_mail_env.setenv("EMAIL_TO", "owner@example.com")
        clean_mail_env.setenv("EMAIL_APP_PASSWORD", "abcd efgh")

        cfg = MailSettings()

        assert cfg.from_address == "site@example.com"
        assert cfg.to_address == "owner@example.com"
        assert cfg.password == "abcd efgh"

    def test_mail_prefixed_names_take_precedence(self, clean_mail_env: pytest.MonkeyPatch) -> None:
        clean_mail_env.setenv("MAIL_FROM_ADDRESS", "primary@example.com")
        clean_mail_env.setenv("EMAIL_FROM", "legacy@example.com")
        clean_mail_env.setenv("EMAIL_TO", "owner@example.com")

        cfg = MailSettings()

        assert cfg.from_address == "primary@example.com"
        assert cfg.password is None


@pytest.mark.usefixtures("clean_mail_env")
class TestCreateMailRelay:
    def test_builds_smtp_relay_defaulting_username_to_sender(self) -> None:
        cfg = MailSettings(
            from_address="site@example.com",
            to_address="owner@example.com",
            password="secret",
        )

        relay = create_mail_relay(cfg)

        assert isinstance(relay, SMTPMailRelay)
        assert relay.username == "site@example.com"
        assert relay.host == "smtp.gmail.com"
        assert relay.port == 587

    def test_explicit_username_wins(self) -> None:
        cfg = MailSettings(
            from_address="site@example.com",
            to_address="owner@example.com",
            username="relay-account",
            password="secret",
        )

        assert create_mail_relay(cfg).username == "relay-account"

    def test_missing_password_raises(self) -> None:
        cfg = MailSettings(
            from_address="site@example.com",
            to_address="owner@example.com",
            password=None,
        )

        with pytest.raises(ValidationAppError) as exc_info:
            create_mail_relay(cfg)

        assert exc_info.value.code == "mail_missing_password"
