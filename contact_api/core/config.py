"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file, with a plain .env
  used as fallback
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}


def _resolve_env_file() -> str | None:
    """Return the first existing env file for the current environment."""

    candidates = [ENV_FILE_MAP.get(APP_ENV, ".env.development"), ".env"]
    for name in candidates:
        path = PROJECT_ROOT / name
        if path.is_file():
            return str(path)
    return None


# Only load from file if it exists (production might inject via env vars only)
_env_file = _resolve_env_file()


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=False)


def parse_csv(value: str | None) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty items.

    Examples:
        >>> parse_csv("a, b,,c ")
        ['a', 'b', 'c']
        >>> parse_csv(None)
        []
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _build_server_settings() -> "ServerSettings":
    """Build server settings from environment.

    Static type checkers treat required BaseSettings fields as constructor
    arguments, which is not how BaseSettings is intended to be used.
    """

    return ServerSettings()  # type: ignore[call-arg]


def _build_mail_settings() -> "MailSettings":
    return MailSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class ServerSettings(BaseSettings):
    """HTTP server and edge configuration."""

    host: str = Field(
        "0.0.0.0",
        description="Interface the server binds to",
    )
    port: int = Field(
        8080,
        description="Listening port",
        validation_alias=AliasChoices("SERVER_PORT", "PORT"),
    )
    debug: bool = Field(
        False,
        description="Enable FastAPI debug mode",
    )
    cors_origins: str = Field(
        "http://localhost:3000,https://shubhams.dev,https://www.shubhams.dev",
        description="Comma-separated allow-list of CORS origins",
    )
    trusted_proxies: str = Field(
        "127.0.0.1",
        description="Comma-separated proxy addresses or CIDR networks trusted for X-Forwarded-For",
    )

    model_config = SettingsConfigDict(
        env_prefix="SERVER_",
        case_sensitive=False,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        return parse_csv(self.cors_origins)

    @property
    def trusted_proxies_list(self) -> list[str]:
        return parse_csv(self.trusted_proxies)


class MailSettings(BaseSettings):
    """Outbound SMTP relay configuration.

    Credential requirements are validated in the mail relay factory.
    """

    from_address: str = Field(
        ...,
        description="Address placed in the From header (also the default SMTP account)",
        validation_alias=AliasChoices("MAIL_FROM_ADDRESS", "EMAIL_FROM"),
    )
    to_address: str = Field(
        ...,
        description="Mailbox that receives contact submissions",
        validation_alias=AliasChoices("MAIL_TO_ADDRESS", "EMAIL_TO"),
    )
    smtp_host: str = Field(
        "smtp.gmail.com",
        description="SMTP relay host",
    )
    smtp_port: int = Field(
        587,
        description="SMTP relay port",
    )
    username: str | None = Field(
        None,
        description="SMTP login account (defaults to from_address)",
    )
    password: str | None = Field(
        None,
        description="SMTP password or app password",
        validation_alias=AliasChoices("MAIL_PASSWORD", "EMAIL_APP_PASSWORD"),
    )
    use_starttls: bool = Field(
        True,
        description="Upgrade the connection with STARTTLS before authenticating",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Socket timeout for the SMTP conversation",
    )

    model_config = SettingsConfigDict(
        env_prefix="MAIL_",
        case_sensitive=False,
        populate_by_name=True,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if required settings are missing.
    """

    app_env: str = APP_ENV
    server: ServerSettings = Field(default_factory=_build_server_settings)
    mail: MailSettings = Field(default_factory=_build_mail_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
