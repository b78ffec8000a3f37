"""Configuration management for Mail Intent Engine.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the MAIL_INTENT_ prefix (e.g., MAIL_INTENT_IMAP_USERNAME).
    """

    model_config = SettingsConfigDict(
        env_prefix="MAIL_INTENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # IMAP Configuration
    imap_host: str = Field(
        default="imap.gmail.com",
        description="IMAP server host name",
    )
    imap_port: int = Field(
        default=993,
        description="IMAP server port (implicit TLS)",
    )
    imap_username: str | None = Field(
        default=None,
        description="Mailbox account name used for login",
    )
    imap_password: str | None = Field(
        default=None,
        description="App password. When unset, OAuth2 (XOAUTH2) is used instead.",
    )
    connect_retries: int = Field(
        default=3,
        description="Maximum number of retries when opening the IMAP session",
    )

    # OAuth2 Configuration
    credentials_path: Path = Field(
        default=Path("credentials.json"),
        description="Path to the OAuth client secrets file",
    )
    token_path: Path = Field(
        default=Path("token.json"),
        description="Path to the cached OAuth token file",
    )
    oauth_scope: str = Field(
        default="https://mail.google.com/",
        description="OAuth scope required for IMAP access",
    )

    # Execution Configuration
    search_mailbox: str = Field(
        default="INBOX",
        description="Mailbox searched by one-shot search commands",
    )
    watch_mailbox: str = Field(
        default="[Gmail]/All Mail",
        description="Mailbox polled by listen commands",
    )
    poll_interval: float = Field(
        default=3.0,
        gt=0,
        description="Seconds between watch polls",
    )
    fetch_queue_size: int = Field(
        default=10,
        ge=1,
        description="Capacity of the queue streaming fetched messages",
    )
    body_fetch_bytes: int | None = Field(
        default=1048576,
        ge=1,
        description="Bytes of each message fetched for keyword matching (None = whole message)",
    )
    watch_max_consecutive_errors: int | None = Field(
        default=None,
        description="Stop watching after this many failed polls in a row (None = never)",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
