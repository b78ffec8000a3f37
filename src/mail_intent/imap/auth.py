"""OAuth2 credentials for IMAP XOAUTH2 login.

The installed-app flow is run once; the resulting token is cached on disk and
refreshed on later runs.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from mail_intent.config import Settings
from mail_intent.exceptions import AuthenticationError, ConfigurationError

logger = structlog.get_logger()


def load_access_token(settings: Settings) -> str:
    """Return a valid OAuth2 access token, running the consent flow if needed.

    This call blocks (it may open a browser and wait for the redirect); run
    it in a worker thread from async code.

    Raises:
        ConfigurationError: If the client secrets file is missing.
        AuthenticationError: If no valid token could be obtained.
    """

    # Imported lazily to keep import-time cost low and tests fast.
    from google.auth.transport.requests import Request
    from google.oauth2.credentials import Credentials
    from google_auth_oauthlib.flow import InstalledAppFlow

    credentials_path = Path(settings.credentials_path)
    token_path = Path(settings.token_path)
    scope = settings.oauth_scope

    creds: Credentials | None = None
    if token_path.exists():
        creds = Credentials.from_authorized_user_file(str(token_path), scopes=[scope])

    if creds is not None and creds.expired and creds.refresh_token:
        logger.info("oauth_token_refresh", token_path=str(token_path))
        creds.refresh(Request())
        token_path.write_text(creds.to_json(), encoding="utf-8")

    if creds is None or not creds.valid:
        if not credentials_path.exists():
            raise ConfigurationError(
                f"OAuth client secrets file not found: {credentials_path}. "
                "Set MAIL_INTENT_CREDENTIALS_PATH or MAIL_INTENT_IMAP_PASSWORD."
            )
        logger.info("oauth_flow_started", credentials_path=str(credentials_path), scope=scope)
        flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), scopes=[scope])
        creds = flow.run_local_server(port=0)
        token_path.parent.mkdir(parents=True, exist_ok=True)
        token_path.write_text(creds.to_json(), encoding="utf-8")

    if not creds.token:
        raise AuthenticationError("OAuth flow completed without an access token")

    return creds.token
