"""IMAP mail store implementation.

This module provides the mail store the executors talk to.

Notes:
    IMAPClient is synchronous. This project wraps those calls using
    `asyncio.to_thread` so the rest of the codebase can remain async-friendly.
    Only one operation uses the session at a time, so no locking is needed.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence
from typing import Any, Protocol

import structlog

from mail_intent.config import Settings
from mail_intent.engine.criteria import StoreCriteria
from mail_intent.engine.streaming import Emitter, stream
from mail_intent.exceptions import AuthenticationError, ConfigurationError, ExecutionError
from mail_intent.imap.parsing import (
    criteria_to_imap,
    fetch_items,
    mailbox_status,
    message_from_fetch,
    search_charset,
)
from mail_intent.models import FetchField, MailboxStatus, MailMessage
from mail_intent.utils import retry_on_failure

logger = structlog.get_logger()


class MailStore(Protocol):
    """Capabilities the executors require from a mail store."""

    async def select_mailbox(self, name: str) -> MailboxStatus: ...

    async def search(self, criteria: StoreCriteria) -> list[int]: ...

    def fetch(
        self, uids: Sequence[int], fields: Sequence[FetchField]
    ) -> AsyncIterator[MailMessage]: ...

    def fetch_uid_range(
        self, start: int, end: int, fields: Sequence[FetchField]
    ) -> AsyncIterator[MailMessage]: ...


class ImapMailStore:
    """IMAP mail store backed by a single IMAPClient session."""

    def __init__(self, settings: Settings | None = None, client: Any | None = None) -> None:
        """Initialize the store.

        Args:
            settings: Application settings. If None, uses default settings.
            client: An already logged-in IMAPClient. If None, call connect().
        """
        from mail_intent.config import get_settings

        self.settings = settings or get_settings()
        self._client: Any | None = client
        logger.info("imap_store_initialized", host=self.settings.imap_host)

    async def __aenter__(self) -> "ImapMailStore":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def connect(self) -> None:
        """Open and authenticate the IMAP session.

        Raises:
            ConfigurationError: If no username is configured.
            AuthenticationError: If login fails after all retries.
        """

        if self._client is not None:
            return

        username = self.settings.imap_username
        if not username:
            raise ConfigurationError(
                "IMAP username is not configured. Set MAIL_INTENT_IMAP_USERNAME."
            )

        logger.info(
            "imap_connect_started",
            host=self.settings.imap_host,
            port=self.settings.imap_port,
            username=username,
            oauth=self.settings.imap_password is None,
        )

        token: str | None = None
        if self.settings.imap_password is None:
            from mail_intent.imap.auth import load_access_token

            token = await asyncio.to_thread(load_access_token, self.settings)

        connect = retry_on_failure(max_retries=self.settings.connect_retries)(self._open)
        try:
            self._client = await connect(username, token)
        except Exception as exc:  # noqa: BLE001
            logger.exception("imap_connect_failed", error=str(exc))
            raise AuthenticationError(str(exc)) from exc

        logger.info("imap_connect_completed")

    async def close(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        try:
            await asyncio.to_thread(client.logout)
        except Exception as exc:  # noqa: BLE001
            logger.warning("imap_logout_failed", error=str(exc))

    async def select_mailbox(self, name: str) -> MailboxStatus:
        """Select a mailbox read-only and report its size and next UID.

        Raises:
            ExecutionError: If the mailbox cannot be selected.
        """

        client = self._ensure_connected()
        try:
            status = await asyncio.to_thread(self._select_sync, client, name)
        except Exception as exc:  # noqa: BLE001
            logger.exception("imap_select_failed", mailbox=name, error=str(exc))
            raise ExecutionError(f"failed to select {name}: {exc}") from exc

        logger.debug(
            "imap_mailbox_selected",
            mailbox=name,
            message_count=status.message_count,
            uid_next=status.uid_next,
        )
        return status

    async def search(self, criteria: StoreCriteria) -> list[int]:
        """Run a UID SEARCH in the selected mailbox.

        Raises:
            ExecutionError: If the search fails.
        """

        client = self._ensure_connected()
        tokens = criteria_to_imap(criteria)
        charset = search_charset(tokens)
        logger.info("imap_search", criteria=[str(t) for t in tokens], charset=charset)
        try:
            uids = await asyncio.to_thread(client.search, tokens, charset)
        except Exception as exc:  # noqa: BLE001
            logger.exception("imap_search_failed", error=str(exc))
            raise ExecutionError(f"search failed: {exc}") from exc
        return [int(uid) for uid in uids]

    def fetch(
        self, uids: Sequence[int], fields: Sequence[FetchField]
    ) -> AsyncIterator[MailMessage]:
        """Fetch the given UIDs in a single batched request."""
        return self._stream(list(uids), fields)

    def fetch_uid_range(
        self, start: int, end: int, fields: Sequence[FetchField]
    ) -> AsyncIterator[MailMessage]:
        """Fetch every message whose UID lies in ``start..end``."""
        return self._stream(f"{start}:{end}", fields)

    def _stream(self, message_set: Any, fields: Sequence[FetchField]) -> AsyncIterator[MailMessage]:
        client = self._ensure_connected()
        items = fetch_items(fields, self.settings.body_fetch_bytes)

        async def produce(emit: Emitter[MailMessage]) -> None:
            logger.debug("imap_fetch", items=items)
            try:
                response = await asyncio.to_thread(client.fetch, message_set, items)
            except Exception as exc:  # noqa: BLE001
                logger.exception("imap_fetch_failed", error=str(exc))
                raise ExecutionError(f"fetch failed: {exc}") from exc
            for uid, data in response.items():
                await emit(message_from_fetch(uid, data))

        return stream(produce, maxsize=self.settings.fetch_queue_size)

    def _ensure_connected(self) -> Any:
        if self._client is None:
            raise AuthenticationError(
                "IMAP store is not connected. Call await ImapMailStore.connect() first."
            )
        return self._client

    async def _open(self, username: str, token: str | None) -> Any:
        return await asyncio.to_thread(self._open_sync, username, token)

    def _open_sync(self, username: str, token: str | None) -> Any:
        # Imported lazily to keep import-time cost low and tests fast.
        from imapclient import IMAPClient

        client = IMAPClient(self.settings.imap_host, port=self.settings.imap_port, ssl=True)
        try:
            if token is not None:
                client.oauth2_login(username, token)
            else:
                client.login(username, self.settings.imap_password)
        except Exception:
            client.shutdown()
            raise
        return client

    @staticmethod
    def _select_sync(client: Any, name: str) -> MailboxStatus:
        response = client.select_folder(name, readonly=True)
        status = mailbox_status(name, response)
        if b"UIDNEXT" not in response:
            # Not every server sends UIDNEXT with SELECT; ask for it explicitly.
            extra = client.folder_status(name, ["MESSAGES", "UIDNEXT"])
            status = mailbox_status(name, {**response, **extra})
        return status
