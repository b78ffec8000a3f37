"""Incremental watch for new mail from a sender.

The watch keeps a watermark, the highest UID already seen. Each poll
re-selects the mailbox and fetches only UIDs above the watermark, folding
every fetched UID into it whether or not the message matches the sender.
The watermark lives in memory only; a restart re-seeds it from the
mailbox's next UID.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import structlog

from mail_intent.config import Settings
from mail_intent.engine.filters import sender_matches
from mail_intent.exceptions import ExecutionError
from mail_intent.models import FetchField, Intent, Notification

if TYPE_CHECKING:
    from mail_intent.imap.client import MailStore

logger = structlog.get_logger()

WATCH_FIELDS = (FetchField.UID, FetchField.ENVELOPE, FetchField.INTERNAL_DATE)

NotifyCallback = Callable[[Notification], "Awaitable[None] | None"]


class Watermark:
    """Highest identifier already processed. Never moves backwards."""

    def __init__(self, value: int = 0) -> None:
        self._value = max(value, 0)

    @property
    def value(self) -> int:
        return self._value

    def advance(self, uid: int) -> bool:
        if uid <= self._value:
            return False
        self._value = uid
        return True

    def has_new(self, uid_next: int) -> bool:
        return uid_next > self._value + 1

    def pending_range(self, uid_next: int) -> tuple[int, int]:
        return self._value + 1, uid_next - 1

    def __repr__(self) -> str:
        return f"Watermark({self._value})"


class WatchExecutor:
    """Polls a mailbox and emits a notification per new message from the sender."""

    def __init__(
        self,
        store: "MailStore",
        intent: Intent,
        settings: Settings | None = None,
        on_notify: NotifyCallback | None = None,
        mailbox: str | None = None,
        interval: float | None = None,
    ) -> None:
        from mail_intent.config import get_settings

        self.store = store
        self.intent = intent
        self.settings = settings or get_settings()
        self.on_notify = on_notify
        self.mailbox = mailbox or self.settings.watch_mailbox
        self.interval = interval if interval is not None else self.settings.poll_interval
        self.watermark: Watermark | None = None

    async def start(self) -> Watermark:
        """Select the mailbox and seed the watermark from its next UID.

        Raises:
            ExecutionError: If the mailbox cannot be selected.
        """

        status = await self.store.select_mailbox(self.mailbox)
        self.watermark = Watermark(status.uid_next - 1)
        logger.info(
            "watch_started",
            mailbox=status.name,
            sender=self.intent.sender,
            watermark=self.watermark.value,
            interval=self.interval,
        )
        return self.watermark

    async def poll_once(self) -> list[Notification]:
        """Run one poll cycle.

        Returns:
            Notifications emitted during this poll, in store order.

        Raises:
            ExecutionError: If selecting or fetching fails. UIDs received
                before the failure stay folded into the watermark.
        """

        if self.watermark is None:
            await self.start()
        watermark = self.watermark
        assert watermark is not None

        status = await self.store.select_mailbox(self.mailbox)
        if not watermark.has_new(status.uid_next):
            return []

        floor = watermark.value
        start, end = watermark.pending_range(status.uid_next)
        logger.debug("watch_fetch", start=start, end=end)

        notifications: list[Notification] = []
        async for message in self.store.fetch_uid_range(start, end, WATCH_FIELDS):
            # A reversed or "*" range can hand back a message we already saw.
            if message.uid <= floor:
                continue
            watermark.advance(message.uid)

            if not message.has_envelope or message.sender is None:
                continue
            if not sender_matches(message.from_address, self.intent.sender):
                continue

            notification = Notification(
                uid=message.uid,
                from_address=message.from_address,
                subject=message.subject,
                received_at=message.internal_date,
            )
            notifications.append(notification)
            await self._emit(notification)

        logger.debug("watch_poll_completed", watermark=watermark.value, notified=len(notifications))
        return notifications

    async def run(self, cancel: asyncio.Event | None = None) -> None:
        """Poll until ``cancel`` is set.

        Starts the watch first unless start() was already called. Without a
        cancel event the loop runs until the task is cancelled.

        Raises:
            ExecutionError: If the initial selection fails, or the optional
                consecutive-error budget is exhausted.
        """

        if self.watermark is None:
            await self.start()
        budget = self.settings.watch_max_consecutive_errors
        failures = 0

        while not await self._wait(cancel):
            try:
                await self.poll_once()
            except ExecutionError as exc:
                failures += 1
                logger.warning(
                    "watch_poll_failed",
                    error=str(exc),
                    consecutive_failures=failures,
                    watermark=self.watermark.value if self.watermark else None,
                )
                if budget is not None and failures >= budget:
                    raise
                continue
            failures = 0

        logger.info("watch_stopped", watermark=self.watermark.value if self.watermark else None)

    async def _wait(self, cancel: asyncio.Event | None) -> bool:
        """Wait one interval. Returns True if cancelled instead."""
        if cancel is None:
            await asyncio.sleep(self.interval)
            return False
        if cancel.is_set():
            return True
        try:
            await asyncio.wait_for(cancel.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            return False
        return True

    async def _emit(self, notification: Notification) -> None:
        logger.info("watch_notification", uid=notification.uid, sender=notification.from_address)
        if self.on_notify is None:
            return
        try:
            result = self.on_notify(notification)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:  # noqa: BLE001
            # The UID is already behind the watermark; the watch carries on.
            logger.exception("watch_notify_failed", uid=notification.uid, error=str(exc))
