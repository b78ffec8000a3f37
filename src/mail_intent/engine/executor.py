"""Intent engine: parse, validate and dispatch commands to an executor."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from mail_intent.config import Settings
from mail_intent.engine.search import SearchExecutor
from mail_intent.engine.watch import NotifyCallback, WatchExecutor
from mail_intent.exceptions import ValidationError
from mail_intent.intent.parser import CommandParser
from mail_intent.intent.validator import validate
from mail_intent.models import CommandType, Intent, SearchOutcome

if TYPE_CHECKING:
    from mail_intent.imap.client import MailStore

logger = structlog.get_logger()


class IntentEngine:
    """Main entry point for running commands against a mail store.

    The engine shares one store session between its executors and never
    runs two operations on it concurrently.
    """

    def __init__(
        self,
        store: "MailStore",
        settings: Settings | None = None,
        parser: CommandParser | None = None,
        on_notify: NotifyCallback | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Connected mail store.
            settings: Application settings. If None, uses default settings.
            parser: Command parser. If None, uses the default grammar.
            on_notify: Called with each notification produced by a watch.
        """
        from mail_intent.config import get_settings

        self.store = store
        self.settings = settings or get_settings()
        self.parser = parser or CommandParser()
        self.on_notify = on_notify
        logger.info("intent_engine_initialized")

    def prepare(self, text: str, now: datetime | None = None) -> Intent:
        """Parse and validate a command.

        Raises:
            ParseError: If the command cannot be parsed.
            ValidationError: If the parsed intent is not executable.
        """
        intent = self.parser.parse(text, now)
        validate(intent)
        return intent

    async def execute(
        self, intent: Intent, cancel: asyncio.Event | None = None
    ) -> SearchOutcome | None:
        """Execute a validated intent.

        Returns:
            The search outcome for search intents; None once a watch stops.

        Raises:
            ExecutionError: If the store fails during a search or when a
                watch starts.
        """

        if intent.command is CommandType.SEARCH:
            return await SearchExecutor(self.store, self.settings).search(intent)
        if intent.command is CommandType.LISTEN:
            watcher = WatchExecutor(self.store, intent, self.settings, on_notify=self.on_notify)
            await watcher.run(cancel)
            return None
        raise ValidationError(f"unknown command type: {intent.command}")

    async def handle(
        self, text: str, cancel: asyncio.Event | None = None
    ) -> SearchOutcome | None:
        """Parse, validate and execute a command."""
        return await self.execute(self.prepare(text), cancel)
