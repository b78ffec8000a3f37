"""One-shot search execution."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from mail_intent.config import Settings
from mail_intent.engine.criteria import translate
from mail_intent.engine.filters import matches
from mail_intent.models import FetchField, Intent, MailMessage, SearchOutcome, SearchResult

if TYPE_CHECKING:
    from mail_intent.imap.client import MailStore

logger = structlog.get_logger()

SEARCH_FIELDS = (FetchField.UID, FetchField.ENVELOPE, FetchField.INTERNAL_DATE, FetchField.BODY_PEEK)


def to_result(message: MailMessage) -> SearchResult:
    sender = message.sender
    return SearchResult(
        uid=message.uid,
        sender=sender.display if sender is not None else "Unknown",
        subject=message.subject,
        date=message.received_at,
    )


class SearchExecutor:
    """Runs a search intent: select, store search, batched fetch, local filter.

    Results keep the order in which the store streamed them.
    """

    def __init__(
        self,
        store: "MailStore",
        settings: Settings | None = None,
        mailbox: str | None = None,
    ) -> None:
        from mail_intent.config import get_settings

        self.store = store
        self.settings = settings or get_settings()
        self.mailbox = mailbox or self.settings.search_mailbox

    async def search(self, intent: Intent) -> SearchOutcome:
        """Execute a search intent.

        Args:
            intent: A validated search intent.

        Returns:
            SearchOutcome: Matching messages; empty when nothing matched.

        Raises:
            ExecutionError: If selecting, searching or fetching fails.
        """

        status = await self.store.select_mailbox(self.mailbox)
        logger.info(
            "search_started",
            mailbox=status.name,
            message_count=status.message_count,
            keywords=intent.keywords,
            sender=intent.sender,
            all_from_sender=intent.all_from_sender,
        )

        criteria = translate(intent)
        uids = await self.store.search(criteria)
        logger.info("search_store_matches", count=len(uids), local_checks=criteria.local_checks)
        if not uids:
            return SearchOutcome()

        results: list[SearchResult] = []
        rejected = 0
        async for message in self.store.fetch(uids, SEARCH_FIELDS):
            if not message.has_envelope:
                continue
            if not matches(message, intent):
                rejected += 1
                continue
            results.append(to_result(message))

        logger.info("search_completed", count=len(results), rejected_locally=rejected)
        return SearchOutcome(results=results)
