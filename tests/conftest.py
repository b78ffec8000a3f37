"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from datetime import datetime

import pytest

from mail_intent.engine.criteria import StoreCriteria
from mail_intent.exceptions import ExecutionError
from mail_intent.models import FetchField, MailAddress, MailboxStatus, MailMessage


class FakeMailStore:
    """In-memory mail store with crude server-side search semantics."""

    def __init__(self, messages: Sequence[MailMessage] = ()) -> None:
        self.messages: list[MailMessage] = []
        self.uid_next = 1
        self.selected: list[str] = []
        self.searches: list[StoreCriteria] = []
        self.fetched_uids: list[list[int]] = []
        self.fetched_ranges: list[tuple[int, int]] = []
        self.search_override: list[int] | None = None
        self.fail_selects = 0
        self.fail_fetches = 0
        for message in messages:
            self.deliver(message)

    def deliver(self, message: MailMessage) -> None:
        self.messages.append(message)
        self.uid_next = max(self.uid_next, message.uid + 1)

    async def select_mailbox(self, name: str) -> MailboxStatus:
        self.selected.append(name)
        if self.fail_selects:
            self.fail_selects -= 1
            raise ExecutionError(f"failed to select {name}: connection reset")
        return MailboxStatus(name=name, message_count=len(self.messages), uid_next=self.uid_next)

    async def search(self, criteria: StoreCriteria) -> list[int]:
        self.searches.append(criteria)
        if self.search_override is not None:
            return list(self.search_override)
        return [m.uid for m in self.messages if self._store_matches(m, criteria)]

    def fetch(
        self, uids: Sequence[int], fields: Sequence[FetchField]
    ) -> AsyncIterator[MailMessage]:
        wanted = set(uids)
        self.fetched_uids.append(sorted(wanted))
        return self._stream([m for m in self.messages if m.uid in wanted])

    def fetch_uid_range(
        self, start: int, end: int, fields: Sequence[FetchField]
    ) -> AsyncIterator[MailMessage]:
        self.fetched_ranges.append((start, end))
        return self._stream([m for m in self.messages if start <= m.uid <= end])

    async def _stream(self, messages: list[MailMessage]) -> AsyncIterator[MailMessage]:
        if self.fail_fetches:
            self.fail_fetches -= 1
            raise ExecutionError("fetch failed: connection reset")
        for message in messages:
            yield message

    @staticmethod
    def _store_matches(message: MailMessage, criteria: StoreCriteria) -> bool:
        received = message.received_at
        if criteria.sender_header is not None:
            # Like IMAP HEADER From: the whole header, display name included.
            if criteria.sender_header.lower() not in message.from_display.lower():
                return False
        if criteria.since is not None and (received is None or received.date() < criteria.since):
            return False
        if criteria.before is not None and (received is None or received.date() >= criteria.before):
            return False
        if criteria.text is not None:
            if criteria.text.lower() not in f"{message.subject} {message.body}".lower():
                return False
        return True


def build_message(
    uid: int,
    sender: str = "noreply@example.com",
    subject: str = "",
    body: str = "",
    received: datetime | None = None,
    name: str | None = None,
) -> MailMessage:
    mailbox, _, host = sender.partition("@")
    return MailMessage(
        uid=uid,
        from_addresses=[MailAddress(mailbox=mailbox, host=host, name=name)],
        subject=subject,
        body=body,
        internal_date=received or datetime(2024, 3, 15, 9, 0, 0),
    )


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for relative date expressions."""
    return datetime(2024, 3, 15, 10, 30, 0)


@pytest.fixture
def make_message():
    """Factory for MailMessage instances."""
    return build_message


@pytest.fixture
def fake_store() -> FakeMailStore:
    """Provide an empty in-memory mail store."""
    return FakeMailStore()


@pytest.fixture
def test_settings():
    """Provide settings with a short poll interval for testing."""
    from mail_intent.config import Settings

    return Settings(
        imap_username="user@example.com",
        poll_interval=0.01,
        log_level="DEBUG",
        debug=True,
    )
