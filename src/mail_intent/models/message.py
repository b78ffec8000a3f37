"""Mailbox data models.

These models are the mail-store side of the engine: what a selected mailbox
reports, what a fetched message looks like, and what the executors hand back
to the caller.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class FetchField(str, Enum):
    """Message data items that can be requested from the store."""

    UID = "UID"
    ENVELOPE = "ENVELOPE"
    INTERNAL_DATE = "INTERNALDATE"
    BODY_PEEK = "BODY.PEEK[]"


class MailboxStatus(BaseModel):
    """Metadata reported when a mailbox is selected."""

    name: str = Field(description="Mailbox name")
    message_count: int = Field(default=0, description="Number of messages in the mailbox")
    uid_next: int = Field(default=1, description="Next identifier the server will assign")


class MailAddress(BaseModel):
    """A single envelope address."""

    mailbox: str = Field(default="", description="Local part")
    host: str = Field(default="", description="Domain part")
    name: str | None = Field(default=None, description="Personal display name")

    @property
    def address(self) -> str:
        return f"{self.mailbox}@{self.host}"

    @property
    def display(self) -> str:
        """Display string preferring the personal name when present."""
        if self.name:
            return f"{self.name} <{self.address}>"
        return self.address


class MailMessage(BaseModel):
    """A message as fetched from the store.

    ``has_envelope`` is False when the server returned no envelope for the
    message; such messages carry only their identifier.
    """

    uid: int = Field(description="Store identifier (IMAP UID)")
    has_envelope: bool = Field(default=True, description="Whether an envelope was returned")
    from_addresses: list[MailAddress] = Field(default_factory=list, description="From addresses")
    subject: str = Field(default="", description="Subject header")
    date: datetime | None = Field(default=None, description="Envelope Date header")
    internal_date: datetime | None = Field(default=None, description="Server arrival date")
    body: str = Field(default="", description="Decoded text body, empty unless fetched")

    @property
    def sender(self) -> MailAddress | None:
        return self.from_addresses[0] if self.from_addresses else None

    @property
    def from_address(self) -> str:
        """Bare address of the first sender, empty when unknown."""
        sender = self.sender
        return sender.address if sender is not None else ""

    @property
    def from_display(self) -> str:
        """First sender as ``Name <mailbox@host>``, or the bare address."""
        sender = self.sender
        return sender.display if sender is not None else ""

    @property
    def received_at(self) -> datetime | None:
        return self.internal_date or self.date


class SearchResult(BaseModel):
    """One row returned by a search."""

    uid: int = Field(description="Store identifier")
    sender: str = Field(description="Sender display string")
    subject: str = Field(default="", description="Subject header")
    date: datetime | None = Field(default=None, description="Message date")

    def as_row(self) -> dict[str, str]:
        return {
            "from": self.sender,
            "subject": self.subject,
            "date": self.date.strftime("%Y-%m-%d %H:%M:%S") if self.date else "",
        }


class Notification(BaseModel):
    """A new message seen by the watch loop that matched the sender filter."""

    uid: int = Field(description="Store identifier")
    from_address: str = Field(description="Bare sender address")
    subject: str = Field(default="", description="Subject header")
    received_at: datetime | None = Field(default=None, description="Server arrival date")


class SearchOutcome(BaseModel):
    """Everything a search command produced."""

    command: str = Field(default="search", description="Command kind")
    results: list[SearchResult] = Field(default_factory=list, description="Matching messages")

    @property
    def count(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict[str, object]:
        return {
            "command": self.command,
            "count": self.count,
            "results": [result.as_row() for result in self.results],
        }
