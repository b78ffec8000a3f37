"""Data models for Mail Intent Engine.

This module contains the Pydantic models describing a parsed user intent.
Mailbox data models live in :mod:`mail_intent.models.message`.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mail_intent.models.message import (
    FetchField,
    MailAddress,
    MailboxStatus,
    MailMessage,
    Notification,
    SearchOutcome,
    SearchResult,
)


class CommandType(str, Enum):
    """Command kind enumeration."""

    SEARCH = "search"
    LISTEN = "listen"


class DateRange(BaseModel):
    """Inclusive local wall-clock time range."""

    start: datetime = Field(description="Range start (inclusive)")
    end: datetime = Field(description="Range end (inclusive)")

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("date range start must not be after its end")
        return self

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class Intent(BaseModel):
    """A parsed user command.

    The parser creates an intent for a command kind and fills in the
    remaining fields while matching the grammar. The command kind itself
    cannot change after construction.
    """

    command: CommandType = Field(frozen=True, description="Command kind")
    keywords: list[str] = Field(
        default_factory=list,
        description="Keyword fragments, insertion ordered, matched as substrings",
    )
    sender: str = Field(default="", description="Sender address or domain fragment")
    all_from_sender: bool = Field(
        default=False,
        description="Match the sender as a domain fragment instead of a literal",
    )
    date_range: Optional[DateRange] = Field(default=None, description="Optional date range")

    model_config = ConfigDict(validate_assignment=True)

    def add_keyword(self, keyword: str) -> None:
        self.keywords.append(keyword)

    def set_sender(self, sender: str, all_from_sender: bool = False) -> None:
        self.sender = sender
        self.all_from_sender = all_from_sender

    def set_date_range(self, start: datetime, end: datetime) -> None:
        self.date_range = DateRange(start=start, end=end)


__all__ = [
    "CommandType",
    "DateRange",
    "FetchField",
    "Intent",
    "MailAddress",
    "MailboxStatus",
    "MailMessage",
    "Notification",
    "SearchOutcome",
    "SearchResult",
]
