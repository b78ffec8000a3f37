"""Translation of intents into store-side search criteria.

The store only filters coarsely. It has no domain-wildcard sender operator
and cannot OR several free-text terms, so a wildcard sender is never sent to
the store and only the first keyword is. Whatever the store cannot express
is listed in :attr:`StoreCriteria.local_checks` and restored by the local
filter.
"""

from __future__ import annotations

from datetime import date, timedelta

from pydantic import BaseModel, Field

from mail_intent.models import Intent

SENDER_WILDCARD = "sender_wildcard"
KEYWORDS = "keywords"
DATE_RANGE = "date_range"


class StoreCriteria(BaseModel):
    """Constraints the mail store evaluates natively."""

    sender_header: str | None = Field(default=None, description="Exact From header match")
    since: date | None = Field(default=None, description="Inclusive lower date bound")
    before: date | None = Field(default=None, description="Exclusive upper date bound")
    text: str | None = Field(default=None, description="Single free-text term")
    local_checks: list[str] = Field(
        default_factory=list,
        description="Constraints the store cannot apply exactly",
    )

    @property
    def is_empty(self) -> bool:
        return (
            self.sender_header is None
            and self.since is None
            and self.before is None
            and self.text is None
        )


def translate(intent: Intent) -> StoreCriteria:
    """Map the store-expressible subset of an intent to store criteria.

    Args:
        intent: A validated intent.

    Returns:
        StoreCriteria: Store criteria plus the checks left to the local filter.
    """

    criteria = StoreCriteria()

    if intent.sender:
        if intent.all_from_sender:
            criteria.local_checks.append(SENDER_WILDCARD)
        else:
            criteria.sender_header = intent.sender

    if intent.date_range is not None:
        # SINCE/BEFORE compare calendar days only and BEFORE is exclusive.
        criteria.since = intent.date_range.start.date()
        criteria.before = intent.date_range.end.date() + timedelta(days=1)
        criteria.local_checks.append(DATE_RANGE)

    if intent.keywords:
        criteria.text = intent.keywords[0]
        criteria.local_checks.append(KEYWORDS)

    return criteria
