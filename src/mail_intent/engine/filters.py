"""Local filter.

Re-applies every intent constraint with exact semantics against messages the
store returned. Sender, keyword and date checks are ANDed; a constraint that
is absent from the intent always passes.
"""

from __future__ import annotations

from collections.abc import Iterable

from mail_intent.intent.dates import to_local_naive
from mail_intent.models import DateRange, Intent, MailMessage


def sender_matches(
    from_address: str,
    sender: str,
    all_from_sender: bool = False,
    display: str | None = None,
) -> bool:
    """Case-insensitive sender check.

    A literal sender is a substring of ``display`` (the ``Name <address>``
    string a store's From header search sees) or of the bare address. A
    domain-wildcard sender matches addresses ending in ``@sender`` or
    containing ``sender`` anywhere.
    """
    if not sender:
        return True
    address = from_address.lower()
    wanted = sender.lower()
    if all_from_sender:
        return address.endswith("@" + wanted) or wanted in address
    return wanted in address or wanted in (display or "").lower()


def keywords_match(message: MailMessage, keywords: list[str]) -> bool:
    if not keywords:
        return True
    haystack = f"{message.subject} {message.body}".lower()
    return any(keyword.lower() in haystack for keyword in keywords)


def date_in_range(message: MailMessage, date_range: DateRange | None) -> bool:
    if date_range is None:
        return True
    received = message.received_at
    if received is None:
        return False
    return date_range.contains(to_local_naive(received))


def matches(message: MailMessage, intent: Intent) -> bool:
    """Return True when the message satisfies every constraint of the intent."""
    return (
        sender_matches(
            message.from_address,
            intent.sender,
            intent.all_from_sender,
            display=message.from_display,
        )
        and keywords_match(message, intent.keywords)
        and date_in_range(message, intent.date_range)
    )


def filter_messages(messages: Iterable[MailMessage], intent: Intent) -> list[MailMessage]:
    return [message for message in messages if matches(message, intent)]
