"""Helpers for converting between engine models and IMAPClient data."""

from __future__ import annotations

import email
from collections.abc import Iterable, Mapping
from datetime import datetime
from email import policy
from email.header import decode_header, make_header
from typing import Any

from mail_intent.engine.criteria import StoreCriteria
from mail_intent.models import FetchField, MailAddress, MailboxStatus, MailMessage


def _get(data: Mapping[Any, Any], key: str) -> Any:
    value = data.get(key.encode())
    if value is None:
        value = data.get(key)
    return value


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _header_text(value: Any) -> str:
    raw = _text(value)
    if not raw:
        return ""
    try:
        return str(make_header(decode_header(raw)))
    except (LookupError, UnicodeDecodeError, ValueError):
        # Unknown charset or malformed encoded word; show it undecoded.
        return raw


def _address(value: Any) -> MailAddress:
    name = _header_text(getattr(value, "name", None)) or None
    return MailAddress(
        mailbox=_text(getattr(value, "mailbox", None)),
        host=_text(getattr(value, "host", None)),
        name=name,
    )


def _body_text(raw: Any) -> str:
    if not isinstance(raw, (bytes, bytearray)) or not raw:
        return ""
    parsed = email.message_from_bytes(bytes(raw), policy=policy.default)
    part = parsed.get_body(preferencelist=("plain", "html"))
    if part is None:
        return ""
    try:
        return part.get_content()
    except (LookupError, KeyError, ValueError):
        # Unknown charset or a part cut short by a partial fetch.
        return ""


def criteria_to_imap(criteria: StoreCriteria) -> list[Any]:
    """Build IMAP SEARCH tokens, ANDed by juxtaposition."""

    tokens: list[Any] = []
    if criteria.sender_header is not None:
        tokens.extend(["HEADER", "From", criteria.sender_header])
    if criteria.since is not None:
        tokens.extend(["SINCE", criteria.since])
    if criteria.before is not None:
        tokens.extend(["BEFORE", criteria.before])
    if criteria.text is not None:
        tokens.extend(["TEXT", criteria.text])
    return tokens or ["ALL"]


def search_charset(tokens: Iterable[Any]) -> str | None:
    """Charset to declare for SEARCH; None keeps the server default (US-ASCII)."""
    if all(str(token).isascii() for token in tokens):
        return None
    return "UTF-8"


def fetch_items(fields: Iterable[FetchField], body_limit: int | None = None) -> list[str]:
    """FETCH item names. With ``body_limit`` the body is a partial fetch of its first bytes."""
    items = []
    for field in fields:
        if field is FetchField.BODY_PEEK and body_limit is not None:
            items.append(f"{field.value}<0.{body_limit}>")
        else:
            items.append(field.value)
    return items


def mailbox_status(name: str, response: Mapping[Any, Any]) -> MailboxStatus:
    """Convert a SELECT (or STATUS) response into a MailboxStatus."""

    exists = _get(response, "EXISTS") or _get(response, "MESSAGES") or 0
    uid_next = _get(response, "UIDNEXT") or 1
    return MailboxStatus(name=name, message_count=int(exists), uid_next=int(uid_next))


def message_from_fetch(uid: int, data: Mapping[Any, Any]) -> MailMessage:
    """Convert one IMAPClient FETCH entry into a MailMessage.

    Args:
        uid: The message UID (the key of the FETCH response dict).
        data: The per-message data dict returned by IMAPClient.fetch.

    Returns:
        MailMessage: Parsed message. ``has_envelope`` is False when the server
        did not return an ENVELOPE item.
    """

    envelope = _get(data, "ENVELOPE")
    internal_date = _get(data, "INTERNALDATE")
    # A partial fetch comes back keyed by its origin octet.
    raw_body = _get(data, "BODY[]<0>")
    body = _body_text(raw_body if raw_body is not None else _get(data, "BODY[]"))
    resolved_uid = _get(data, "UID") or uid

    if not isinstance(internal_date, datetime):
        internal_date = None

    if envelope is None:
        return MailMessage(
            uid=int(resolved_uid),
            has_envelope=False,
            internal_date=internal_date,
            body=body,
        )

    envelope_date = getattr(envelope, "date", None)
    return MailMessage(
        uid=int(resolved_uid),
        from_addresses=[_address(a) for a in (getattr(envelope, "from_", None) or ())],
        subject=_header_text(getattr(envelope, "subject", None)),
        date=envelope_date if isinstance(envelope_date, datetime) else None,
        internal_date=internal_date,
        body=body,
    )
