"""Structural checks applied to a parsed intent before it is executed."""

from __future__ import annotations

from mail_intent.exceptions import ValidationError
from mail_intent.models import CommandType, Intent


def validate(intent: Intent | None) -> None:
    """Check per-command requirements without modifying the intent.

    Raises:
        ValidationError: If the intent cannot be executed.
    """

    if intent is None:
        raise ValidationError("intent cannot be nil")

    if intent.command is CommandType.SEARCH:
        if not intent.keywords and not intent.sender:
            raise ValidationError("search requires at least keywords or sender")
    elif intent.command is CommandType.LISTEN:
        if not intent.sender:
            raise ValidationError("listen requires a sender")
        if intent.keywords:
            raise ValidationError("listen does not support keywords")
    else:
        raise ValidationError(f"unknown command type: {intent.command}")

    if intent.date_range is not None and intent.date_range.start > intent.date_range.end:
        raise ValidationError("date range start is after its end")
