"""Command parser.

Commands follow a small fixed grammar::

    <search|listen> [for|on] "<keywords>" from "<sender>" [<date-expr>]
    listen from "<sender>"

The grammar is an ordered table of rules. Each rule pairs a regular
expression with an extractor that builds an :class:`~mail_intent.models.Intent`
from the match; the first rule whose pattern matches wins.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import structlog

from mail_intent.exceptions import DateResolutionError, ParseError
from mail_intent.intent.dates import resolve
from mail_intent.models import CommandType, Intent

logger = structlog.get_logger()

USAGE = (
    "Expected format:\n"
    '  SEARCH for "keywords" from "sender" [date_range]\n'
    '  LISTEN from "sender"'
)

EXAMPLE_COMMANDS: tuple[str, ...] = (
    'search for "updates" from "noreply"',
    'search for "invite" from "hr@company.com" [recent]',
    'search for "assessment" from "noreply" [yesterday]',
    'search for "updates" from "noreply" [last 7 days]',
    'search for "job" from "careers@company.com" [2024-01-01 to 2024-01-31]',
    'listen from "hr@exonMobile.com"',
    'listen from "*@exonMobileHr.com"',
    'search for "interview, assessment" from "*@recruiters.com" [recent]',
)

KEYWORD_DELIMITERS = re.compile(r"[,|&]")

Extractor = Callable[[re.Match[str], datetime | None], Intent]


@dataclass(frozen=True)
class GrammarRule:
    """One command shape: a pattern and the extractor for its matches."""

    name: str
    pattern: re.Pattern[str]
    extractor: Extractor


def parse_examples() -> list[str]:
    """Return example commands for user reference."""
    return list(EXAMPLE_COMMANDS)


def split_keywords(span: str) -> list[str]:
    """Split a quoted keyword span on ``,``, ``|`` and ``&``.

    Empty fragments are dropped.
    """
    return [part.strip() for part in KEYWORD_DELIMITERS.split(span) if part.strip()]


def parse_sender(value: str) -> tuple[str, bool]:
    """Strip a ``*`` or ``*@`` wildcard prefix from a sender.

    Returns:
        The sender and whether it is a domain wildcard.
    """
    sender = value.strip()
    if not sender.startswith("*"):
        return sender, False
    sender = sender[1:]
    if sender.startswith("@"):
        sender = sender[1:]
    return sender, True


def _command_type(word: str) -> CommandType:
    try:
        return CommandType(word.lower())
    except ValueError as exc:
        raise ParseError(f"unknown command: {word.lower()}") from exc


def _extract_full(match: re.Match[str], now: datetime | None) -> Intent:
    command, keywords, sender, date_expr = match.groups()
    intent = Intent(command=_command_type(command))

    for keyword in split_keywords(keywords):
        intent.add_keyword(keyword)

    sender_value, all_from_sender = parse_sender(sender)
    if sender_value or all_from_sender:
        intent.set_sender(sender_value, all_from_sender)

    if date_expr is not None:
        try:
            intent.date_range = resolve(date_expr, now)
        except DateResolutionError as exc:
            raise DateResolutionError(f"invalid date range: {exc}") from exc

    if intent.command is CommandType.LISTEN and intent.keywords:
        raise ParseError(
            "LISTEN command does not support keywords, it only watches for emails from sender"
        )

    return intent


def _extract_listen(match: re.Match[str], now: datetime | None) -> Intent:
    intent = Intent(command=CommandType.LISTEN)
    sender_value, all_from_sender = parse_sender(match.group(1))
    intent.set_sender(sender_value, all_from_sender)
    return intent


GRAMMAR: tuple[GrammarRule, ...] = (
    GrammarRule(
        name="full",
        pattern=re.compile(
            r'^\s*(search|listen)\s+(?:for|on)?\s*"([^"]+)"\s+from\s+"([^"]+)"'
            r"(?:\s+\[([^\]]+)\])?\s*$",
            re.IGNORECASE,
        ),
        extractor=_extract_full,
    ),
    GrammarRule(
        name="listen",
        pattern=re.compile(r'^\s*listen\s+from\s+"([^"]+)"\s*$', re.IGNORECASE),
        extractor=_extract_listen,
    ),
)


class CommandParser:
    """Parses command text into intents using an ordered grammar table."""

    def __init__(self, grammar: tuple[GrammarRule, ...] = GRAMMAR) -> None:
        self.grammar = grammar

    def parse(self, text: str, now: datetime | None = None) -> Intent:
        """Parse a command into an intent.

        Args:
            text: Raw command text.
            now: Reference time for relative date expressions.

        Returns:
            Intent: The parsed intent.

        Raises:
            ParseError: If the text is empty, matches no rule, carries an
                unresolvable date expression, or gives keywords to ``listen``.
        """

        stripped = text.strip()
        if not stripped:
            raise ParseError("empty command")

        for rule in self.grammar:
            match = rule.pattern.match(stripped)
            if match is None:
                continue
            intent = rule.extractor(match, now)
            logger.debug("command_parsed", rule=rule.name, command=intent.command.value)
            return intent

        raise ParseError(f"unable to parse command. {USAGE}")


_default_parser = CommandParser()


def parse(text: str, now: datetime | None = None) -> Intent:
    """Parse a command with the default grammar."""
    return _default_parser.parse(text, now)
