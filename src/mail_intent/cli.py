"""Command-line interface for Mail Intent Engine.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable

import structlog

from mail_intent import __version__
from mail_intent.config import Settings, get_settings
from mail_intent.engine import IntentEngine
from mail_intent.exceptions import (
    ExecutionError,
    IntentEngineError,
    ParseError,
    ValidationError,
)
from mail_intent.imap.client import ImapMailStore
from mail_intent.intent.parser import USAGE, CommandParser, parse_examples
from mail_intent.intent.validator import validate
from mail_intent.models import CommandType, Notification, SearchOutcome

logger = structlog.get_logger()

PROMPT = "\nIntent > "
QUIT_COMMANDS = frozenset({"quit", "exit"})
HELP_COMMANDS = frozenset({"help", "examples"})

ReadLine = Callable[[str], Awaitable[str]]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mail-intent", description="Mail Intent Engine")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("shell", help="Interactive prompt (default)")

    run_parser = subparsers.add_parser("run", help="Run a single command and exit")
    run_parser.add_argument("text", help='Command, e.g. \'search for "invite" from "hr"\'')

    parse_parser = subparsers.add_parser(
        "parse",
        help="Parse and validate a command, print the intent as JSON (no mailbox access)",
    )
    parse_parser.add_argument("text", help="Command to parse")

    return parser


def _print_examples() -> None:
    print("\nExample commands:")
    for i, example in enumerate(parse_examples(), start=1):
        print(f"  {i}. {example}")


def _print_outcome(outcome: SearchOutcome) -> None:
    if outcome.count == 0:
        print("No messages found matching your criteria.")
        return

    print(f"=== Search Results ({outcome.count}) ===\n")
    for i, result in enumerate(outcome.results, start=1):
        date_part = result.date.strftime("%Y-%m-%d %H:%M:%S") if result.date else "(no date)"
        print(f"[{i}] From: {result.sender}")
        print(f"    Subject: {result.subject}")
        print(f"    Date: {date_part}")
        print()


def _print_notification(notification: Notification) -> None:
    print("NEW EMAIL RECEIVED!")
    print(f"   From: {notification.from_address}")
    print(f"   Subject: {notification.subject}")
    print(f"   Date: {notification.received_at}\n")


async def _read_line(prompt: str) -> str:
    return await asyncio.to_thread(input, prompt)


async def _run_command(engine: IntentEngine, text: str) -> int:
    """Run one command, reporting any error as a single line.

    Returns:
        Exit code (0 for success, 1 for a rejected or failed command).
    """

    try:
        intent = engine.prepare(text)
    except ParseError as exc:
        print(f"Parse error: {exc}")
        if USAGE not in str(exc):
            print(f"\n{USAGE}")
        return 1
    except ValidationError as exc:
        print(f"Validation error: {exc}")
        return 1

    if intent.command is CommandType.LISTEN:
        print(f"Watching for emails from: {intent.sender} (press Ctrl+C to stop)")

    try:
        outcome = await engine.execute(intent)
    except ExecutionError as exc:
        print(f"Execution error: {exc}")
        return 1

    if outcome is not None:
        _print_outcome(outcome)
    return 0


async def run_shell(engine: IntentEngine, read_line: ReadLine = _read_line) -> int:
    """Interactive read-eval loop.

    ``help``/``examples`` print the example commands and ``quit``/``exit``
    leave the loop. Every other non-empty line is run as a command; errors
    are reported and the loop continues.
    """

    _print_examples()
    print("\nType 'help' for more examples, 'quit' to exit")

    while True:
        try:
            line = await read_line(PROMPT)
        except EOFError:
            break

        text = line.strip()
        if not text:
            continue
        if text.lower() in QUIT_COMMANDS:
            break
        if text.lower() in HELP_COMMANDS:
            _print_examples()
            continue

        await _run_command(engine, text)

    print("Goodbye!")
    return 0


def _cmd_parse(text: str) -> int:
    try:
        intent = CommandParser().parse(text)
        validate(intent)
    except (ParseError, ValidationError) as exc:
        print(f"Error: {exc}")
        return 1

    print(json.dumps(intent.model_dump(mode="json"), indent=2))
    return 0


async def _cmd_with_store(settings: Settings, text: str | None) -> int:
    async with ImapMailStore(settings) as store:
        engine = IntentEngine(store, settings, on_notify=_print_notification)
        if text is None:
            return await run_shell(engine)
        return await _run_command(engine, text)


def _configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Mail Intent Engine CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()
    _configure_logging(settings)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    if parsed.command == "parse":
        return _cmd_parse(parsed.text)

    logger.info("mail_intent_started", version=__version__, debug=settings.debug)

    text = parsed.text if parsed.command == "run" else None
    try:
        return asyncio.run(_cmd_with_store(settings, text))
    except KeyboardInterrupt:
        return 130
    except IntentEngineError as exc:
        logger.error("mail_intent_failed", error=str(exc))
        print(f"Error: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
