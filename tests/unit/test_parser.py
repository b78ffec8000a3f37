"""Unit tests for the command parser."""

import re
from datetime import datetime

import pytest

from mail_intent.exceptions import DateResolutionError, ParseError
from mail_intent.intent.parser import (
    GRAMMAR,
    CommandParser,
    GrammarRule,
    parse,
    parse_examples,
    parse_sender,
    split_keywords,
)
from mail_intent.intent.validator import validate
from mail_intent.models import CommandType, Intent


class TestParse:
    """Test suite for parse()."""

    def test_search_with_split_keywords(self) -> None:
        """Test keyword splitting and a literal sender."""
        intent = parse('search for "a,b" from "x"')

        assert intent.command is CommandType.SEARCH
        assert intent.keywords == ["a", "b"]
        assert intent.sender == "x"
        assert intent.all_from_sender is False
        assert intent.date_range is None

    def test_listen_wildcard_domain(self) -> None:
        """Test the fallback listen rule with a *@ wildcard."""
        intent = parse('listen from "*@example.com"')

        assert intent.command is CommandType.LISTEN
        assert intent.keywords == []
        assert intent.sender == "example.com"
        assert intent.all_from_sender is True

    def test_bare_star_wildcard(self) -> None:
        """Test that a leading * alone also marks a wildcard."""
        intent = parse('search for "job" from "*recruiters.com"')

        assert intent.sender == "recruiters.com"
        assert intent.all_from_sender is True

    def test_all_delimiters_and_empty_fragments(self) -> None:
        """Test , | & delimiters; empty fragments are dropped."""
        intent = parse('search for " interview | assessment && offer ,," from "hr"')

        assert intent.keywords == ["interview", "assessment", "offer"]

    def test_duplicate_keywords_kept_in_order(self) -> None:
        """Test that keyword order and duplicates are preserved."""
        intent = parse('search for "b, a, b" from "hr"')

        assert intent.keywords == ["b", "a", "b"]

    @pytest.mark.parametrize(
        "text",
        [
            'SEARCH FOR "x" FROM "y"',
            'search on "x" from "y"',
            'search "x" from "y"',
            '   search for "x" from "y"   ',
        ],
    )
    def test_primary_grammar_variants(self, text: str) -> None:
        """Test case-insensitivity and the optional for/on word."""
        intent = parse(text)

        assert intent.command is CommandType.SEARCH
        assert intent.keywords == ["x"]
        assert intent.sender == "y"

    def test_date_expression(self, now: datetime) -> None:
        """Test the trailing bracketed date expression."""
        intent = parse('search for "invite" from "hr@company.com" [recent]', now)

        assert intent.date_range is not None
        assert intent.date_range.start == datetime(2024, 3, 14, 0, 0, 0)
        assert intent.date_range.end == datetime(2024, 3, 15, 23, 59, 59)

    def test_date_span(self) -> None:
        """Test an explicit date span."""
        intent = parse('search for "job" from "careers@company.com" [2024-01-01 to 2024-01-31]')

        assert intent.date_range is not None
        assert intent.date_range.start == datetime(2024, 1, 1, 0, 0, 0)
        assert intent.date_range.end == datetime(2024, 1, 31, 23, 59, 59)

    def test_unresolvable_date(self) -> None:
        """Test that a bad date expression fails parsing."""
        with pytest.raises(DateResolutionError, match="invalid date range"):
            parse('search for "x" from "y" [someday]')

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_empty_input(self, text: str) -> None:
        """Test that blank input is rejected."""
        with pytest.raises(ParseError, match="empty command"):
            parse(text)

    @pytest.mark.parametrize(
        "text",
        [
            "search for invite from hr",
            'delete for "x" from "y"',
            'search for "" from "y"',
            'search for "x"',
            'listen to "x"',
            'search for "x" from "y" [recent] extra',
        ],
    )
    def test_no_grammar_matches(self, text: str) -> None:
        """Test that text outside the grammar is rejected with usage."""
        with pytest.raises(ParseError, match="Expected format"):
            parse(text)

    def test_listen_with_keywords_rejected(self) -> None:
        """Test that listen keywords are rejected by the parser itself."""
        with pytest.raises(ParseError, match="does not support keywords"):
            parse('listen for "updates" from "noreply"')

    def test_listen_with_only_delimiters_accepted(self) -> None:
        """Test that a keyword span with no fragments yields no keywords."""
        intent = parse('listen for ", |" from "noreply"')

        assert intent.command is CommandType.LISTEN
        assert intent.keywords == []

    def test_parse_is_deterministic(self, now: datetime) -> None:
        """Test that identical text yields identical intents."""
        text = 'search for "interview, assessment" from "*@recruiters.com" [last 7 days]'

        assert parse(text, now) == parse(text, now)

    def test_examples_parse_and_validate(self, now: datetime) -> None:
        """Test that every advertised example is a valid command."""
        for example in parse_examples():
            validate(parse(example, now))


class TestHelpers:
    """Test suite for parser helpers."""

    def test_split_keywords(self) -> None:
        """Test splitting and trimming."""
        assert split_keywords("a , b|c&d") == ["a", "b", "c", "d"]
        assert split_keywords(" , ") == []

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("hr@company.com", ("hr@company.com", False)),
            ("*@company.com", ("company.com", True)),
            ("*company", ("company", True)),
            ("@company.com", ("@company.com", False)),
            (" *@x.org ", ("x.org", True)),
        ],
    )
    def test_parse_sender(self, value: str, expected: tuple[str, bool]) -> None:
        """Test wildcard prefix stripping."""
        assert parse_sender(value) == expected


class TestCommandParser:
    """Test suite for the grammar table."""

    def test_rules_tried_in_order(self) -> None:
        """Test that the full rule wins over the listen fallback."""
        assert [rule.name for rule in GRAMMAR] == ["full", "listen"]

    def test_custom_rule_extends_grammar(self) -> None:
        """Test that a new command shape is just another table entry."""

        def extract_watch(match: re.Match[str], now: datetime | None) -> Intent:
            intent = Intent(command=CommandType.LISTEN)
            intent.set_sender(match.group(1))
            return intent

        parser = CommandParser(
            GRAMMAR + (GrammarRule("watch", re.compile(r"^watch\s+(\S+)$"), extract_watch),)
        )
        intent = parser.parse("watch boss@company.com")

        assert intent.command is CommandType.LISTEN
        assert intent.sender == "boss@company.com"
