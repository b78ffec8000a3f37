"""Command parsing, date resolution and intent validation."""

from .dates import resolve
from .parser import CommandParser, GrammarRule, parse, parse_examples
from .validator import validate

__all__ = ["CommandParser", "GrammarRule", "parse", "parse_examples", "resolve", "validate"]
