"""Unit tests for intent validation."""

from datetime import datetime

import pytest

from mail_intent.exceptions import ValidationError
from mail_intent.intent.validator import validate
from mail_intent.models import CommandType, Intent


class TestValidate:
    """Test suite for validate()."""

    def test_search_with_keywords_only(self) -> None:
        """Test that keywords alone satisfy a search."""
        intent = Intent(command=CommandType.SEARCH, keywords=["invite"])

        validate(intent)

    def test_search_with_sender_only(self) -> None:
        """Test that a sender alone satisfies a search."""
        validate(Intent(command=CommandType.SEARCH, sender="hr"))

    def test_search_without_keywords_or_sender(self) -> None:
        """Test that an empty search is rejected."""
        with pytest.raises(ValidationError, match="search requires at least keywords or sender"):
            validate(Intent(command=CommandType.SEARCH))

    def test_listen_requires_sender(self) -> None:
        """Test that listen needs a sender."""
        with pytest.raises(ValidationError, match="listen requires a sender"):
            validate(Intent(command=CommandType.LISTEN))

    def test_listen_rejects_keywords(self) -> None:
        """Test that listen cannot carry keywords."""
        intent = Intent(command=CommandType.LISTEN, sender="hr", keywords=["x"])

        with pytest.raises(ValidationError, match="listen does not support keywords"):
            validate(intent)

    def test_none_intent(self) -> None:
        """Test that a missing intent is an error."""
        with pytest.raises(ValidationError, match="intent cannot be nil"):
            validate(None)

    def test_does_not_mutate(self) -> None:
        """Test that validation leaves the intent untouched."""
        intent = Intent(command=CommandType.SEARCH, keywords=["a"], sender="b")
        intent.set_date_range(datetime(2024, 1, 1), datetime(2024, 1, 2))
        before = intent.model_copy(deep=True)

        validate(intent)

        assert intent == before
