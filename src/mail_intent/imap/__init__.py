"""IMAP mail store: session handling, authentication and response parsing."""

from .client import ImapMailStore, MailStore

__all__ = ["ImapMailStore", "MailStore"]
