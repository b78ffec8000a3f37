"""Mail Intent Engine - short commands for searching and watching a mailbox.

This package turns commands such as ``search for "invite" from "hr@company.com"
[recent]`` or ``listen from "*@company.com"`` into structured intents and runs
them against an IMAP mailbox.
"""

__version__ = "0.1.0"
__author__ = "Trickl"

from mail_intent.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__", "__author__"]
