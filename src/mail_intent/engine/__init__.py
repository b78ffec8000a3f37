"""Execution of parsed intents against a mail store."""

from .criteria import StoreCriteria, translate
from .filters import filter_messages, matches
from .search import SearchExecutor
from .watch import Watermark, WatchExecutor
from .executor import IntentEngine

__all__ = [
    "IntentEngine",
    "SearchExecutor",
    "StoreCriteria",
    "Watermark",
    "WatchExecutor",
    "filter_messages",
    "matches",
    "translate",
]
