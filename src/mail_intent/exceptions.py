"""Custom exceptions for Mail Intent Engine."""


class IntentEngineError(Exception):
    """Base exception for all Mail Intent Engine errors."""


class ParseError(IntentEngineError):
    """Exception raised when a command cannot be parsed into an intent."""


class DateResolutionError(ParseError):
    """Exception raised when a date expression cannot be resolved."""


class ValidationError(IntentEngineError):
    """Exception raised when a parsed intent is structurally invalid."""


class ExecutionError(IntentEngineError):
    """Exception raised for mailbox selection, search or fetch failures."""


class ConfigurationError(IntentEngineError):
    """Exception raised for configuration related errors."""


class AuthenticationError(IntentEngineError):
    """Exception raised for authentication failures."""
