"""
Launcher exceptions.

Every stage of token issuance either returns its value or raises one of these.
The string form of an exception is the human-readable error handed back to
the HTTP layer.
"""

from typing import Optional


class LauncherError(Exception):
    """Base exception for launcher errors."""

    pass


class KeyLoadError(LauncherError):
    """
    Raised when key material cannot be loaded.

    Attributes:
        op: The failing operation: "read", "parse", "cast" or "marshal".
        message: Description of what went wrong.
    """

    def __init__(self, op: str, message: str):
        self.op = op
        self.message = message
        super().__init__(f"{op}: {message}")


class SchemaResolutionError(LauncherError):
    """
    Raised when a questionnaire schema cannot be fetched, validated or decoded.

    ``url`` is the schema URL that failed. For validator rejections the message
    is the validator's response body, verbatim.
    """

    def __init__(self, message: str, url: str = ""):
        self.url = url
        self.message = message
        super().__init__(message)


class TokenError(LauncherError):
    """Raised when a token cannot be signed or encrypted."""

    def __init__(self, description: str, cause: Optional[BaseException] = None):
        self.description = description
        self.cause = cause
        message = description
        if cause is not None:
            message += f" ({cause})"
        super().__init__(message)
