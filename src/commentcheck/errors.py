"""
Error types raised while running a check.

All of them are fatal for the invocation that raised them: nothing is
retried, and the caller decides how to surface them.
"""

from typing import Optional


class CommentCheckError(Exception):
    """Base class for errors that abort a check."""

    stage = "check"

    def __init__(self, message: str, filename: Optional[str] = None):
        self.message = message
        self.filename = filename
        if filename:
            super().__init__(f"{self.stage} failed for {filename}: {message}")
        else:
            super().__init__(f"{self.stage} failed: {message}")


class ConfigurationError(CommentCheckError):
    """The configuration payload or file could not be decoded."""
    stage = "configuration"


class DocumentRetrievalError(CommentCheckError):
    """The block query or a raw byte lookup failed."""
    stage = "document retrieval"


class SinkError(CommentCheckError):
    """A diagnostic was rejected by the sink."""
    stage = "diagnostic submission"
