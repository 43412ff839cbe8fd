"""
Error Taxonomy
==============
Error kinds shared by every tool, and the exception used to carry them
from the readers and the reconstruction engine up to the result assembler.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Machine-readable failure categories returned in error envelopes."""
    INVALID_INPUT = "invalid_input"
    TOO_LARGE = "too_large"
    UNSUPPORTED_FORMAT = "unsupported_format"
    ENCRYPTED = "encrypted"
    PARSE_FAILED = "parse_failed"
    INTERNAL_ERROR = "internal_error"


class ToolError(Exception):
    """
    A failure that aborts the current tool call.

    Raised anywhere below the tool layer and converted to a failure
    envelope by ``results.error_result``.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        source: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = ErrorKind(kind)
        self.message = message
        self.source = source

    def with_source(self, source: Optional[str]) -> "ToolError":
        """Attach the input source unless one is already set."""
        if self.source is None:
            self.source = source
        return self

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"
