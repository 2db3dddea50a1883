"""Exceptions raised by the page translation client."""
from __future__ import annotations

from typing import Optional

GENERIC_FAILURE_MESSAGE = "Failed to process the comic page. Please try again."


class TranslationFailedError(Exception):
    """
    User-facing translation failure.

    The message is always the generic retry hint; the underlying cause is kept
    in `detail` for logging only.
    """

    def __init__(self, message: Optional[str] = None, *, detail: Optional[str] = None):
        super().__init__(message or GENERIC_FAILURE_MESSAGE)
        self.detail = detail


class MalformedResponseError(TranslationFailedError):
    """The service answered with nothing, unparseable JSON or a schema-violating payload."""

    def __init__(self, detail: str):
        super().__init__(detail=detail)


class GeminiApiError(RuntimeError):
    """Raised when the HTTP call to the model service fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
