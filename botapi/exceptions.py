"""Exception hierarchy for the botapi SDK."""

from __future__ import annotations

from typing import Any, Dict, Optional

from botapi.models import ResponseParameters


class BotAPIError(Exception):
    """Base class for every error raised by this package."""


class APIException(BotAPIError):
    """The Bot API answered with ``ok: false`` or a non-2xx status.

    Attributes:
        status_code: HTTP status code returned by the API.
        error_code: ``error_code`` from the response envelope, when present.
        description: Human-readable description from the API.
        parameters: Extra hints (``retry_after``, ``migrate_to_chat_id``).
        response_body: Raw response body as a dict, when available.
    """

    def __init__(self, status_code: int, response_body: Optional[Dict[str, Any]] = None) -> None:
        """Initialise with the HTTP status code and optional body."""
        self.status_code = status_code
        self.response_body = response_body or {}
        self.error_code: int = self.response_body.get("error_code", status_code)
        self.description: str = self.response_body.get("description", "Unknown error")
        raw_parameters = self.response_body.get("parameters") or {}
        self.parameters = ResponseParameters.model_validate(raw_parameters)
        super().__init__(f"API error {self.error_code}: {self.description}")


class DecodeError(BotAPIError):
    """A response or an inbound webhook body is not a well-formed payload."""


class MethodError(BotAPIError):
    """An inbound webhook delivery used an HTTP method other than POST."""

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"wrong HTTP method {method!r}, POST required")


class BadFileTypeError(BotAPIError, TypeError):
    """``upload_file`` was given something it cannot send."""


class QueueClosedError(BotAPIError):
    """An update was published to a queue that has already been closed."""
