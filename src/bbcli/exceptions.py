"""Exception hierarchy for bbcli.

All exceptions inherit from :class:`BBError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`bbcli.exit_codes`.
The top-level error handler in :func:`bbcli.app.main` catches ``BBError``
and exits with the appropriate code, while unexpected exceptions produce a
crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

The HTTP client raises exactly three kinds of error, and they are never
conflated:

* :class:`APIError` -- the round trip completed but the API rejected the
  request (status >= 400).
* :class:`TransportError` -- no usable HTTP response (DNS, refused
  connection, timeout, body serialisation before send).
* :class:`DecodeError` -- a successful response whose body did not match
  the expected shape.

Subclass hierarchy::

    BBError (exit 1)
    +-- APIError            (exit by status: 3 / 4 / 5 / 1)
    +-- TransportError      (exit 6)
    +-- DecodeError         (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    +-- ConfigError         (exit 1)
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Optional

import httpx

from bbcli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)

if TYPE_CHECKING:
    from bbcli.client.types import Response


class BBError(Exception):
    """Base exception for all bbcli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`bbcli.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class APIError(BBError):
    """The remote API explicitly rejected a request (HTTP status >= 400).

    The message is taken from the ``{"error": {"message": ...}}`` envelope
    when present, otherwise it falls back to the standard reason phrase of
    the status code. The raw :class:`~bbcli.client.types.Response` is kept
    on :attr:`response` so callers can inspect the bytes themselves.

    Args:
        status_code: HTTP status of the rejected request.
        message: Short human-readable message.
        detail: Optional longer explanation.
        fields: Optional per-field validation messages.
        response: The response the error was built from.

    Example::

        >>> str(APIError(404, "Not Found", detail="Repository does not exist"))
        'API error 404: Not Found - Repository does not exist'
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        detail: str = "",
        fields: Optional[dict[str, str]] = None,
        response: Optional[Response] = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.detail = detail
        self.fields = dict(fields or {})
        self.response = response
        super().__init__(self._render(), exit_code=_exit_code_for_status(status_code))

    def _render(self) -> str:
        if self.detail:
            return f"API error {self.status_code}: {self.message} - {self.detail}"
        return f"API error {self.status_code}: {self.message}"

    @classmethod
    def from_response(cls, response: Response) -> APIError:
        """Build an :class:`APIError` from a rejected response.

        Args:
            response: A response whose ``status_code`` is >= 400.

        Returns:
            The error, with message/detail/fields from the JSON envelope when
            it parses and carries a message, otherwise with the standard
            status text as message.
        """
        message = ""
        detail = ""
        fields: dict[str, str] = {}

        envelope = _error_envelope(response.body)
        if envelope is not None and isinstance(envelope.get("message"), str):
            message = envelope["message"]
            if isinstance(envelope.get("detail"), str):
                detail = envelope["detail"]
            raw_fields = envelope.get("fields")
            if isinstance(raw_fields, dict):
                fields = {str(k): _field_text(v) for k, v in raw_fields.items()}

        if not message:
            message = httpx.codes.get_reason_phrase(response.status_code)

        return cls(
            response.status_code,
            message,
            detail=detail,
            fields=fields,
            response=response,
        )


class TransportError(BBError):
    """Raised when no usable HTTP response was obtained.

    Covers DNS failures, refused connections, timeouts, body read failures
    and request bodies that cannot be serialised to JSON.
    """

    exit_code = EXIT_CONNECTION_ERROR


class DecodeError(BBError):
    """Raised when a successful response body does not match the expected shape."""


class InvalidUsageError(BBError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(BBError):
    """Raised when no credential is available for the selected host."""

    exit_code = EXIT_AUTH_FAILURE


class ConfigError(BBError):
    """Raised for configuration problems (unreadable YAML, invalid values, unknown keys)."""

    exit_code = EXIT_GENERIC_FAILURE


def _exit_code_for_status(status_code: int) -> int:
    if status_code in (401, 403):
        return EXIT_AUTH_FAILURE
    if status_code == 404:
        return EXIT_NOT_FOUND
    if status_code >= 500:
        return EXIT_SERVER_ERROR
    return EXIT_GENERIC_FAILURE


def _error_envelope(body: bytes) -> Optional[dict[str, Any]]:
    """Return the ``error`` object of a JSON error body, or ``None``."""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if not isinstance(error, dict):
        return None
    return error


def _field_text(value: Any) -> str:
    # Bitbucket sometimes sends a list of messages per field.
    if isinstance(value, list):
        return "; ".join(str(v) for v in value)
    return str(value)
