"""Error taxonomy for the Trello API client.

Every failure surfaced by :class:`~trello_mcp.client.TrelloClient` is a
:class:`TrelloError` carrying one of the :class:`ErrorCode` values below.
"""

from enum import Enum

import httpx


class ErrorCode(str, Enum):
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    SERVER_ERROR = "SERVER_ERROR"
    API_ERROR = "API_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class TrelloError(Exception):
    """Exception raised for Trello API errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        status: int | None = None,
        error: str | None = None,
    ):
        self.message = message
        self.code = code
        self.status = status
        self.error = error
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message, f"(code: {self.code.value})"]
        if self.status:
            parts.append(f"[HTTP {self.status}]")
        return " ".join(parts)

    def to_dict(self) -> dict:
        data = {"message": self.message, "code": self.code.value}
        if self.status is not None:
            data["status"] = self.status
        if self.error is not None:
            data["error"] = self.error
        return data


_STATUS_ERRORS: dict[int, tuple[ErrorCode, str]] = {
    401: (
        ErrorCode.INVALID_CREDENTIALS,
        "Invalid or expired Trello credentials. Check TRELLO_API_KEY and TRELLO_TOKEN.",
    ),
    403: (
        ErrorCode.INSUFFICIENT_PERMISSIONS,
        "Insufficient permissions. Your Trello token may need additional scopes, "
        "or the resource may be private.",
    ),
    404: (ErrorCode.NOT_FOUND, "Resource not found"),
    429: (ErrorCode.RATE_LIMIT_EXCEEDED, "Rate limit exceeded"),
    500: (ErrorCode.SERVER_ERROR, "Trello server error"),
}


def _from_response(response: httpx.Response) -> TrelloError:
    status = response.status_code
    if status in _STATUS_ERRORS:
        code, message = _STATUS_ERRORS[status]
    elif status >= 500:
        code, message = ErrorCode.SERVER_ERROR, f"Trello server error (HTTP {status})"
    else:
        code, message = ErrorCode.API_ERROR, f"HTTP {status} error"
    return TrelloError(
        message=message,
        code=code,
        status=status,
        error=f"{status} - {response.reason_phrase}",
    )


def classify_error(failure: object) -> TrelloError:
    """Map any failure from the HTTP layer to exactly one TrelloError.

    First match wins:
        1. an existing TrelloError is returned unchanged
        2. httpx timeouts -> TIMEOUT_ERROR
        3. other httpx transport failures (connect, DNS, read) -> NETWORK_ERROR
        4. a response (or HTTPStatusError) -> mapped from its status code
        5. anything else -> UNKNOWN_ERROR

    httpx models timeouts as a subclass of TransportError, so the timeout
    check has to come first.
    """
    if isinstance(failure, TrelloError):
        return failure

    if isinstance(failure, httpx.TimeoutException):
        return TrelloError(
            message="Request timeout - Trello API did not respond in time",
            code=ErrorCode.TIMEOUT_ERROR,
            error=str(failure) or type(failure).__name__,
        )

    if isinstance(failure, httpx.TransportError):
        return TrelloError(
            message="Network error - unable to reach Trello API",
            code=ErrorCode.NETWORK_ERROR,
            error=str(failure) or type(failure).__name__,
        )

    if isinstance(failure, httpx.HTTPStatusError):
        return _from_response(failure.response)

    if isinstance(failure, httpx.Response):
        return _from_response(failure)

    return TrelloError(
        message="Unknown error occurred",
        code=ErrorCode.UNKNOWN_ERROR,
        error=str(failure),
    )
