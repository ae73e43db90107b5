"""
Exception hierarchy for the Canvas client library.

Every error raised by the library derives from :class:`CanvasClientError`.
The subclasses map to the distinct ways a call can fail:

- :class:`NoResponseError` - no HTTP response was obtained at all
- :class:`CanvasError` - Canvas answered with a structured error payload
- :class:`ConnectionError` - Canvas answered with a non-success status and an
  unparseable body (the raw body is kept in ``content``)
- :class:`UploadError` - one of the file upload stages failed
- :class:`ValidationError` - the caller supplied invalid data; raised before
  any request is sent
"""

from typing import TYPE_CHECKING, Iterable, List, Optional

if TYPE_CHECKING:
    from canvas_client.entities.errors import Error

SERVER_NAME = "Canvas"


class CanvasClientError(Exception):
    """
    Base exception for all Canvas client errors.

    Attributes:
        message: Human-readable error message
        url: The URL that was called (if applicable)
        status_code: HTTP status code (if applicable)
        content: Raw response body when it could not be interpreted
        errors: Structured errors returned by Canvas
    """

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        content: Optional[str] = None,
        errors: Optional[Iterable["Error"]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.url = url
        self.status_code = status_code
        self.content = content
        self.errors: List["Error"] = list(errors or [])

    def __str__(self) -> str:
        parts = [self.message]
        if self.url:
            parts.append(f"<{self.url}>")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"url={self.url!r}, "
            f"status_code={self.status_code})"
        )


# =============================================================================
# Connection Errors
# =============================================================================


class ConnectionError(CanvasClientError):
    """
    A call to Canvas did not succeed.

    Raised directly when the server returns a non-success status code and the
    body does not match either of the Canvas error shapes. In that case the
    raw body is available in ``content``.
    """

    def __init__(
        self,
        url: str,
        message: str,
        *,
        status_code: Optional[int] = None,
        content: Optional[str] = None,
        errors: Optional[Iterable["Error"]] = None,
    ):
        super().__init__(
            message,
            url=url,
            status_code=status_code,
            content=content,
            errors=errors,
        )


class NoResponseError(ConnectionError):
    """No response was received from the server."""

    def __init__(self, url: str, message: Optional[str] = None):
        super().__init__(url, message or f"Something went wrong while calling {SERVER_NAME}")


class CanvasError(ConnectionError):
    """
    Canvas returned one or more structured errors.

    The errors are normalized into a flat list, regardless of whether Canvas
    sent them as a list or as a dictionary keyed by field name.
    """

    def __init__(
        self,
        url: str,
        message: str,
        errors: Iterable["Error"],
        *,
        status_code: Optional[int] = None,
    ):
        super().__init__(url, message, status_code=status_code, errors=errors)


# =============================================================================
# Client Errors
# =============================================================================


class ClientError(CanvasClientError):
    """The client could not complete an operation."""


class ValidationError(ClientError):
    """
    The data passed to the client is invalid.

    Always raised before any request is sent.
    """

    def __init__(self, message: str, *, field_name: Optional[str] = None):
        super().__init__(message)
        self.field_name = field_name


class UploadError(ClientError):
    """
    A stage of the file upload protocol failed.

    Attributes:
        stage: "initiate", "transfer" or "finalize"
    """

    def __init__(
        self,
        stage: str,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        content: Optional[str] = None,
    ):
        super().__init__(
            f"File upload failed during {stage}: {message}",
            url=url,
            status_code=status_code,
            content=content,
        )
        self.stage = stage


class ConfigurationError(CanvasClientError):
    """The client configuration is incomplete."""


# =============================================================================
# Exception Mapping
# =============================================================================


def non_success_message(status_code: int) -> str:
    """Build the standard message for a non-success response."""
    return f"{SERVER_NAME} returned a non-success response code [{status_code}]"


def exception_from_response(
    url: str,
    status_code: int,
    content: str,
    errors: Optional[List["Error"]] = None,
) -> ConnectionError:
    """
    Create the appropriate exception for a non-success response.

    Args:
        url: The URL that was called
        status_code: HTTP status code
        content: Raw response body
        errors: Structured errors parsed from the body, if any

    Returns:
        A CanvasError when at least one structured error was parsed, otherwise
        a ConnectionError carrying the raw content
    """
    message = non_success_message(status_code)
    if errors:
        return CanvasError(url, message, errors, status_code=status_code)
    return ConnectionError(url, message, status_code=status_code, content=content)
