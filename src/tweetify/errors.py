"""Full error hierarchy for the tweetify SDK.

Every public error class inherits from TweetifyError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the SDK can raise."""

    SOURCE_READ_ERROR = "SOURCE_READ_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    HTTP_ERROR = "HTTP_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    SEQUENCING_ERROR = "SEQUENCING_ERROR"
    PROCESSING_ERROR = "PROCESSING_ERROR"
    PROCESSING_TIMEOUT = "PROCESSING_TIMEOUT"

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class TweetifyError(Exception):
    """Base exception for all tweetify errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------

class TweetifySourceReadError(TweetifyError):
    """The media payload could not be read from its origin.

    Raised before any network call is attempted.

    Context keys: ``source``, ``reason``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.SOURCE_READ_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class TweetifyValidationError(TweetifyError):
    """Arguments were rejected locally before any request was sent.

    Context keys: ``field``, ``value``, ``constraint``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Transport errors
# ---------------------------------------------------------------------------

class TweetifyTransportError(TweetifyError):
    """Base class for failures reported by the HTTP transport.

    Context varies by subclass; every subclass includes ``url``.
    """

    def __init__(
        self,
        code: str = ErrorCode.TRANSPORT_ERROR,
        message: str = "Transport error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class TweetifyNetworkError(TweetifyTransportError):
    """A connection-level failure occurred (timeout, DNS, connection reset).

    Context keys: ``url``, ``method``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class TweetifyHTTPError(TweetifyTransportError):
    """The service answered with a non-2xx status.

    Context keys: ``url``, ``status_code``, ``service_code``, ``body``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        code: str = ErrorCode.HTTP_ERROR,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )

    @property
    def status_code(self) -> int | None:
        return self.context.get("status_code")


class TweetifyAuthError(TweetifyHTTPError):
    """The service returned 401; credentials are missing or invalid."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.AUTH_ERROR,
        )


class TweetifyPermissionError(TweetifyHTTPError):
    """The service returned 403; the account may not perform the operation."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.PERMISSION_ERROR,
        )


class TweetifyRateLimitError(TweetifyHTTPError):
    """The service returned 429.

    Context keys: ``rate_limit_reset`` (epoch seconds, when advertised).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.RATE_LIMITED,
        )


# ---------------------------------------------------------------------------
# Protocol errors
# ---------------------------------------------------------------------------

class TweetifyProtocolError(TweetifyError):
    """A response arrived but was not what the protocol expects.

    Covers undecodable bodies and missing fields such as
    ``media_id_string``.

    Context keys: ``phase``, ``field``, ``body``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PROTOCOL_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class TweetifySequencingError(TweetifyError):
    """An upload phase was requested out of order.

    Context keys: ``current_state``, ``requested_state``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.SEQUENCING_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Processing errors (STATUS polling)
# ---------------------------------------------------------------------------

class TweetifyProcessingError(TweetifyError):
    """The service reported that server-side media processing failed.

    Context keys: ``media_id``, ``state``, ``error_message``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        code: str = ErrorCode.PROCESSING_ERROR,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class TweetifyProcessingTimeoutError(TweetifyProcessingError):
    """Media was still processing after the allowed number of STATUS polls.

    Context keys: ``media_id``, ``attempts``, ``state``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.PROCESSING_TIMEOUT,
        )


# ---------------------------------------------------------------------------
# Helpers for reporting arbitrary exceptions
# ---------------------------------------------------------------------------

def error_code(exc: BaseException) -> str:
    """``ErrorCode`` value for tweetify errors, the class name otherwise."""
    if isinstance(exc, TweetifyError):
        return str(exc.code)
    return type(exc).__name__


def error_message(exc: BaseException) -> str:
    """Human-readable message for any exception."""
    if isinstance(exc, TweetifyError):
        return exc.message
    return str(exc) or type(exc).__name__
