"""Typed error hierarchy for the resume optimization pipeline."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INPUT_TOO_LARGE = "input_too_large"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NETWORK_FAILURE = "network_failure"
    HTTP_ERROR = "http_error"
    EMPTY_RESPONSE = "empty_response"
    RETRIES_EXHAUSTED = "retries_exhausted"


class ResumeOptimizerError(Exception):
    """Base class for every error raised by the pipeline."""

    user_message = "Something went wrong while generating your resume."


class ConfigurationError(ResumeOptimizerError):
    """Raised at startup when required configuration is missing."""

    user_message = "The service is not configured correctly."


class TransportError(ResumeOptimizerError):
    """Failure while talking to the chat-completion endpoint."""

    kind: ErrorKind = ErrorKind.HTTP_ERROR
    retryable = False
    user_message = "The AI service returned an error."

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        attempts: int = 1,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.attempts = attempts

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, "
            f"status_code={self.status_code!r}, message={self.message!r})"
        )


class InputTooLarge(TransportError):
    kind = ErrorKind.INPUT_TOO_LARGE
    user_message = "Your input is too long. Please shorten your resume or job description."

    def __init__(self, length: int, limit: int) -> None:
        super().__init__(
            f"Input too long: {length} characters exceeds the limit of {limit}.",
            attempts=0,
        )
        self.length = length
        self.limit = limit


class BadRequest(TransportError):
    kind = ErrorKind.BAD_REQUEST
    user_message = "The request was rejected. Check your input size and content."


class Unauthorized(TransportError):
    kind = ErrorKind.UNAUTHORIZED
    user_message = "Your session needs refreshing. Check the configured API key."


class InsufficientCredits(TransportError):
    kind = ErrorKind.INSUFFICIENT_CREDITS
    user_message = "The AI service account has insufficient credits."


class RateLimited(TransportError):
    kind = ErrorKind.RATE_LIMITED
    retryable = True


class ServerError(TransportError):
    kind = ErrorKind.SERVER_ERROR
    retryable = True


class NetworkFailure(TransportError):
    kind = ErrorKind.NETWORK_FAILURE
    retryable = True


class EmptyResponse(TransportError):
    kind = ErrorKind.EMPTY_RESPONSE
    user_message = "The AI service returned an empty reply. Please try again."


class RetriesExhausted(TransportError):
    kind = ErrorKind.RETRIES_EXHAUSTED
    user_message = "The AI service is temporarily unavailable. Please try again later."

    def __init__(self, last_error: BaseException, attempts: int) -> None:
        super().__init__(
            f"Giving up after {attempts} attempts: {last_error}",
            status_code=getattr(last_error, "status_code", None),
            attempts=attempts,
        )
        self.last_error = last_error


class MalformedResponse(ResumeOptimizerError):
    """The model reply did not contain parseable JSON."""

    user_message = "The AI reply could not be understood. Please try again."

    def __init__(self, raw_text: str, reason: str = "") -> None:
        preview = raw_text[:200]
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Could not extract JSON from model reply{detail}: {preview!r}")
        self.raw_text = raw_text
        self.reason = reason


class SchemaViolation(ResumeOptimizerError):
    """Parsed model output has no recognizable resume shape."""

    user_message = "The AI reply did not look like a resume. Please try again."
