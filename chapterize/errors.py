"""Error kinds raised across the chapter pipeline.

Parsing-level problems (one bad line, one bad timestamp, one malformed
segment) never surface here: they are logged and dropped where they happen.
What remains are the conditions the orchestrator or the HTTP layer has to
decide on.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    MISSING_TRANSCRIPT = "MissingTranscript"
    MALFORMED_TIMESTAMP = "MalformedTimestamp"
    NO_TIMING_INFORMATION = "NoTimingInformation"
    CREDENTIAL_MISSING = "CredentialMissing"
    CREDENTIAL_INVALID = "CredentialInvalid"
    RATE_LIMITED = "RateLimited"
    COMPLETION_SERVICE_UNAVAILABLE = "CompletionServiceUnavailable"
    NO_CHAPTERS_PRODUCED = "NoChaptersProduced"
    INTERNAL = "InternalError"


class ChapterizeError(Exception):
    """Base error. ``status_code`` is the HTTP status the API answers with."""

    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500

    def __init__(self, message: str = "", details: str | None = None) -> None:
        super().__init__(message or self.kind.value)
        self.message = message or self.kind.value
        self.details = details


class MissingTranscriptError(ChapterizeError):
    kind = ErrorKind.MISSING_TRANSCRIPT
    status_code = 400


class MalformedTimestampError(ChapterizeError, ValueError):
    kind = ErrorKind.MALFORMED_TIMESTAMP


class NoTimingInformationError(ChapterizeError):
    kind = ErrorKind.NO_TIMING_INFORMATION
    status_code = 400


class CredentialMissingError(ChapterizeError):
    kind = ErrorKind.CREDENTIAL_MISSING
    status_code = 401


class CredentialInvalidError(ChapterizeError):
    kind = ErrorKind.CREDENTIAL_INVALID
    status_code = 401


class RateLimitedError(ChapterizeError):
    kind = ErrorKind.RATE_LIMITED
    status_code = 429


class CompletionServiceUnavailableError(ChapterizeError):
    kind = ErrorKind.COMPLETION_SERVICE_UNAVAILABLE
    status_code = 500


class NoChaptersProducedError(ChapterizeError):
    kind = ErrorKind.NO_CHAPTERS_PRODUCED
    status_code = 400


# Errors from the completion collaborator that should move the orchestrator
# on to its next strategy instead of failing the request.
COMPLETION_ERRORS = (
    CredentialMissingError,
    CredentialInvalidError,
    RateLimitedError,
    CompletionServiceUnavailableError,
)
