"""Classified error types for the resume matching pipeline.

Every failure carries a machine-readable ``kind`` from a closed set, a short
message, and a remediation hint meant for the person who uploaded the resume.
The underlying fault (if any) is kept as diagnostic ``detail`` only.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of failure kinds produced by the pipeline."""

    # Text extraction
    INVALID_FORMAT = "InvalidFormat"
    ENCRYPTED = "Encrypted"
    EMPTY = "Empty"
    NO_EXTRACTABLE_TEXT = "NoExtractableText"
    TOO_SHORT = "TooShort"
    UNREADABLE = "Unreadable"
    # Generative service calls
    EMPTY_INPUT = "EmptyInput"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    INVALID_RESPONSE = "InvalidResponse"
    TIMEOUT = "Timeout"
    # Analysis preconditions
    INVALID_RESUME = "InvalidResume"
    INVALID_JOB = "InvalidJob"

    @property
    def retryable(self) -> bool:
        """Only transient service faults are worth another attempt."""
        return self in _RETRYABLE


_RETRYABLE = frozenset({ErrorKind.SERVICE_UNAVAILABLE, ErrorKind.TIMEOUT})

HINTS: dict[ErrorKind, str] = {
    ErrorKind.INVALID_FORMAT: "Please upload your resume as a PDF. Compress large PDFs to fit the size limit.",
    ErrorKind.ENCRYPTED: "Remove the password protection from your PDF and upload it again.",
    ErrorKind.EMPTY: "The file appears to be empty or corrupted. Please try a different PDF.",
    ErrorKind.NO_EXTRACTABLE_TEXT: (
        "This may be a scanned or image-based PDF. Please ensure your resume is a text-based PDF."
    ),
    ErrorKind.TOO_SHORT: "Please ensure you are uploading a complete resume.",
    ErrorKind.UNREADABLE: "The PDF could not be read. Please re-export it and try again.",
    ErrorKind.EMPTY_INPUT: "No resume text was provided.",
    ErrorKind.SERVICE_UNAVAILABLE: "The analysis service is temporarily unavailable. Please try again shortly.",
    ErrorKind.INVALID_RESPONSE: "The resume could not be interpreted automatically. Please check its formatting.",
    ErrorKind.TIMEOUT: "The analysis took too long. Please try again.",
    ErrorKind.INVALID_RESUME: "The resume profile is incomplete. Please re-upload your resume.",
    ErrorKind.INVALID_JOB: "This job listing does not contain enough information to compare against.",
}


class InternMatchError(Exception):
    """Base class for all classified pipeline failures."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        detail: str = "",
        cause: Exception | None = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.hint = HINTS[kind]
        self.detail = detail or (str(cause) if cause else "")
        self.cause = cause
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    def to_dict(self) -> dict[str, Any]:
        """Serialise for API responses and structured logs."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "kind": self.kind.value,
            "message": self.message,
            "hint": self.hint,
        }
        if self.detail:
            result["detail"] = self.detail
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class ExtractionError(InternMatchError):
    """Raised by the text extractor and the structured resume extractor."""


class AnalysisError(InternMatchError):
    """Raised by the skills-gap analyzer."""


class ServiceError(InternMatchError):
    """Raised by the generative service wrapper; re-raised by callers under their own type."""
