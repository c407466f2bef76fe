"""
Error taxonomy for the submission-integrity pipeline.

Every failure the pipeline reports derives from LandClaimError and carries
an ErrorCode for programmatic handling, a human-readable message and a
retryable flag. Request handlers turn any of them into an ErrorResponse
with ``to_response()``.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Standardized error codes."""

    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Boundary file errors
    FORMAT_ERROR = "FORMAT_ERROR"
    STRUCTURAL_VIOLATION = "STRUCTURAL_VIOLATION"
    COORDINATE_PARSE_ERROR = "COORDINATE_PARSE_ERROR"
    POLYGON_INVARIANT_VIOLATION = "POLYGON_INVARIANT_VIOLATION"

    # Draft / finalization errors
    DRAFT_INCOMPLETE = "DRAFT_INCOMPLETE"
    FINALIZATION_CONFLICT = "FINALIZATION_CONFLICT"
    DRAFT_NOT_FOUND = "DRAFT_NOT_FOUND"
    DRAFT_ALREADY_FINALIZED = "DRAFT_ALREADY_FINALIZED"

    # Submission errors
    SUBMISSION_NOT_FOUND = "SUBMISSION_NOT_FOUND"
    STATUS_CONFLICT = "STATUS_CONFLICT"

    # Spatial database errors
    SPATIAL_QUERY_FAILURE = "SPATIAL_QUERY_FAILURE"


class ErrorDetail(BaseModel):
    """Detailed error information for a specific field or issue."""

    field: Optional[str] = Field(
        default=None, description="Field path where error occurred"
    )
    message: str = Field(..., description="Human-readable error message")
    value: Optional[Any] = Field(
        default=None, description="The invalid value (if applicable)"
    )


class ErrorResponse(BaseModel):
    """Error payload handed back to the calling request handler."""

    code: ErrorCode = Field(..., description="Error code for programmatic handling")
    message: str = Field(..., description="Human-readable error message")
    retryable: bool = Field(
        default=False, description="Whether retrying the same input may succeed"
    )
    details: Optional[List[ErrorDetail]] = Field(
        default=None, description="Additional error details"
    )


class LandClaimError(Exception):
    """Base exception class for all pipeline errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[List[ErrorDetail]] = None,
    ) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to an ErrorResponse model."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            retryable=self.retryable,
            details=self.details,
        )


# =============================================================================
# Boundary file errors (raised before any persistence)
# =============================================================================


class BoundaryError(LandClaimError):
    """Base class for errors in a user-supplied boundary."""


class FormatError(BoundaryError):
    """The file is not valid XML/archive for its format, or the format is unsupported."""

    code = ErrorCode.FORMAT_ERROR


class MissingKmlEntry(FormatError):
    """A KMZ archive holds no ``.kml`` entry."""


class StructuralViolation(BoundaryError):
    """Zero or multiple polygons, missing coordinates, or empty coordinate data."""

    code = ErrorCode.STRUCTURAL_VIOLATION


class CoordinateParseError(BoundaryError):
    """A coordinate token could not be read as a finite lon/lat pair."""

    code = ErrorCode.COORDINATE_PARSE_ERROR

    def __init__(self, message: str, token: Optional[str] = None) -> None:
        self.token = token
        details = None
        if token is not None:
            details = [ErrorDetail(field="coordinates", message=message, value=token)]
        super().__init__(message, details=details)


class PolygonViolation(str, Enum):
    """Which polygon invariant was broken."""

    TOO_FEW_POINTS = "too_few_points"
    TOO_MANY_POINTS = "too_many_points"
    DUPLICATE_CONSECUTIVE = "duplicate_consecutive"
    SELF_INTERSECTION = "self_intersection"


class PolygonInvariantViolation(BoundaryError):
    """The vertex list does not describe an acceptable polygon."""

    code = ErrorCode.POLYGON_INVARIANT_VIOLATION

    def __init__(self, reason: PolygonViolation, message: str) -> None:
        self.reason = reason
        super().__init__(message)


# =============================================================================
# Draft and finalization errors
# =============================================================================


class DraftIncomplete(LandClaimError):
    """The draft payload lacks fields required for finalization."""

    code = ErrorCode.DRAFT_INCOMPLETE

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None) -> None:
        self.missing_fields = list(missing_fields or [])
        details = [
            ErrorDetail(field=name, message="Wajib diisi")
            for name in self.missing_fields
        ] or None
        super().__init__(message, details=details)


class FinalizationConflict(LandClaimError):
    """The draft cannot be finalized by this caller."""

    code = ErrorCode.FINALIZATION_CONFLICT

    def __init__(self, message: str, draft_id: Optional[int] = None) -> None:
        self.draft_id = draft_id
        super().__init__(message)


class DraftNotFound(FinalizationConflict):
    """The draft does not exist or belongs to another user."""

    code = ErrorCode.DRAFT_NOT_FOUND


class DraftAlreadyFinalized(FinalizationConflict):
    """The draft has already been promoted to a submission."""

    code = ErrorCode.DRAFT_ALREADY_FINALIZED

    def __init__(self, draft_id: int, submission_id: int) -> None:
        self.submission_id = submission_id
        super().__init__(
            f"Draft {draft_id} sudah difinalisasi menjadi pengajuan {submission_id}",
            draft_id=draft_id,
        )


# =============================================================================
# Submission errors
# =============================================================================


class SubmissionNotFound(LandClaimError):
    """No submission row with the requested id."""

    code = ErrorCode.SUBMISSION_NOT_FOUND

    def __init__(self, submission_id: int) -> None:
        self.submission_id = submission_id
        super().__init__(f"Pengajuan {submission_id} tidak ditemukan")


class StatusConflict(LandClaimError):
    """
    Raised when a status transition fails due to a concurrent modification.

    The caller's expected status does not match the stored one.
    """

    code = ErrorCode.STATUS_CONFLICT

    def __init__(self, submission_id: int, expected: str, actual: str) -> None:
        self.submission_id = submission_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Status conflict for submission {submission_id}: "
            f"expected {expected!r}, got {actual!r}"
        )


class SpatialQueryFailure(LandClaimError):
    """The intersection computation errored or timed out."""

    code = ErrorCode.SPATIAL_QUERY_FAILURE

    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        self.timed_out = timed_out
        super().__init__(message)

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.timed_out
