"""
Failure classification.

Every failure that can reach a caller is one of:

- Source fetch failure: network error or non-2xx from Scryfall, the
  listing site, the wishlist proxy, or a remote resolver.
- Format failure: a payload arrived but did not have the expected shape.
- Resolution miss: NOT an error. A miss is a ResolutionResult without an
  oracle id and callers branch on it explicitly.
- Malformed request: rejected at the HTTP boundary with a 400.
"""

from enum import Enum

from fastapi import HTTPException
from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"

    # Payload shape failures
    INVALID_PAYLOAD = "invalid_payload"

    # Service failures
    SERVICE_UNAVAILABLE = "service_unavailable"
    EXTERNAL_API_ERROR = "external_api_error"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException carrying the failure detail."""
        return HTTPException(
            status_code=self.status_code,
            detail=self.to_detail().model_dump(mode="json"),
        )


class SourceFetchError(KnownError):
    """A remote source could not be fetched (network error or non-2xx)."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.EXTERNAL_API_ERROR,
            message=message,
            detail=detail,
            suggestion="Check that the link is reachable and try again.",
            status_code=502,
        )


class PayloadFormatError(KnownError):
    """A remote source answered, but with a payload of unexpected shape."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_PAYLOAD,
            message=message,
            detail=detail,
            status_code=502,
        )


class ResolverResponseError(PayloadFormatError):
    """
    A remote oracle resolver returned a malformed payload.

    Comparison code treats this as "unresolved", never as a failure of the
    whole comparison.
    """


class CardDatabaseError(KnownError):
    """The card reference dataset is unavailable or corrupted."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.SERVICE_UNAVAILABLE,
            message=message,
            detail=detail,
            suggestion="Run `python -m wishmatch.jobs.download_cards` and retry.",
            status_code=503,
        )


class InvalidUrlError(KnownError):
    """A user-supplied link is not one the system can fetch."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=message,
            detail=detail,
            suggestion="Paste the full link, including https://.",
            status_code=400,
        )
