"""
Response envelope and caller-visible failures.

Every user-visible outcome is wrapped in an ApiResponse so the admin can
tell "nothing found" (a normal success with no candidates) apart from
"lookup failed" (retry later or enter the card manually).

- success: the request was served, even if no card matched
- known_failure: a KnownError was raised and explains itself
- unknown_failure: anything else, reported with a fixed message
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """What went wrong, as reported in ``FailureDetail.kind``."""

    # Bad requests
    MISSING_REQUIRED = "missing_required"
    NOT_FOUND = "not_found"

    # Vision model or catalogs
    IDENTIFICATION_FAILED = "identification_failed"
    LOOKUP_FAILED = "lookup_failed"
    TIMEOUT = "timeout"

    # Our own infrastructure
    SERVICE_UNAVAILABLE = "service_unavailable"
    PERSISTENCE_FAILED = "persistence_failed"

    UNKNOWN = "unknown"


class OutcomeType(str, Enum):
    SUCCESS = "success"
    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


ResponseData = TypeVar("ResponseData")
UNKNOWN_FAILURE_MESSAGE = "I failed and I don't know why. Try again or enter the card manually."

# Failures where the same request may succeed later
RETRYABLE_KINDS = frozenset(
    {
        FailureKind.LOOKUP_FAILED,
        FailureKind.TIMEOUT,
        FailureKind.SERVICE_UNAVAILABLE,
        FailureKind.PERSISTENCE_FAILED,
        FailureKind.UNKNOWN,
    }
)


class FailureDetail(BaseModel):
    """Why a request did not succeed, phrased for the admin."""

    kind: FailureKind
    message: str = Field(..., description="Shown to the admin as-is")
    detail: str | None = Field(default=None, description="Technical detail for logs and support")
    suggestion: str | None = Field(default=None, description="What the admin can do next")
    retryable: bool = Field(
        default=False,
        description="True when resending the same request may succeed",
    )


class ApiResponse(BaseModel, Generic[ResponseData]):
    """
    Envelope for every API response.

    ``data`` is set on success, ``failure`` otherwise. A lookup that found
    no card is a success; a lookup that could not reach any catalog is a
    known failure.
    """

    outcome: OutcomeType
    data: ResponseData | None = None
    failure: FailureDetail | None = None

    @classmethod
    def success(cls, data: ResponseData) -> "ApiResponse[ResponseData]":
        return cls(outcome=OutcomeType.SUCCESS, data=data)

    @classmethod
    def known_failure(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "ApiResponse[Any]":
        """Failure the system can explain, e.g. every catalog errored or an unknown item id."""
        failure = FailureDetail(
            kind=kind,
            message=message,
            detail=detail,
            suggestion=suggestion,
            retryable=kind in RETRYABLE_KINDS,
        )
        return cls(outcome=OutcomeType.KNOWN_FAILURE, failure=failure)

    @classmethod
    def unknown_failure(cls, detail: str | None = None) -> "ApiResponse[Any]":
        """Catch-all for unexpected exceptions. The message is fixed."""
        failure = FailureDetail(
            kind=FailureKind.UNKNOWN,
            message=UNKNOWN_FAILURE_MESSAGE,
            detail=detail,
            suggestion="If this persists, please report the issue.",
            retryable=True,
        )
        return cls(outcome=OutcomeType.UNKNOWN_FAILURE, failure=failure)


class KnownError(Exception):
    """
    A failure the caller can be told about precisely.

    Raised anywhere below the API; the app's exception handler renders it
    as a known-failure envelope with ``status_code``.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    def to_response(self) -> ApiResponse[Any]:
        return ApiResponse.known_failure(self.kind, self.message, self.detail, self.suggestion)


class InvalidQueryError(KnownError):
    """Raised before any source is queried when the card name is blank."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.MISSING_REQUIRED,
            message="A card name is required to look up a card.",
            detail=detail,
            suggestion="Enter the card name manually or retake the photo.",
            status_code=400,
        )


class IdentificationError(KnownError):
    """Raised when the vision service cannot extract a usable card name."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.IDENTIFICATION_FAILED,
            message="The card could not be identified from the image.",
            detail=detail,
            suggestion="Retake the photo with the card name visible, or enter it manually.",
            status_code=502,
        )


class LookupFailedError(KnownError):
    """Raised when every catalog source errored (as opposed to finding nothing)."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.LOOKUP_FAILED,
            message="Card lookup failed: no catalog could be reached.",
            detail=detail,
            suggestion="Retry in a minute, or enter the card and price manually.",
            status_code=503,
        )


class PersistenceError(KnownError):
    """Raised when the inventory store rejects or cannot complete a write."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.PERSISTENCE_FAILED,
            message="The inventory could not be saved.",
            detail=detail,
            suggestion="Retry with the same idempotency key to avoid duplicates.",
            status_code=503,
        )


class ItemNotFoundError(KnownError):
    """Raised when an inventory item id does not exist."""

    def __init__(self, item_id: int):
        self.item_id = item_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Inventory item {item_id} not found.",
            status_code=404,
        )


class CatalogCardNotFoundError(KnownError):
    def __init__(self, source: str, card_id: str):
        self.source = source
        self.card_id = card_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Card {card_id} not found in {source}.",
            suggestion="Search by name instead.",
            status_code=404,
        )


class ResolutionTimeoutError(KnownError):
    """Raised when a resolution does not finish within the caller's deadline."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            kind=FailureKind.TIMEOUT,
            message="Card lookup took too long.",
            detail=f"No answer within {timeout_seconds:g}s",
            suggestion="Retry, or enter the card and price manually.",
            status_code=504,
        )


class ServiceNotReadyError(KnownError):
    """Raised when a collaborator the request needs was never configured."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.SERVICE_UNAVAILABLE,
            message="This feature is not available right now.",
            detail=detail,
            status_code=503,
        )
