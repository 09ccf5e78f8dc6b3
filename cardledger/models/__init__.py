from cardledger.models.card import CandidateCard, CardQuery, SourceTag
from cardledger.models.failure import (
    ApiResponse,
    CatalogCardNotFoundError,
    FailureDetail,
    FailureKind,
    IdentificationError,
    InvalidQueryError,
    ItemNotFoundError,
    KnownError,
    LookupFailedError,
    OutcomeType,
    PersistenceError,
    ResolutionTimeoutError,
    ServiceNotReadyError,
)
from cardledger.models.resolution import (
    ResolutionResult,
    ResolutionState,
    ResolutionStatus,
    SourceResult,
    SourceWarning,
    WarningKind,
)

__all__ = [
    "ApiResponse",
    "CandidateCard",
    "CardQuery",
    "CatalogCardNotFoundError",
    "FailureDetail",
    "FailureKind",
    "IdentificationError",
    "InvalidQueryError",
    "ItemNotFoundError",
    "KnownError",
    "LookupFailedError",
    "OutcomeType",
    "PersistenceError",
    "ResolutionResult",
    "ResolutionState",
    "ResolutionStatus",
    "ResolutionTimeoutError",
    "ServiceNotReadyError",
    "SourceResult",
    "SourceTag",
    "SourceWarning",
    "WarningKind",
]
