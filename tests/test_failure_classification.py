"""Tests for the response envelope and known failure types."""

from cardledger.models.card import SourceTag
from cardledger.models.failure import (
    UNKNOWN_FAILURE_MESSAGE,
    ApiResponse,
    FailureKind,
    IdentificationError,
    ItemNotFoundError,
    LookupFailedError,
    OutcomeType,
    PersistenceError,
    ResolutionTimeoutError,
)
from cardledger.models.resolution import SourceResult, WarningKind


class TestApiResponse:
    def test_success(self) -> None:
        response = ApiResponse.success({"status": "no_source_matched"})

        assert response.outcome is OutcomeType.SUCCESS
        assert response.failure is None

    def test_unknown_failure_has_fixed_message(self) -> None:
        response = ApiResponse.unknown_failure(detail="KeyError")

        assert response.failure.kind is FailureKind.UNKNOWN
        assert response.failure.message == UNKNOWN_FAILURE_MESSAGE


class TestKnownErrors:
    def test_lookup_failed_is_retryable_service_failure(self) -> None:
        error = LookupFailedError(detail="sheet: down")

        response = error.to_response()

        assert error.status_code == 503
        assert response.outcome is OutcomeType.KNOWN_FAILURE
        assert response.failure.kind is FailureKind.LOOKUP_FAILED
        assert response.failure.detail == "sheet: down"
        assert "manually" in response.failure.suggestion
        assert response.failure.retryable is True

    def test_status_codes(self) -> None:
        assert IdentificationError().status_code == 502
        assert PersistenceError().status_code == 503
        assert ItemNotFoundError(7).status_code == 404
        assert ResolutionTimeoutError(60.0).status_code == 504

    def test_timeout_detail(self) -> None:
        assert ResolutionTimeoutError(2.5).detail == "No answer within 2.5s"

    def test_not_found_message_names_item(self) -> None:
        assert "7" in ItemNotFoundError(7).message

    def test_retryable_follows_kind(self) -> None:
        assert ItemNotFoundError(7).retryable is False
        assert IdentificationError().to_response().failure.retryable is False
        assert ResolutionTimeoutError(1.0).retryable is True


class TestSourceResult:
    def test_clean_empty_is_not_errored(self) -> None:
        assert not SourceResult().errored

    def test_failed(self) -> None:
        result = SourceResult.failed(SourceTag.SHEET, WarningKind.PERMANENT, "HTTP 403")

        assert result.errored
        assert result.candidates == []
        assert result.warning.kind is WarningKind.PERMANENT
