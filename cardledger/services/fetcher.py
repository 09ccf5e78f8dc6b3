"""Outbound GET with exponential-backoff retry.

Retries network failures, HTTP 429 and HTTP 5xx. Any other non-success
status surfaces immediately as a PermanentError without consuming the
remaining attempts.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)
from tenacity.wait import wait_base

from cardledger.config import Settings

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when an outbound catalog request fails."""

    def __init__(
        self,
        message: str,
        url: str,
        status_code: int | None = None,
        reason: str = "",
    ):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        super().__init__(message)


class TransientError(FetchError):
    """Retryable failure (network error, 429, 5xx)."""


class PermanentError(FetchError):
    """Non-retryable failure (4xx other than 429, malformed request)."""


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and backoff schedule.

    The wait after failed attempt n (from 1) is
    initial_backoff * 2**(n - 1) + uniform(0, max_jitter).
    """

    max_attempts: int = 5
    initial_backoff: float = 1.0
    max_jitter: float = 0.5

    def wait(self) -> wait_base:
        return wait_exponential(multiplier=self.initial_backoff) + wait_random(0, self.max_jitter)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.retry_max_attempts,
            initial_backoff=settings.retry_initial_backoff_seconds,
            max_jitter=settings.retry_max_jitter_seconds,
        )


DEFAULT_RETRY_POLICY = RetryPolicy()


def is_retryable_status(status_code: int) -> bool:
    """429 and every 5xx are worth another attempt."""
    return status_code == 429 or status_code >= 500


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "FETCH_ATTEMPT",
        extra={
            "url": getattr(error, "url", None),
            "attempt": retry_state.attempt_number,
            "outcome": getattr(error, "reason", str(error)),
            "status_code": getattr(error, "status_code", None),
            "retry_in_seconds": round(retry_state.next_action.sleep, 3)
            if retry_state.next_action
            else None,
        },
    )


async def _get_once(
    client: httpx.AsyncClient,
    url: str,
    params: dict[str, Any] | None,
    headers: dict[str, str] | None,
    attempt_number: int,
) -> httpx.Response:
    try:
        response = await client.get(url, params=params, headers=headers)
    except httpx.TransportError as e:
        reason = f"network error: {type(e).__name__}"
        raise TransientError(f"Request to {url} failed: {reason}", url=url, reason=reason) from e

    status_code = response.status_code
    if response.is_success:
        logger.info(
            "FETCH_ATTEMPT",
            extra={
                "url": url,
                "attempt": attempt_number,
                "outcome": "success",
                "status_code": status_code,
            },
        )
        return response

    reason = f"HTTP {status_code}"
    message = f"Request to {url} failed: {reason}"
    if is_retryable_status(status_code):
        raise TransientError(message, url=url, status_code=status_code, reason=reason)

    logger.warning(
        "FETCH_ATTEMPT",
        extra={
            "url": url,
            "attempt": attempt_number,
            "outcome": "permanent_failure",
            "status_code": status_code,
        },
    )
    raise PermanentError(message, url=url, status_code=status_code, reason=reason)


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
) -> httpx.Response:
    """
    GET ``url``, retrying transient failures.

    Args:
        client: Shared async client (connection reuse)
        url: Absolute URL, or a path relative to the client's base_url
        params: Query-string parameters
        headers: Extra headers (API credentials)
        policy: Attempt budget and backoff schedule

    Returns:
        The first 2xx response

    Raises:
        PermanentError: Non-retryable status, after a single attempt
        TransientError: Retryable failure on every attempt
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=policy.wait(),
        retry=retry_if_exception_type(TransientError),
        before_sleep=_log_retry,
    )

    try:
        async for attempt in retrying:
            with attempt:
                response = await _get_once(
                    client, url, params, headers, attempt.retry_state.attempt_number
                )
    except RetryError as e:
        last = e.last_attempt.exception()
        reason = getattr(last, "reason", str(last))
        logger.error(
            "FETCH_EXHAUSTED",
            extra={"url": url, "attempts": policy.max_attempts, "outcome": reason},
        )
        raise TransientError(
            f"Request to {url} failed after {policy.max_attempts} attempts: {reason}",
            url=url,
            status_code=getattr(last, "status_code", None),
            reason=reason,
        ) from last

    return response
