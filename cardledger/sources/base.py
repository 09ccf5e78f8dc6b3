"""
Catalog source base class.

Wraps each adapter's lookup so that no fetch or parse failure escapes to
the orchestrator: failures become an empty SourceResult carrying a
SourceWarning, which keeps "errored" distinguishable from "cleanly empty"
without changing the fallback control flow.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from cardledger.models.card import CandidateCard, CardQuery, SourceTag
from cardledger.models.resolution import SourceResult, WarningKind
from cardledger.parsers.common import ParseError, read_json
from cardledger.services.fetcher import (
    DEFAULT_RETRY_POLICY,
    PermanentError,
    RetryPolicy,
    TransientError,
    fetch_with_retry,
)

logger = logging.getLogger(__name__)


class BaseCatalogSource(ABC):
    """
    Common search contract for one external card-data provider.

    Subclasses set ``source_tag`` and implement ``_search`` and ``_lookup``,
    which may raise FetchError subclasses or ParseError freely.
    """

    source_tag: SourceTag

    def __init__(
        self,
        client: httpx.AsyncClient,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    ) -> None:
        self._client = client
        self._retry_policy = retry_policy

    @property
    def configured(self) -> bool:
        """False when credentials needed to reach the source are missing."""
        return True

    @abstractmethod
    async def _search(self, query: CardQuery, limit: int) -> list[CandidateCard]:
        """Look up candidates; exceptions are contained by ``search``."""

    @abstractmethod
    async def _lookup(
        self, card_id: str, condition: str | None, printing: str | None
    ) -> list[CandidateCard]:
        """Fetch one catalog card by id; exceptions are contained by ``lookup``."""

    async def _contain(
        self, action: Callable[[], Awaitable[list[CandidateCard]]]
    ) -> SourceResult:
        tag = self.source_tag

        if not self.configured:
            logger.warning("SOURCE_NOT_CONFIGURED", extra={"source": tag.value})
            return SourceResult.failed(tag, WarningKind.NOT_CONFIGURED, "Source is not configured")

        try:
            candidates = await action()
        except TransientError as e:
            logger.warning("SOURCE_TRANSIENT_FAILURE", extra={"source": tag.value, "error": str(e)})
            return SourceResult.failed(tag, WarningKind.TRANSIENT, str(e))
        except PermanentError as e:
            logger.warning("SOURCE_PERMANENT_FAILURE", extra={"source": tag.value, "error": str(e)})
            return SourceResult.failed(tag, WarningKind.PERMANENT, str(e))
        except ParseError as e:
            logger.warning(
                "SOURCE_PARSE_FAILURE",
                extra={"source": tag.value, "error": str(e), "raw_text": e.raw_text},
            )
            return SourceResult.failed(tag, WarningKind.PARSE, str(e))
        except httpx.HTTPError as e:
            logger.warning("SOURCE_HTTP_FAILURE", extra={"source": tag.value, "error": str(e)})
            return SourceResult.failed(tag, WarningKind.TRANSIENT, str(e))

        return SourceResult(candidates=candidates)

    async def search(self, query: CardQuery, limit: int) -> SourceResult:
        """
        Search this source.

        Args:
            query: Card to look up
            limit: Maximum candidates to return

        Returns:
            SourceResult; on any failure an empty list plus a warning
        """
        result = await self._contain(lambda: self._search(query, limit))
        if result.errored:
            return result

        logger.info(
            "SOURCE_SEARCHED",
            extra={
                "source": self.source_tag.value,
                "query": query.name,
                "candidates": len(result.candidates),
            },
        )
        return SourceResult(candidates=result.candidates[:limit])

    async def lookup(
        self,
        card_id: str,
        condition: str | None = None,
        printing: str | None = None,
    ) -> SourceResult:
        """
        Fetch a single catalog card by its source id.

        A card with several sale variants comes back as several candidates.
        An unknown id is an empty, clean result. Failures are contained the
        same way as ``search``.
        """
        result = await self._contain(lambda: self._lookup(card_id, condition, printing))
        if not result.errored:
            logger.info(
                "SOURCE_CARD_FETCHED",
                extra={
                    "source": self.source_tag.value,
                    "card_id": card_id,
                    "candidates": len(result.candidates),
                },
            )
        return result

    async def _get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> tuple[Any, str]:
        """
        GET with retry and decode the JSON body.

        Returns:
            Tuple of (decoded payload, raw body text)
        """
        response = await fetch_with_retry(
            self._client,
            url,
            params=params,
            headers=headers,
            policy=self._retry_policy,
        )
        return read_json(response), response.text
