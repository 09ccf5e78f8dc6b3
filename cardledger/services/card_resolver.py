"""
Card Resolution Service.

Resolves a raw identification to ranked catalog candidates by querying
catalog sources in priority order.

INVARIANTS:
1. Sources are invoked strictly sequentially, in declared priority order
2. The first source returning at least one candidate wins; later sources
   are never invoked and candidates are never merged across sources
3. "Nothing matched" is a normal outcome, not an exception
4. Resolution never writes to storage
"""

import logging
from collections.abc import Sequence
from typing import Protocol

from cardledger.config import DEFAULT_RESOLUTION_LIMIT, MAX_RESOLUTION_RESULTS
from cardledger.models.card import CandidateCard, CardQuery, SourceTag
from cardledger.models.failure import InvalidQueryError, LookupFailedError
from cardledger.models.resolution import (
    ResolutionResult,
    ResolutionState,
    ResolutionStatus,
    SourceResult,
    SourceWarning,
)

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    """A card-data provider behind the common search contract."""

    source_tag: SourceTag

    async def search(self, query: CardQuery, limit: int) -> SourceResult:
        """Return candidates for ``query``; never raises."""
        ...


def _log_state(state: ResolutionState, source: SourceTag | None = None) -> None:
    logger.debug(
        "RESOLUTION_STATE",
        extra={"state": state.value, "source": source.value if source else None},
    )


def rank_candidates(candidates: list[CandidateCard], set_hint: str | None) -> list[CandidateCard]:
    """
    Order one source's candidates for display.

    With a set hint, candidates whose set name contains the hint
    (case-insensitive) come first; ties go to the higher price, on the
    heuristic that the pricier listing is likelier the premium printing.
    Unknown prices sort last. Without a hint the source order is kept.

    Args:
        candidates: Candidates from a single source
        set_hint: Set name from identification, if any

    Returns:
        New list in ranked order
    """
    hint = (set_hint or "").strip().lower()
    if not hint:
        return list(candidates)

    def sort_key(card: CandidateCard) -> tuple[bool, bool, float]:
        set_match = hint in card.set_name.lower()
        price = card.price
        return (not set_match, price is None, -float(price) if price is not None else 0.0)

    return sorted(candidates, key=sort_key)


class CardResolver:
    """
    Queries catalog sources in priority order and ranks the winner's candidates.

    Example:
        resolver = CardResolver([sheet_source, pokemon_source, justtcg_source])
        result = await resolver.resolve(CardQuery(name="Pikachu VMAX"))
    """

    def __init__(
        self,
        sources: Sequence[CatalogSource],
        max_results: int = MAX_RESOLUTION_RESULTS,
    ) -> None:
        """
        Args:
            sources: Adapters, catalog-of-record first
            max_results: Hard cap on returned candidates
        """
        self._sources = list(sources)
        self._max_results = max_results

    @property
    def sources(self) -> list[CatalogSource]:
        return list(self._sources)

    def _effective_limit(self, limit: int) -> int:
        return max(1, min(limit, self._max_results))

    async def resolve(
        self, query: CardQuery, limit: int = DEFAULT_RESOLUTION_LIMIT
    ) -> ResolutionResult:
        """
        Resolve a query to ranked candidates.

        Args:
            query: Identification to resolve
            limit: Requested number of candidates (capped at max_results)

        Returns:
            ResolutionResult with status MATCHED, NO_SOURCE_MATCHED, or
            LOOKUP_FAILED (every source errored)

        Raises:
            InvalidQueryError: If the query has no card name
        """
        if not query.name or not query.name.strip():
            raise InvalidQueryError(detail="Card name is empty")

        effective_limit = self._effective_limit(limit)
        warnings: list[SourceWarning] = []
        attempted: list[SourceTag] = []
        _log_state(ResolutionState.NOT_STARTED)

        for source in self._sources:
            attempted.append(source.source_tag)
            _log_state(ResolutionState.TRYING_SOURCE, source.source_tag)

            # Ask for the full cap so ranking sees every candidate before truncation
            result = await source.search(query, self._max_results)

            if result.warning is not None:
                warnings.append(result.warning)

            if result.candidates:
                _log_state(ResolutionState.SUCCESS, source.source_tag)
                ranked = rank_candidates(result.candidates, query.set_name)
                logger.info(
                    "RESOLUTION_MATCHED",
                    extra={
                        "source": source.source_tag.value,
                        "candidates": len(result.candidates),
                        "returned": min(len(ranked), effective_limit),
                    },
                )
                return ResolutionResult(
                    status=ResolutionStatus.MATCHED,
                    candidates=ranked[:effective_limit],
                    source_tag=source.source_tag,
                    warnings=warnings,
                    attempted=attempted,
                )

            logger.info(
                "SOURCE_EMPTY",
                extra={"source": source.source_tag.value, "errored": result.errored},
            )

        _log_state(ResolutionState.DONE)
        all_errored = bool(attempted) and len(warnings) == len(attempted)
        status = ResolutionStatus.LOOKUP_FAILED if all_errored else ResolutionStatus.NO_SOURCE_MATCHED

        logger.info(
            "RESOLUTION_UNMATCHED",
            extra={
                "status": status.value,
                "attempted": [tag.value for tag in attempted],
                "warnings": len(warnings),
            },
        )
        return ResolutionResult(status=status, warnings=warnings, attempted=attempted)

    async def resolve_or_fail(
        self, query: CardQuery, limit: int = DEFAULT_RESOLUTION_LIMIT
    ) -> ResolutionResult:
        """
        Resolve, raising if every source errored.

        A clean "no match" is returned normally.

        Raises:
            InvalidQueryError: If the query has no card name
            LookupFailedError: If every source failed
        """
        result = await self.resolve(query, limit)

        if result.lookup_failed:
            detail = "; ".join(f"{w.source_tag.value}: {w.message}" for w in result.warnings)
            raise LookupFailedError(detail=detail)

        return result
