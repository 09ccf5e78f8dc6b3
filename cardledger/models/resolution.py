"""
Resolution outcome models.

Adapters never raise to the orchestrator; they return a SourceResult that
keeps "cleanly empty" apart from "errored, treated as empty".
"""

from dataclasses import dataclass, field
from enum import Enum

from cardledger.models.card import CandidateCard, SourceTag


class WarningKind(str, Enum):
    """Why a source produced no usable answer."""

    NOT_CONFIGURED = "not_configured"
    TRANSIENT = "transient"
    PERMANENT = "permanent"
    PARSE = "parse"


@dataclass(frozen=True)
class SourceWarning:
    """A soft failure reported by one source adapter."""

    source_tag: SourceTag
    kind: WarningKind
    message: str


@dataclass(frozen=True)
class SourceResult:
    """What one adapter returned for one query."""

    candidates: list[CandidateCard] = field(default_factory=list)
    warning: SourceWarning | None = None

    @property
    def errored(self) -> bool:
        """True if the empty answer came from a failure rather than a clean miss."""
        return self.warning is not None

    @classmethod
    def failed(cls, source_tag: SourceTag, kind: WarningKind, message: str) -> "SourceResult":
        return cls(candidates=[], warning=SourceWarning(source_tag, kind, message))


class ResolutionState(str, Enum):
    """Per-query orchestrator state."""

    NOT_STARTED = "not_started"
    TRYING_SOURCE = "trying_source"
    SUCCESS = "success"
    DONE = "done"


class ResolutionStatus(str, Enum):
    """Business outcome of a resolution."""

    MATCHED = "matched"
    NO_SOURCE_MATCHED = "no_source_matched"
    LOOKUP_FAILED = "lookup_failed"


@dataclass
class ResolutionResult:
    """Ranked candidates from the first source that matched."""

    status: ResolutionStatus
    candidates: list[CandidateCard] = field(default_factory=list)
    """Candidates from the winning source only, ranked and truncated."""

    source_tag: SourceTag | None = None
    """The winning source, None when nothing matched."""

    warnings: list[SourceWarning] = field(default_factory=list)
    """Soft failures from every source that was tried."""

    attempted: list[SourceTag] = field(default_factory=list)
    """Sources invoked, in order."""

    @property
    def no_source_matched(self) -> bool:
        return self.status is ResolutionStatus.NO_SOURCE_MATCHED

    @property
    def lookup_failed(self) -> bool:
        return self.status is ResolutionStatus.LOOKUP_FAILED
