from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class PolitenessLevel(enum.Enum):
    """
    Ordered politeness categories.

    Declaration order is meaningful for display only; never interpolate
    between members.
    """

    POLITE = 0
    SOMEWHAT_POLITE = 1
    NEUTRAL = 2
    IMPOLITE = 3

    def __str__(self) -> str:
        return _LEVEL_NAMES[self]


_LEVEL_NAMES = {
    PolitenessLevel.POLITE: "Polite",
    PolitenessLevel.SOMEWHAT_POLITE: "SomewhatPolite",
    PolitenessLevel.NEUTRAL: "Neutral",
    PolitenessLevel.IMPOLITE: "Impolite",
}


class ReadyState(enum.Enum):
    NOT_READY = "not_ready"
    INITIALIZING = "initializing"
    READY = "ready"


class ReadyResultStatus(enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ReadyResult:
    """
    Outcome of one readiness attempt.

    - status: success|failed
    - error: the exception that failed the attempt (None on success)
    """

    status: ReadyResultStatus
    error: Optional[BaseException] = None

    @classmethod
    def success(cls) -> "ReadyResult":
        return cls(status=ReadyResultStatus.SUCCESS)

    @classmethod
    def failed(cls, error: BaseException) -> "ReadyResult":
        return cls(status=ReadyResultStatus.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status is ReadyResultStatus.SUCCESS


@dataclass(frozen=True)
class PolitenessAnalysisResponse:
    """
    Standardized politeness output.

    - level: one of the four PolitenessLevel members
    - description: fixed human-readable sentence for the level
    - inference_time_ms: wall-clock time of encode + inference + interpret
    """

    level: PolitenessLevel
    description: str
    inference_time_ms: int
