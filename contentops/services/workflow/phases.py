"""Tagged per-phase outcomes interpreted by the workflow runner."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

R = TypeVar("R")

OutcomeKind = Literal["ok", "degraded", "fatal"]

# Phase name -> (progress at start, progress at end)
PHASE_BANDS: dict[str, tuple[int, int]] = {
    "content_generation": (0, 20),
    "image_generation": (20, 40),
    "content_enhancement": (40, 60),
    "interlinking": (60, 80),
    "publishing_preparation": (80, 100),
}

CRITICAL_PHASES = frozenset({"content_generation", "content_enhancement", "publishing_preparation"})


@dataclass(frozen=True)
class PhaseOutcome(Generic[R]):
    """Result of one phase.

    - ok: the phase produced its result
    - degraded: a best-effort phase failed; ``result`` holds what it recorded
    - fatal: the run must stop with ``cause``
    """

    kind: OutcomeKind
    result: R | None = None
    cause: Exception | None = None

    @classmethod
    def ok(cls, result: R) -> "PhaseOutcome[R]":
        return cls(kind="ok", result=result)

    @classmethod
    def degraded(cls, result: R | None, cause: Exception) -> "PhaseOutcome[R]":
        return cls(kind="degraded", result=result, cause=cause)

    @classmethod
    def fatal(cls, cause: Exception) -> "PhaseOutcome[R]":
        return cls(kind="fatal", cause=cause)

    @property
    def is_fatal(self) -> bool:
        return self.kind == "fatal"
