"""Threshold models, requirements, and proposal categories.

Two independent ways of deriving a passing threshold exist:

1. Model-based: an explicit formula over elapsed minutes
   (ExponentialThreshold, LinearThreshold, SigmoidThreshold,
   StepFunctionThreshold), optionally bypassed by an emergency override.
2. Profile-based: a named ProgressionProfile (conservative, aggressive,
   adaptive) selected by the caller.

They are alternative strategies and are never combined.

A ThresholdRequirement is the category-level gate: a proposal passes only
if BOTH the yes fraction and the absolute yes count reach their minimums.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Union


class ProposalCategory(str, enum.Enum):
    """Severity class of a proposal. Higher classes need broader support."""
    NORMAL = "normal"
    CRITICAL = "critical"
    EMERGENCY = "emergency"


class ProgressionProfile(str, enum.Enum):
    """Named threshold progression strategies."""
    CONSERVATIVE = "conservative"  # slow increase
    AGGRESSIVE = "aggressive"  # fast increase
    ADAPTIVE = "adaptive"  # driven by participation


@dataclass(frozen=True)
class ExponentialThreshold:
    growth_rate: float


@dataclass(frozen=True)
class LinearThreshold:
    slope: float


@dataclass(frozen=True)
class SigmoidThreshold:
    steepness: float
    midpoint: float


@dataclass(frozen=True)
class StepFunctionThreshold:
    """Piecewise-constant threshold.

    Breakpoints are (elapsed_minutes, value) pairs. They are stably sorted
    by time on construction, so for equal times the later entry wins.
    """
    breakpoints: tuple[tuple[int, float], ...]

    def __post_init__(self) -> None:
        ordered = tuple(
            sorted(((int(t), float(v)) for t, v in self.breakpoints), key=lambda p: p[0])
        )
        object.__setattr__(self, "breakpoints", ordered)


ThresholdModel = Union[
    ExponentialThreshold,
    LinearThreshold,
    SigmoidThreshold,
    StepFunctionThreshold,
]


def threshold_model_from_dict(data: dict) -> ThresholdModel:
    """Build a threshold model from its configuration form."""
    kind = data.get("kind")
    if kind == "exponential":
        return ExponentialThreshold(growth_rate=float(data["growth_rate"]))
    if kind == "linear":
        return LinearThreshold(slope=float(data["slope"]))
    if kind == "sigmoid":
        return SigmoidThreshold(
            steepness=float(data["steepness"]),
            midpoint=float(data["midpoint"]),
        )
    if kind == "step_function":
        return StepFunctionThreshold(
            breakpoints=tuple((b[0], b[1]) for b in data["breakpoints"])
        )
    raise ValueError(f"Unknown threshold model kind: {kind!r}")


@dataclass(frozen=True)
class ThresholdRequirement:
    """Category-level passing requirement.

    Invariants:
    - 0 <= min_percentage <= 1
    - min_yes_votes >= 0
    """
    min_percentage: float
    min_yes_votes: int

    def __post_init__(self) -> None:
        if not 0.0 <= self.min_percentage <= 1.0:
            raise ValueError(
                f"min_percentage must be in [0, 1], got {self.min_percentage}"
            )
        if self.min_yes_votes < 0:
            raise ValueError(
                f"min_yes_votes must be >= 0, got {self.min_yes_votes}"
            )

    def is_met(self, yes_count: int, total_count: int) -> bool:
        """True only if both the fraction and the absolute count hold.

        An empty vote never passes.
        """
        if total_count == 0:
            return False
        fraction = yes_count / total_count
        return fraction >= self.min_percentage and yes_count >= self.min_yes_votes


@dataclass(frozen=True)
class ProposalHistory:
    """Outcome of a past proposal, used to recommend a progression profile."""
    vote_time: datetime
    total_votes: int
    yes_votes: int
    threshold_passed: bool
