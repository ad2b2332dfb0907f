"""Decay model variants.

A decay model describes how a vote's weight diminishes with the time
elapsed since it was cast. The variant set is closed:

- LinearDecay: weight falls by ``rate`` per elapsed second.
- ExponentialDecay: weight falls as e^(-rate * seconds).
- SteppedDecay: weight drops by ``decay_factor`` every ``step_interval_secs``.

Models are immutable values passed into each decay computation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class LinearDecay:
    """Linear decay: 1% per minute is roughly rate=0.000167."""
    rate: float


@dataclass(frozen=True)
class ExponentialDecay:
    """Exponential decay: 0.1% per second is rate=0.001."""
    rate: float


@dataclass(frozen=True)
class SteppedDecay:
    """Stepped decay.

    Invariants:
    - step_interval_secs > 0
    """
    step_interval_secs: int
    decay_factor: float

    def __post_init__(self) -> None:
        if self.step_interval_secs <= 0:
            raise ValueError("step_interval_secs must be > 0")


DecayModel = Union[LinearDecay, ExponentialDecay, SteppedDecay]


def decay_model_from_dict(data: dict) -> DecayModel:
    """Build a decay model from its configuration form.

    Accepted shapes:
        {"kind": "linear", "rate": 0.01}
        {"kind": "exponential", "rate": 0.001}
        {"kind": "stepped", "step_interval_secs": 30, "decay_factor": 0.1}
    """
    kind = data.get("kind")
    if kind == "linear":
        return LinearDecay(rate=float(data["rate"]))
    if kind == "exponential":
        return ExponentialDecay(rate=float(data["rate"]))
    if kind == "stepped":
        return SteppedDecay(
            step_interval_secs=int(data["step_interval_secs"]),
            decay_factor=float(data["decay_factor"]),
        )
    raise ValueError(f"Unknown decay model kind: {kind!r}")
