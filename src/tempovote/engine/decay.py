"""Vote decay engine — time-based weight decay with a hard floor.

    decayed = model(base_weight, elapsed_seconds)
    result  = max(decayed, DECAY_FLOOR_FRACTION * base_weight)

Key rules:
- Elapsed time is measured in whole seconds; a vote evaluated before its
  start instant is treated as zero elapsed (no negative decay or growth).
- The floor is applied last, after the model. Decay never removes a
  vote's influence entirely.
- Non-finite model output saturates at the floor.
- Decay is a pure computation — no side effects, no clock reads.
"""

from __future__ import annotations

import math
from datetime import datetime

from tempovote.models.decay import (
    DecayModel,
    ExponentialDecay,
    LinearDecay,
    SteppedDecay,
)


DECAY_FLOOR_FRACTION = 0.10


def elapsed_seconds(start: datetime, now: datetime) -> int:
    """Whole seconds from start to now, clamped at zero."""
    return max(0, int((now - start).total_seconds()))


def decay_multiplier(model: DecayModel, seconds: int) -> float:
    """Raw model multiplier for a given elapsed time (before flooring)."""
    if isinstance(model, LinearDecay):
        return 1.0 - model.rate * seconds
    if isinstance(model, ExponentialDecay):
        try:
            return math.exp(-model.rate * seconds)
        except OverflowError:
            return math.inf
    if isinstance(model, SteppedDecay):
        steps = math.floor(seconds / model.step_interval_secs)
        return 1.0 - model.decay_factor * steps
    raise TypeError(f"Unsupported decay model: {type(model).__name__}")


def decayed_weight(
    base_weight: float,
    start: datetime,
    now: datetime,
    model: DecayModel,
) -> float:
    """Compute the decayed weight of a vote.

    Returns a value >= DECAY_FLOOR_FRACTION * base_weight. At zero
    elapsed time every model returns base_weight unchanged.
    """
    seconds = elapsed_seconds(start, now)
    floor = base_weight * DECAY_FLOOR_FRACTION
    decayed = base_weight * decay_multiplier(model, seconds)

    if not math.isfinite(decayed):
        return floor
    return max(decayed, floor)
