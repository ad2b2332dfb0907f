"""Weighting and threshold engines — pure functions over caller-supplied time."""

from tempovote.engine.decay import decayed_weight
from tempovote.engine.threshold import (
    MAX_THRESHOLD,
    MIN_THRESHOLD,
    profile_threshold,
    required_fraction,
)

__all__ = [
    "decayed_weight",
    "MAX_THRESHOLD",
    "MIN_THRESHOLD",
    "profile_threshold",
    "required_fraction",
]
