"""Threshold engine — time-progressive passing fraction.

The required yes fraction for a proposal rises while voting stays open.
Two independent strategies are provided; the caller picks one:

Model-based (``required_fraction``):
    Exponential:  MIN * (1 + growth_rate) ** minutes
    Linear:       MIN + slope * minutes
    Sigmoid:      MIN + (MAX - MIN) / (1 + e^(-steepness * (minutes - midpoint)))
    StepFunction: value of the last breakpoint with time <= minutes, else MIN

    An emergency override bypasses the model entirely. Every result,
    override included, is clamped to [MIN_THRESHOLD, MAX_THRESHOLD].
    Overflow saturates: +inf -> MAX, -inf -> MIN, NaN -> MAX.

Profile-based (``profile_threshold``):
    Conservative: 0.51 + 0.01 per 5 minutes
    Aggressive:   0.51 + 0.02 per minute
    Adaptive:     0.70 if participation < 0.30, else 0.55 + 0.01 per 2 minutes
    Capped at MAX_THRESHOLD.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from tempovote.models.threshold import (
    ExponentialThreshold,
    LinearThreshold,
    ProgressionProfile,
    SigmoidThreshold,
    StepFunctionThreshold,
    ThresholdModel,
)


MIN_THRESHOLD = 0.51
MAX_THRESHOLD = 0.90

# Adaptive profile participation cut-off and pinned value
ADAPTIVE_LOW_PARTICIPATION = 0.30
ADAPTIVE_PINNED_THRESHOLD = 0.70


def clamp_threshold(value: float) -> float:
    """Clamp into [MIN_THRESHOLD, MAX_THRESHOLD]. NaN maps to MAX."""
    if math.isnan(value):
        return MAX_THRESHOLD
    return max(MIN_THRESHOLD, min(MAX_THRESHOLD, value))


def elapsed_minutes(start: datetime, now: datetime) -> int:
    """Whole minutes from start to now, clamped at zero."""
    return max(0, int((now - start).total_seconds() // 60))


def model_threshold(model: ThresholdModel, minutes: int) -> float:
    """Raw (unclamped) model value at the given elapsed minutes."""
    if isinstance(model, ExponentialThreshold):
        try:
            return MIN_THRESHOLD * (1.0 + model.growth_rate) ** minutes
        except OverflowError:
            # A negative base raised to an odd power overflows toward -inf
            if 1.0 + model.growth_rate < 0 and minutes % 2:
                return -math.inf
            return math.inf
    if isinstance(model, LinearThreshold):
        return MIN_THRESHOLD + model.slope * minutes
    if isinstance(model, SigmoidThreshold):
        try:
            denominator = 1.0 + math.exp(-model.steepness * (minutes - model.midpoint))
        except OverflowError:
            return MIN_THRESHOLD
        return MIN_THRESHOLD + (MAX_THRESHOLD - MIN_THRESHOLD) / denominator
    if isinstance(model, StepFunctionThreshold):
        threshold = MIN_THRESHOLD
        for at_minutes, value in model.breakpoints:
            if at_minutes <= minutes:
                threshold = value
        return threshold
    raise TypeError(f"Unsupported threshold model: {type(model).__name__}")


def required_fraction(
    start: datetime,
    now: datetime,
    model: ThresholdModel,
    override: Optional[float] = None,
) -> float:
    """Required passing fraction at ``now`` for a vote opened at ``start``.

    If ``override`` is given the model is not evaluated; the override is
    clamped like any other value (out-of-range overrides are not rejected).
    """
    if override is not None:
        return clamp_threshold(override)
    return clamp_threshold(model_threshold(model, elapsed_minutes(start, now)))


threshold_at = required_fraction


def profile_threshold(
    profile: ProgressionProfile,
    elapsed_seconds: float,
    participation: float,
) -> float:
    """Required passing fraction under a named progression profile."""
    seconds = max(0.0, float(elapsed_seconds))
    if profile == ProgressionProfile.CONSERVATIVE:
        value = 0.51 + 0.01 * (seconds / 300.0)
    elif profile == ProgressionProfile.AGGRESSIVE:
        value = 0.51 + 0.02 * (seconds / 60.0)
    elif profile == ProgressionProfile.ADAPTIVE:
        if participation < ADAPTIVE_LOW_PARTICIPATION:
            value = ADAPTIVE_PINNED_THRESHOLD
        else:
            value = 0.55 + 0.01 * (seconds / 120.0)
    else:
        raise TypeError(f"Unsupported progression profile: {profile!r}")
    return min(value, MAX_THRESHOLD)


def scheduled_base_threshold(hour: int) -> float:
    """Base threshold by hour of day (UTC).

    Night-time proposals (00-06) need 70%, working hours (07-18) 55%,
    evenings 60%.
    """
    if not 0 <= hour <= 23:
        raise ValueError(f"hour must be in [0, 23], got {hour}")
    if hour <= 6:
        return 0.70
    if hour <= 18:
        return 0.55
    return 0.60
