"""Tally policy invariant checks against the JSON policy artifact.

Each check appends a human-readable error instead of raising, so that a
single run reports every violation at once.
"""

from __future__ import annotations

import math
from typing import Any

from tempovote.engine.threshold import MAX_THRESHOLD, MIN_THRESHOLD
from tempovote.models.decay import decay_model_from_dict
from tempovote.models.threshold import ProposalCategory, threshold_model_from_dict


CATEGORY_ORDER = (
    ProposalCategory.NORMAL,
    ProposalCategory.CRITICAL,
    ProposalCategory.EMERGENCY,
)


def check_requirements(section: dict[str, Any], errors: list[str]) -> None:
    """Validate per-category requirements share common structural rules."""
    if not isinstance(section, dict):
        errors.append(f"category_requirements must be an object, got {section!r}")
        return
    for category in CATEGORY_ORDER:
        entry = section.get(category.value)
        if entry is None:
            errors.append(f"category_requirements missing category: {category.value}")
            continue
        if not isinstance(entry, dict):
            errors.append(f"{category.value} must be an object, got {entry!r}")
            continue
        pct = entry.get("min_percentage")
        yes = entry.get("min_yes_votes")
        if not isinstance(pct, (int, float)) or not 0.0 <= pct <= 1.0:
            errors.append(f"{category.value}.min_percentage must be in [0, 1], got {pct}")
        if not isinstance(yes, int) or yes < 0:
            errors.append(f"{category.value}.min_yes_votes must be an int >= 0, got {yes}")
        if isinstance(pct, (int, float)) and pct < MIN_THRESHOLD:
            errors.append(
                f"{category.value}.min_percentage must be a strict majority "
                f"(>= {MIN_THRESHOLD}), got {pct}"
            )

    for name in section:
        if name not in {c.value for c in CATEGORY_ORDER}:
            errors.append(f"category_requirements has unknown category: {name}")

    # Each higher category must demand a strictly larger fraction
    entries = [section.get(c.value) for c in CATEGORY_ORDER]
    pcts = [
        entry.get("min_percentage") if isinstance(entry, dict) else None
        for entry in entries
    ]
    if all(isinstance(p, (int, float)) for p in pcts):
        for low, high, p_low, p_high in zip(CATEGORY_ORDER, CATEGORY_ORDER[1:], pcts, pcts[1:]):
            if p_high <= p_low:
                errors.append(
                    f"{high.value}.min_percentage ({p_high}) must be > "
                    f"{low.value}.min_percentage ({p_low})"
                )


def check_policy(params: dict[str, Any]) -> list[str]:
    """Return a list of invariant violations. Empty list = valid."""
    errors: list[str] = []

    check_requirements(params.get("category_requirements", {}), errors)

    cutoff = params.get("profile_recommendation", {}).get("low_participation_avg_votes")
    if cutoff is not None and (not isinstance(cutoff, (int, float)) or cutoff <= 0):
        errors.append(f"low_participation_avg_votes must be > 0, got {cutoff}")

    defaults = params.get("defaults", {})
    if "decay_model" in defaults:
        try:
            decay_model_from_dict(defaults["decay_model"])
        except (KeyError, ValueError) as exc:
            errors.append(f"defaults.decay_model invalid: {exc}")
    if "threshold_model" in defaults:
        try:
            threshold_model_from_dict(defaults["threshold_model"])
        except (KeyError, ValueError) as exc:
            errors.append(f"defaults.threshold_model invalid: {exc}")
    window = defaults.get("voting_window")
    if window is not None and window not in ("short", "medium", "long"):
        errors.append(f"defaults.voting_window must be short|medium|long, got {window}")

    for voter_id, bonus in params.get("reputation", {}).items():
        try:
            value = float(bonus)
        except (TypeError, ValueError):
            errors.append(f"reputation[{voter_id}] is not numeric: {bonus!r}")
            continue
        if not math.isfinite(value) or value < 0:
            errors.append(f"reputation[{voter_id}] must be finite and >= 0, got {bonus}")

    if MIN_THRESHOLD >= MAX_THRESHOLD:
        errors.append("MIN_THRESHOLD must be below MAX_THRESHOLD")

    return errors
