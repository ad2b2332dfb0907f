"""Policy resolver — loads tally policy from JSON and answers policy queries.

All tunable governance parameters live in ``tally_policy.json`` inside a
config directory. Engines receive a resolver rather than reading files
themselves, so tests and the CLI can point them at different directories.

Missing sections fall back to the built-in defaults below. Unknown
category names or model kinds are rejected on load.
"""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any

from tempovote.models.decay import DecayModel, decay_model_from_dict
from tempovote.models.threshold import (
    ProposalCategory,
    ThresholdModel,
    ThresholdRequirement,
    threshold_model_from_dict,
)


POLICY_FILENAME = "tally_policy.json"

DEFAULT_CATEGORY_REQUIREMENTS: dict[ProposalCategory, ThresholdRequirement] = {
    ProposalCategory.NORMAL: ThresholdRequirement(min_percentage=0.51, min_yes_votes=5),
    ProposalCategory.CRITICAL: ThresholdRequirement(min_percentage=0.80, min_yes_votes=15),
    ProposalCategory.EMERGENCY: ThresholdRequirement(min_percentage=0.90, min_yes_votes=0),
}

DEFAULT_LOW_PARTICIPATION_AVG = 5.0
DEFAULT_VOTING_WINDOW = "medium"
DEFAULT_DECAY_MODEL = {"kind": "exponential", "rate": 0.001}
DEFAULT_THRESHOLD_MODEL = {"kind": "linear", "slope": 0.01}


class PolicyResolver:
    """Typed access to tally policy parameters.

    Usage:
        resolver = PolicyResolver.from_config_dir(Path("config"))
        req = resolver.category_requirement(ProposalCategory.CRITICAL)
    """

    def __init__(self, params: dict[str, Any]) -> None:
        self._params = params
        self._requirements = self._parse_requirements(
            params.get("category_requirements", {})
        )
        defaults = params.get("defaults", {})
        self._decay_model = decay_model_from_dict(
            defaults.get("decay_model", DEFAULT_DECAY_MODEL)
        )
        self._threshold_model = threshold_model_from_dict(
            defaults.get("threshold_model", DEFAULT_THRESHOLD_MODEL)
        )

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> PolicyResolver:
        """Load the policy file from a config directory.

        Raises FileNotFoundError if the policy file is absent.
        """
        path = Path(config_dir) / POLICY_FILENAME
        if not path.exists():
            raise FileNotFoundError(f"Policy file not found: {path}")
        with path.open("r", encoding="utf-8") as handle:
            return cls(json.load(handle))

    @classmethod
    def defaults(cls) -> PolicyResolver:
        """Resolver with built-in defaults only."""
        return cls({})

    @property
    def params(self) -> dict[str, Any]:
        return self._params

    @property
    def version(self) -> str:
        return str(self._params.get("version", "0"))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def category_requirement(self, category: ProposalCategory) -> ThresholdRequirement:
        return self._requirements[category]

    def low_participation_avg(self) -> float:
        """Average vote count below which the aggressive profile is recommended."""
        section = self._params.get("profile_recommendation", {})
        return float(section.get("low_participation_avg_votes", DEFAULT_LOW_PARTICIPATION_AVG))

    def default_decay_model(self) -> DecayModel:
        return self._decay_model

    def default_threshold_model(self) -> ThresholdModel:
        return self._threshold_model

    def default_voting_window(self) -> str:
        return str(self._params.get("defaults", {}).get("voting_window", DEFAULT_VOTING_WINDOW))

    def reputation_bonuses(self) -> dict[str, Decimal]:
        """Configured reputation bonuses, as exact decimals."""
        raw = self._params.get("reputation", {})
        return {voter_id: Decimal(str(bonus)) for voter_id, bonus in raw.items()}

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_requirements(
        section: dict[str, Any],
    ) -> dict[ProposalCategory, ThresholdRequirement]:
        requirements = dict(DEFAULT_CATEGORY_REQUIREMENTS)
        for name, entry in section.items():
            try:
                category = ProposalCategory(name)
            except ValueError:
                raise ValueError(f"Unknown proposal category in policy: {name!r}") from None
            requirements[category] = ThresholdRequirement(
                min_percentage=float(entry["min_percentage"]),
                min_yes_votes=int(entry["min_yes_votes"]),
            )
        return requirements
