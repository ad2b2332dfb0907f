"""Tally policy — category requirements and profile recommendation.

A proposal's category fixes its ThresholdRequirement:
- normal:    51% AND at least 5 yes votes
- critical:  80% AND at least 15 yes votes
- emergency: 90% with no absolute floor

Both conditions are mandatory. A high fraction from too few voters fails,
as does a large yes count that is still a minority.
"""

from __future__ import annotations

from typing import Sequence

from tempovote.models.threshold import (
    ProgressionProfile,
    ProposalCategory,
    ProposalHistory,
    ThresholdRequirement,
)
from tempovote.policy.resolver import PolicyResolver


def is_met(requirement: ThresholdRequirement, yes_count: int, total_count: int) -> bool:
    """Evaluate a requirement. An empty vote (total_count == 0) never passes."""
    return requirement.is_met(yes_count, total_count)


class TallyPolicy:
    """Resolves category requirements and recommends progression profiles.

    Usage:
        policy = TallyPolicy(resolver)
        req = policy.requirement_for(ProposalCategory.NORMAL)
        passed = policy.evaluate(ProposalCategory.NORMAL, yes_count=6, total_count=10)
    """

    def __init__(self, resolver: PolicyResolver) -> None:
        self._resolver = resolver

    def requirement_for(self, category: ProposalCategory) -> ThresholdRequirement:
        return self._resolver.category_requirement(category)

    def evaluate(self, category: ProposalCategory, yes_count: int, total_count: int) -> bool:
        """Shortcut for ``is_met(requirement_for(category), yes, total)``."""
        return is_met(self.requirement_for(category), yes_count, total_count)

    def recommend_profile(self, history: Sequence[ProposalHistory]) -> ProgressionProfile:
        """Recommend a progression profile from past participation.

        Average total_votes below the configured cutoff gives aggressive;
        otherwise, and with no history at all, conservative.
        """
        if not history:
            return ProgressionProfile.CONSERVATIVE
        avg_participation = sum(h.total_votes for h in history) / len(history)
        if avg_participation < self._resolver.low_participation_avg():
            return ProgressionProfile.AGGRESSIVE
        return ProgressionProfile.CONSERVATIVE
