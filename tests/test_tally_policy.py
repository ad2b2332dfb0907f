"""Tests for tally policy — proves the AND rule and profile recommendation."""

import pytest
from datetime import datetime, timezone
from pathlib import Path

from tempovote.governance.policy import TallyPolicy, is_met
from tempovote.models.threshold import (
    ProgressionProfile,
    ProposalCategory,
    ProposalHistory,
    ThresholdRequirement,
)
from tempovote.policy.resolver import PolicyResolver


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def resolver() -> PolicyResolver:
    return PolicyResolver.from_config_dir(CONFIG_DIR)


@pytest.fixture
def policy(resolver: PolicyResolver) -> TallyPolicy:
    return TallyPolicy(resolver)


def _history(*totals: int) -> list[ProposalHistory]:
    return [
        ProposalHistory(
            vote_time=datetime(2026, 2, 16, tzinfo=timezone.utc),
            total_votes=t,
            yes_votes=t,
            threshold_passed=True,
        )
        for t in totals
    ]


class TestRequirementFor:
    def test_normal(self, policy: TallyPolicy) -> None:
        req = policy.requirement_for(ProposalCategory.NORMAL)
        assert req == ThresholdRequirement(min_percentage=0.51, min_yes_votes=5)

    def test_critical(self, policy: TallyPolicy) -> None:
        req = policy.requirement_for(ProposalCategory.CRITICAL)
        assert req == ThresholdRequirement(min_percentage=0.80, min_yes_votes=15)

    def test_emergency_has_no_absolute_floor(self, policy: TallyPolicy) -> None:
        req = policy.requirement_for(ProposalCategory.EMERGENCY)
        assert req.min_percentage == 0.90
        assert req.min_yes_votes == 0


class TestIsMet:
    def test_half_is_not_a_majority(self) -> None:
        req = ThresholdRequirement(0.51, 5)
        assert is_met(req, 5, 10) is False

    def test_sixty_percent_passes(self) -> None:
        req = ThresholdRequirement(0.51, 5)
        assert is_met(req, 6, 10) is True

    @pytest.mark.parametrize("req", [
        ThresholdRequirement(0.51, 5),
        ThresholdRequirement(0.80, 15),
        ThresholdRequirement(0.90, 0),
        ThresholdRequirement(0.0, 0),
    ])
    def test_empty_vote_never_passes(self, req: ThresholdRequirement) -> None:
        assert is_met(req, 0, 0) is False

    def test_high_fraction_too_few_votes_fails(self) -> None:
        assert is_met(ThresholdRequirement(0.51, 5), 4, 4) is False

    def test_many_votes_low_fraction_fails(self) -> None:
        assert is_met(ThresholdRequirement(0.51, 5), 10, 30) is False

    def test_exact_fraction_boundary_passes(self) -> None:
        assert is_met(ThresholdRequirement(0.51, 0), 51, 100) is True

    def test_critical_boundaries(self, policy: TallyPolicy) -> None:
        assert policy.evaluate(ProposalCategory.CRITICAL, 15, 18) is True
        assert policy.evaluate(ProposalCategory.CRITICAL, 14, 15) is False
        assert policy.evaluate(ProposalCategory.CRITICAL, 15, 20) is False

    def test_emergency_fraction_only(self, policy: TallyPolicy) -> None:
        assert policy.evaluate(ProposalCategory.EMERGENCY, 9, 10) is True
        assert policy.evaluate(ProposalCategory.EMERGENCY, 8, 10) is False
        assert policy.evaluate(ProposalCategory.EMERGENCY, 1, 1) is True


class TestRequirementValidation:
    def test_fraction_above_one_rejected(self) -> None:
        with pytest.raises(ValueError):
            ThresholdRequirement(1.2, 0)

    def test_negative_fraction_rejected(self) -> None:
        with pytest.raises(ValueError):
            ThresholdRequirement(-0.1, 0)

    def test_negative_min_votes_rejected(self) -> None:
        with pytest.raises(ValueError):
            ThresholdRequirement(0.5, -1)


class TestRecommendProfile:
    def test_empty_history_is_conservative(self, policy: TallyPolicy) -> None:
        assert policy.recommend_profile([]) == ProgressionProfile.CONSERVATIVE

    def test_low_participation_is_aggressive(self, policy: TallyPolicy) -> None:
        assert policy.recommend_profile(_history(3, 3, 3)) == ProgressionProfile.AGGRESSIVE

    def test_average_at_cutoff_is_conservative(self, policy: TallyPolicy) -> None:
        assert policy.recommend_profile(_history(5, 5)) == ProgressionProfile.CONSERVATIVE

    def test_average_just_below_cutoff(self, policy: TallyPolicy) -> None:
        assert policy.recommend_profile(_history(4, 5)) == ProgressionProfile.AGGRESSIVE

    def test_high_average_is_conservative(self, policy: TallyPolicy) -> None:
        assert policy.recommend_profile(_history(2, 10)) == ProgressionProfile.CONSERVATIVE

    def test_cutoff_is_configurable(self) -> None:
        resolver = PolicyResolver({"profile_recommendation": {"low_participation_avg_votes": 20}})
        policy = TallyPolicy(resolver)
        assert policy.recommend_profile(_history(10, 12)) == ProgressionProfile.AGGRESSIVE
