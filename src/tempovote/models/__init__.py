"""Core data models for tempovote."""

from tempovote.models.decay import (
    DecayModel,
    ExponentialDecay,
    LinearDecay,
    SteppedDecay,
)
from tempovote.models.threshold import (
    ExponentialThreshold,
    LinearThreshold,
    ProgressionProfile,
    ProposalCategory,
    ProposalHistory,
    SigmoidThreshold,
    StepFunctionThreshold,
    ThresholdModel,
    ThresholdRequirement,
)
from tempovote.models.vote import Vote, WeightedVote, WeightRecord

__all__ = [
    "DecayModel",
    "ExponentialDecay",
    "LinearDecay",
    "SteppedDecay",
    "ExponentialThreshold",
    "LinearThreshold",
    "ProgressionProfile",
    "ProposalCategory",
    "ProposalHistory",
    "SigmoidThreshold",
    "StepFunctionThreshold",
    "ThresholdModel",
    "ThresholdRequirement",
    "Vote",
    "WeightedVote",
    "WeightRecord",
]
