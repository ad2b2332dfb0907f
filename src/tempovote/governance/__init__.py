"""Governance rules — category requirements and voting sessions."""

from tempovote.governance.policy import TallyPolicy, is_met
from tempovote.governance.window import VotingSession, VotingWindow

__all__ = ["TallyPolicy", "is_met", "VotingSession", "VotingWindow"]
