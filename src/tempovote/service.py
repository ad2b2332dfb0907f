"""Tally service — unified facade over weighting, thresholds, and the ledger.

Control flow for one proposal:
1. open_proposal: register the proposal and its voting session.
2. cast_vote: accept signed votes while the session is open. Votes with
   an invalid signature, duplicate voters, late votes, and votes stamped
   before the session start or after acceptance are rejected.
3. close_proposal:
   - every vote is weighted through the WeightLedger (decay from the
     session start to the time the service accepted it, times the
     reputation bonus);
   - the category requirement is checked on raw yes/total counts;
   - the weighted yes fraction must reach the model threshold at close;
   - the decision and vote set are appended to the hash chain.
4. verify_chain: re-verify the whole chain at any time.

All operations return a ServiceResult. Expected failures never raise.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Optional, Sequence

from tempovote.crypto.chain import Block, HashChain
from tempovote.crypto.signing import SignedVote
from tempovote.engine.threshold import profile_threshold, required_fraction
from tempovote.governance.policy import TallyPolicy
from tempovote.governance.window import VotingSession, VotingWindow
from tempovote.ledger.weights import WeightLedger
from tempovote.models.decay import DecayModel
from tempovote.models.threshold import (
    ProgressionProfile,
    ProposalCategory,
    ProposalHistory,
    ThresholdModel,
)
from tempovote.models.vote import Vote
from tempovote.policy.resolver import PolicyResolver

logger = logging.getLogger(__name__)

RESULT_PASSED = "PASSED"
RESULT_FAILED = "FAILED"


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class ProposalState:
    """Mutable state of one proposal."""
    proposal_id: str
    category: ProposalCategory
    session: VotingSession
    votes: list[SignedVote] = field(default_factory=list)
    # voter_id -> time the service accepted the vote; decay runs to here
    accepted_at: dict[str, datetime] = field(default_factory=dict)
    closed: bool = False
    result: Optional[str] = None
    block_index: Optional[int] = None

    def has_voted(self, voter_id: str) -> bool:
        return any(sv.vote.voter_id == voter_id for sv in self.votes)


def encode_decision(
    proposal_id: str,
    category: ProposalCategory,
    votes: Sequence[Vote],
    result: str,
    yes_votes: int,
    total_votes: int,
    required: float,
    weighted_yes_fraction: float,
) -> str:
    """Deterministic block payload for a tally decision."""
    return json.dumps(
        {
            "proposal_id": proposal_id,
            "category": category.value,
            "votes": [v.to_dict() for v in votes],
            "result": result,
            "yes_votes": yes_votes,
            "total_votes": total_votes,
            "required_fraction": required,
            "weighted_yes_fraction": weighted_yes_fraction,
        },
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


class TallyService:
    """Tallies time-bounded proposals and anchors decisions in a hash chain.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        service = TallyService(resolver)
        service.open_proposal("p1", ProposalCategory.NORMAL, start)
        service.cast_vote("p1", sign_vote(vote, key), now)
        result = service.close_proposal("p1", now)
        assert service.verify_chain()
    """

    def __init__(
        self,
        resolver: PolicyResolver,
        chain: Optional[HashChain] = None,
        weight_ledger: Optional[WeightLedger] = None,
    ) -> None:
        self._resolver = resolver
        self._policy = TallyPolicy(resolver)
        self._chain = chain or HashChain()
        self._weights = weight_ledger or WeightLedger(resolver.reputation_bonuses())
        self._proposals: dict[str, ProposalState] = {}
        self._history: list[ProposalHistory] = []

    @property
    def chain(self) -> HashChain:
        return self._chain

    @property
    def weight_ledger(self) -> WeightLedger:
        return self._weights

    @property
    def policy(self) -> TallyPolicy:
        return self._policy

    def proposal(self, proposal_id: str) -> Optional[ProposalState]:
        return self._proposals.get(proposal_id)

    # ------------------------------------------------------------------
    # Proposal lifecycle
    # ------------------------------------------------------------------

    def open_proposal(
        self,
        proposal_id: str,
        category: ProposalCategory,
        vote_start: datetime,
        window: Optional[VotingWindow] = None,
        duration: Optional[timedelta] = None,
    ) -> ServiceResult:
        """Open a proposal for voting.

        ``duration`` takes precedence over ``window``; with neither, the
        configured default window applies.
        """
        if proposal_id in self._proposals:
            return ServiceResult(success=False, errors=[f"Duplicate proposal: {proposal_id}"])

        if duration is not None:
            try:
                session = VotingSession(proposal_id, vote_start, duration)
            except ValueError as exc:
                return ServiceResult(success=False, errors=[str(exc)])
        else:
            window = window or VotingWindow(self._resolver.default_voting_window())
            session = VotingSession.from_window(proposal_id, vote_start, window)

        self._proposals[proposal_id] = ProposalState(
            proposal_id=proposal_id,
            category=category,
            session=session,
        )
        logger.info("Opened proposal %s (%s) until %s", proposal_id, category.value, session.end_time)
        return ServiceResult(
            success=True,
            data={
                "proposal_id": proposal_id,
                "category": category.value,
                "end_time": session.end_time.isoformat(),
            },
        )

    def extend_proposal(self, proposal_id: str, extension: timedelta) -> ServiceResult:
        """Extend a proposal's session. Only one extension is allowed."""
        state = self._proposals.get(proposal_id)
        if state is None:
            return ServiceResult(success=False, errors=[f"Unknown proposal: {proposal_id}"])
        if state.closed:
            return ServiceResult(success=False, errors=[f"Proposal already closed: {proposal_id}"])
        if not state.session.extend_if_possible(extension):
            return ServiceResult(success=False, errors=[f"Proposal already extended: {proposal_id}"])
        return ServiceResult(
            success=True,
            data={"proposal_id": proposal_id, "end_time": state.session.end_time.isoformat()},
        )

    def cast_vote(self, proposal_id: str, signed_vote: SignedVote, now: datetime) -> ServiceResult:
        """Accept a signed vote. First vote per voter wins."""
        state = self._proposals.get(proposal_id)
        if state is None:
            return ServiceResult(success=False, errors=[f"Unknown proposal: {proposal_id}"])
        if state.closed:
            return ServiceResult(success=False, errors=[f"Proposal already closed: {proposal_id}"])
        if state.session.has_expired(now):
            return ServiceResult(success=False, errors=[f"Voting window expired: {proposal_id}"])

        voter_id = signed_vote.vote.voter_id
        if not signed_vote.verify():
            logger.warning("Rejected vote with invalid signature from %s on %s", voter_id, proposal_id)
            return ServiceResult(success=False, errors=[f"Invalid signature from {voter_id}"])
        if state.has_voted(voter_id):
            return ServiceResult(success=False, errors=[f"Duplicate vote from {voter_id}"])
        vote_time = signed_vote.vote.vote_time
        if vote_time < state.session.vote_start or vote_time > now:
            logger.warning(
                "Rejected vote from %s on %s: stamped %s, accepted %s",
                voter_id, proposal_id, vote_time.isoformat(), now.isoformat(),
            )
            return ServiceResult(
                success=False,
                errors=[f"Vote time outside [session start, now] from {voter_id}"],
            )

        state.votes.append(signed_vote)
        state.accepted_at[voter_id] = now
        return ServiceResult(
            success=True,
            data={"proposal_id": proposal_id, "voter_id": voter_id, "vote_count": len(state.votes)},
        )

    def close_proposal(
        self,
        proposal_id: str,
        now: datetime,
        decay_model: Optional[DecayModel] = None,
        threshold_model: Optional[ThresholdModel] = None,
        override: Optional[float] = None,
    ) -> ServiceResult:
        """Tally a proposal and append the decision to the chain."""
        state = self._proposals.get(proposal_id)
        if state is None:
            return ServiceResult(success=False, errors=[f"Unknown proposal: {proposal_id}"])
        if state.closed:
            return ServiceResult(success=False, errors=[f"Proposal already closed: {proposal_id}"])

        decay_model = decay_model or self._resolver.default_decay_model()
        threshold_model = threshold_model or self._resolver.default_threshold_model()
        vote_start = state.session.vote_start

        yes_weight = Decimal("0")
        total_weight = Decimal("0")
        weights: dict[str, str] = {}
        for sv in state.votes:
            weighted = self._weights.weighted_vote_for(sv.vote, decay_model)
            accepted = state.accepted_at[sv.vote.voter_id]
            weight = self._weights.compute_and_record(weighted, vote_start, accepted)
            weights[sv.vote.voter_id] = str(weight)
            total_weight += weight
            if sv.vote.approve:
                yes_weight += weight

        total_votes = len(state.votes)
        yes_votes = sum(1 for sv in state.votes if sv.vote.approve)
        requirement = self._policy.requirement_for(state.category)
        weighted_yes_fraction = float(yes_weight / total_weight) if total_weight else 0.0
        required = required_fraction(vote_start, now, threshold_model, override)

        passed = (
            requirement.is_met(yes_votes, total_votes)
            and weighted_yes_fraction >= required
        )
        result = RESULT_PASSED if passed else RESULT_FAILED

        payload = encode_decision(
            proposal_id=proposal_id,
            category=state.category,
            votes=[sv.vote for sv in state.votes],
            result=result,
            yes_votes=yes_votes,
            total_votes=total_votes,
            required=required,
            weighted_yes_fraction=weighted_yes_fraction,
        )
        block = self._chain.append(payload, timestamp_utc=now)

        state.closed = True
        state.result = result
        state.block_index = block.index
        self._history.append(ProposalHistory(
            vote_time=now,
            total_votes=total_votes,
            yes_votes=yes_votes,
            threshold_passed=passed,
        ))
        logger.info(
            "Closed proposal %s: %s (%d/%d yes, weighted %.3f vs required %.3f)",
            proposal_id, result, yes_votes, total_votes, weighted_yes_fraction, required,
        )

        return ServiceResult(
            success=True,
            data={
                "proposal_id": proposal_id,
                "result": result,
                "passed": passed,
                "yes_votes": yes_votes,
                "total_votes": total_votes,
                "min_percentage": requirement.min_percentage,
                "min_yes_votes": requirement.min_yes_votes,
                "required_fraction": required,
                "weighted_yes_fraction": weighted_yes_fraction,
                "weights": weights,
                "block_index": block.index,
                "block_hash": block.hash,
            },
        )

    # ------------------------------------------------------------------
    # Profile-based thresholds
    # ------------------------------------------------------------------

    def recommend_profile(self) -> ProgressionProfile:
        """Recommend a progression profile from closed proposals so far."""
        return self._policy.recommend_profile(self._history)

    def profile_threshold_for(
        self,
        proposal_id: str,
        now: datetime,
        eligible_voters: int,
        profile: Optional[ProgressionProfile] = None,
    ) -> ServiceResult:
        """Required fraction for an open proposal under a named profile.

        Participation is votes cast over eligible voters. Without an
        explicit profile the recommended one is used.
        """
        state = self._proposals.get(proposal_id)
        if state is None:
            return ServiceResult(success=False, errors=[f"Unknown proposal: {proposal_id}"])
        if eligible_voters <= 0:
            return ServiceResult(success=False, errors=["eligible_voters must be > 0"])

        profile = profile or self.recommend_profile()
        participation = len(state.votes) / eligible_voters
        elapsed = (now - state.session.vote_start).total_seconds()
        value = profile_threshold(profile, elapsed, participation)
        return ServiceResult(
            success=True,
            data={
                "proposal_id": proposal_id,
                "profile": profile.value,
                "participation": participation,
                "required_fraction": value,
            },
        )

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    def history(self) -> list[ProposalHistory]:
        return list(self._history)

    def verify_chain(self) -> bool:
        return self._chain.verify()

    def decision_block(self, proposal_id: str) -> Optional[Block]:
        state = self._proposals.get(proposal_id)
        if state is None or state.block_index is None:
            return None
        return self._chain[state.block_index]

    def status(self) -> dict[str, Any]:
        return {
            "policy_version": self._resolver.version,
            "chain_length": len(self._chain),
            "chain_valid": self._chain.verify(),
            "last_block_hash": self._chain.last_block.hash,
            "open_proposals": sorted(p for p, s in self._proposals.items() if not s.closed),
            "closed_proposals": sorted(p for p, s in self._proposals.items() if s.closed),
            "weights_recorded": self._weights.history_count,
        }
