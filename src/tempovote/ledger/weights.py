"""Weight ledger — effective vote weights with cache and audit history.

    effective_weight = decayed_weight(orig_weight, vote_start, now, model)
                       * (1 + reputation_bonus)

State:
- cache: voter -> latest effective weight (last write wins, not versioned)
- history: every computed weight in insertion order, never reordered
  or pruned
- reputation: voter -> bonus, externally configured; unknown voters
  have a zero bonus

The ledger is single-writer. It holds no lock; callers sharing an
instance across threads must serialize access themselves.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from tempovote.engine.decay import decayed_weight
from tempovote.models.decay import DecayModel
from tempovote.models.vote import Vote, WeightedVote, WeightRecord

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_ONE = Decimal("1")


def effective_weight(vote: WeightedVote, vote_start: datetime, now: datetime) -> Decimal:
    """Decayed weight of a vote scaled by its reputation bonus."""
    decayed = decayed_weight(float(vote.orig_weight), vote_start, now, vote.decay_model)
    return Decimal(str(decayed)) * (_ONE + vote.reputation_bonus)


class WeightLedger:
    """Computes, caches, and records effective vote weights.

    Usage:
        ledger = WeightLedger()
        ledger.set_reputation("alice", Decimal("0.1"))
        w = ledger.compute_and_record(weighted_vote, vote_start, now)
        ledger.cached_weight("alice")  # == w
    """

    def __init__(self, reputation: Optional[dict[str, Decimal]] = None) -> None:
        self._cache: dict[str, Decimal] = {}
        self._history: list[WeightRecord] = []
        self._reputation: dict[str, Decimal] = dict(reputation or {})

    # ------------------------------------------------------------------
    # Reputation
    # ------------------------------------------------------------------

    def set_reputation(self, voter_id: str, bonus: Decimal) -> None:
        self._reputation[voter_id] = Decimal(bonus)

    def reputation_for(self, voter_id: str) -> Decimal:
        """Configured bonus, or zero if the voter has none."""
        return self._reputation.get(voter_id, _ZERO)

    def weighted_vote_for(self, vote: Vote, decay_model: DecayModel) -> WeightedVote:
        """Prepare a cast vote for weighting with the voter's current bonus."""
        return WeightedVote(
            voter_id=vote.voter_id,
            vote_time=vote.vote_time,
            orig_weight=Decimal(str(vote.vote_weight)),
            decay_model=decay_model,
            reputation_bonus=self.reputation_for(vote.voter_id),
        )

    # ------------------------------------------------------------------
    # Weighting
    # ------------------------------------------------------------------

    def compute_and_record(
        self,
        vote: WeightedVote,
        vote_start: datetime,
        now: datetime,
    ) -> Decimal:
        """Compute the effective weight, cache it, and append it to history."""
        weight = effective_weight(vote, vote_start, now)
        self._cache[vote.voter_id] = weight
        self._history.append(
            WeightRecord(voter_id=vote.voter_id, weight=weight, recorded_utc=now)
        )
        logger.debug("Recorded weight %s for voter %s", weight, vote.voter_id)
        return weight

    def batch_compute(
        self,
        votes: Iterable[WeightedVote],
        vote_start: datetime,
        now: datetime,
    ) -> dict[str, Decimal]:
        """Weight a batch of votes.

        The returned mapping covers only this batch (a voter appearing
        twice keeps the later weight). Cache and history record every vote.
        """
        results: dict[str, Decimal] = {}
        for vote in votes:
            results[vote.voter_id] = self.compute_and_record(vote, vote_start, now)
        return results

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def cached_weight(self, voter_id: str) -> Optional[Decimal]:
        return self._cache.get(voter_id)

    def history(self) -> list[WeightRecord]:
        """Copy of the full weight history, oldest first."""
        return list(self._history)

    @property
    def history_count(self) -> int:
        return len(self._history)
