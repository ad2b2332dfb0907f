"""Vote data models.

A Vote is what a voter casts. It is immutable once created and has a
deterministic canonical encoding, used both as the signing message and
inside ledger block payloads.

A WeightedVote is derived from a Vote at tally time. It carries the
fixed-point original weight, the decay model in force, and the voter's
reputation bonus.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from tempovote.models.decay import DecayModel


@dataclass(frozen=True)
class Vote:
    """A single ballot.

    approve=True is a yes vote.
    """
    voter_id: str
    validator_id: str
    vote_time: datetime
    vote_weight: float
    approve: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "voter_id": self.voter_id,
            "validator_id": self.validator_id,
            "vote_time": self.vote_time.isoformat(),
            "vote_weight": self.vote_weight,
            "approve": self.approve,
        }

    def to_bytes(self) -> bytes:
        """Canonical JSON encoding (sorted keys, compact)."""
        return json.dumps(
            self.to_dict(),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        ).encode("utf-8")


@dataclass(frozen=True)
class WeightedVote:
    """A vote prepared for weighting."""
    voter_id: str
    vote_time: datetime
    orig_weight: Decimal
    decay_model: DecayModel
    reputation_bonus: Decimal = Decimal("0")


@dataclass(frozen=True)
class WeightRecord:
    """One entry of the weight ledger's audit history."""
    voter_id: str
    weight: Decimal
    recorded_utc: datetime
