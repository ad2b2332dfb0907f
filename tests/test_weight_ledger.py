"""Tests for the weight ledger — proves caching, history, and reputation rules."""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from tempovote.ledger.weights import WeightLedger, effective_weight
from tempovote.models.decay import ExponentialDecay, LinearDecay, SteppedDecay
from tempovote.models.vote import Vote, WeightedVote


def _t0() -> datetime:
    return datetime(2026, 2, 16, 12, 0, 0, tzinfo=timezone.utc)


def _wv(
    voter_id: str,
    weight: str = "1.0",
    bonus: str = "0",
    model=None,
) -> WeightedVote:
    return WeightedVote(
        voter_id=voter_id,
        vote_time=_t0(),
        orig_weight=Decimal(weight),
        decay_model=model or ExponentialDecay(rate=0.001),
        reputation_bonus=Decimal(bonus),
    )


class TestComputeAndRecord:
    def test_no_decay_no_bonus(self) -> None:
        ledger = WeightLedger()
        assert ledger.compute_and_record(_wv("alice"), _t0(), _t0()) == Decimal("1")

    def test_reputation_bonus_applied(self) -> None:
        ledger = WeightLedger()
        w = ledger.compute_and_record(_wv("alice", bonus="0.1"), _t0(), _t0())
        assert w == Decimal("1.1")

    def test_decay_then_bonus(self) -> None:
        ledger = WeightLedger()
        model = SteppedDecay(step_interval_secs=30, decay_factor=0.10)
        vote = _wv("alice", weight="80", bonus="0.5", model=model)
        w = ledger.compute_and_record(vote, _t0(), _t0() + timedelta(seconds=90))
        assert abs(float(w) - 84.0) < 0.001

    def test_returns_decimal(self) -> None:
        ledger = WeightLedger()
        w = ledger.compute_and_record(_wv("alice"), _t0(), _t0() + timedelta(seconds=10))
        assert isinstance(w, Decimal)

    def test_second_call_overwrites_cache_keeps_history(self) -> None:
        ledger = WeightLedger()
        model = LinearDecay(rate=0.01)
        first = ledger.compute_and_record(_wv("alice", model=model), _t0(), _t0())
        second = ledger.compute_and_record(
            _wv("alice", model=model), _t0(), _t0() + timedelta(seconds=10)
        )
        assert first != second
        assert ledger.history_count == 2
        assert len(ledger.history()) == 2
        assert ledger.cached_weight("alice") == second

    def test_history_preserves_insertion_order(self) -> None:
        ledger = WeightLedger()
        for i, voter in enumerate(["carol", "alice", "bob"]):
            ledger.compute_and_record(_wv(voter), _t0(), _t0() + timedelta(seconds=i))
        history = ledger.history()
        assert [r.voter_id for r in history] == ["carol", "alice", "bob"]
        assert [r.recorded_utc for r in history] == [
            _t0(), _t0() + timedelta(seconds=1), _t0() + timedelta(seconds=2)
        ]

    def test_history_is_a_copy(self) -> None:
        ledger = WeightLedger()
        ledger.compute_and_record(_wv("alice"), _t0(), _t0())
        ledger.history().clear()
        assert ledger.history_count == 1

    def test_uncached_voter(self) -> None:
        assert WeightLedger().cached_weight("nobody") is None


class TestBatch:
    def test_batch_returns_only_batch(self) -> None:
        ledger = WeightLedger()
        ledger.compute_and_record(_wv("zed"), _t0(), _t0())
        result = ledger.batch_compute([_wv("alice"), _wv("bob")], _t0(), _t0())
        assert set(result) == {"alice", "bob"}
        assert ledger.cached_weight("zed") == Decimal("1")
        assert ledger.history_count == 3

    def test_batch_duplicate_voter_keeps_last(self) -> None:
        ledger = WeightLedger()
        result = ledger.batch_compute(
            [_wv("alice", weight="1"), _wv("alice", weight="2")], _t0(), _t0()
        )
        assert result == {"alice": Decimal("2")}
        assert ledger.history_count == 2
        assert [r.weight for r in ledger.history()] == [Decimal("1"), Decimal("2")]

    def test_empty_batch(self) -> None:
        ledger = WeightLedger()
        assert ledger.batch_compute([], _t0(), _t0()) == {}
        assert ledger.history_count == 0


class TestReputation:
    def test_missing_reputation_defaults_to_zero(self) -> None:
        assert WeightLedger().reputation_for("unknown") == Decimal("0")

    def test_set_reputation(self) -> None:
        ledger = WeightLedger()
        ledger.set_reputation("alice", Decimal("0.2"))
        assert ledger.reputation_for("alice") == Decimal("0.2")
        ledger.set_reputation("alice", Decimal("0.05"))
        assert ledger.reputation_for("alice") == Decimal("0.05")

    def test_initial_reputation(self) -> None:
        ledger = WeightLedger({"bob": Decimal("0.3")})
        assert ledger.reputation_for("bob") == Decimal("0.3")

    def test_weighted_vote_for_uses_reputation(self) -> None:
        ledger = WeightLedger({"eve": Decimal("0.2")})
        vote = Vote(voter_id="eve", validator_id="val5", vote_time=_t0(), vote_weight=2.0)
        weighted = ledger.weighted_vote_for(vote, LinearDecay(rate=0.0))
        assert weighted.orig_weight == Decimal("2.0")
        assert weighted.reputation_bonus == Decimal("0.2")
        assert ledger.compute_and_record(weighted, _t0(), _t0()) == Decimal("2.4")

    def test_weighted_vote_for_unknown_voter(self) -> None:
        ledger = WeightLedger()
        vote = Vote(voter_id="x", validator_id="v", vote_time=_t0(), vote_weight=1.0)
        assert ledger.weighted_vote_for(vote, LinearDecay(0.01)).reputation_bonus == Decimal("0")


class TestEffectiveWeight:
    def test_floor_survives_bonus(self) -> None:
        vote = _wv("alice", weight="10", bonus="1", model=LinearDecay(rate=1.0))
        w = effective_weight(vote, _t0(), _t0() + timedelta(hours=1))
        assert w == Decimal("2")
