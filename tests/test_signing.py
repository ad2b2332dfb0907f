"""Tests for vote signing — proves signed votes verify and forgeries do not."""

import dataclasses

import pytest
from datetime import datetime, timedelta, timezone

from tempovote.crypto.signing import (
    SignedVote,
    generate_signing_key,
    public_key_bytes,
    sign_vote,
)
from tempovote.models.decay import SteppedDecay
from tempovote.models.vote import Vote


def _t0() -> datetime:
    return datetime(2026, 2, 16, 12, 0, 0, tzinfo=timezone.utc)


def _vote(**overrides) -> Vote:
    fields = dict(
        voter_id="user",
        validator_id="val",
        vote_time=_t0(),
        vote_weight=100.0,
    )
    fields.update(overrides)
    return Vote(**fields)


class TestSignAndVerify:
    def test_vote_signature(self) -> None:
        signed = sign_vote(_vote(), generate_signing_key())
        assert signed.verify() is True

    def test_public_key_is_raw_32_bytes(self) -> None:
        key = generate_signing_key()
        assert len(public_key_bytes(key)) == 32
        assert sign_vote(_vote(), key).public_key == public_key_bytes(key)

    def test_tampered_vote_fails(self) -> None:
        signed = sign_vote(_vote(), generate_signing_key())
        forged = dataclasses.replace(signed, vote=_vote(vote_weight=1000.0))
        assert forged.verify() is False

    def test_flipped_choice_fails(self) -> None:
        signed = sign_vote(_vote(approve=True), generate_signing_key())
        forged = dataclasses.replace(signed, vote=_vote(approve=False))
        assert forged.verify() is False

    def test_wrong_public_key_fails(self) -> None:
        signed = sign_vote(_vote(), generate_signing_key())
        other = public_key_bytes(generate_signing_key())
        assert dataclasses.replace(signed, public_key=other).verify() is False

    def test_malformed_public_key_fails(self) -> None:
        signed = sign_vote(_vote(), generate_signing_key())
        assert dataclasses.replace(signed, public_key=b"short").verify() is False

    def test_zeroed_signature_fails(self) -> None:
        signed = sign_vote(_vote(), generate_signing_key())
        assert dataclasses.replace(signed, signature=bytes(64)).verify() is False


class TestVoteEncoding:
    def test_canonical_bytes_deterministic(self) -> None:
        assert _vote().to_bytes() == _vote().to_bytes()

    def test_encoding_covers_all_fields(self) -> None:
        base = _vote().to_bytes()
        assert _vote(voter_id="other").to_bytes() != base
        assert _vote(validator_id="other").to_bytes() != base
        assert _vote(vote_time=_t0() + timedelta(seconds=1)).to_bytes() != base
        assert _vote(vote_weight=99.0).to_bytes() != base
        assert _vote(approve=False).to_bytes() != base


class TestComputeWeight:
    def test_weight_decays_to_cast_time(self) -> None:
        vote = _vote(vote_time=_t0() + timedelta(seconds=90), vote_weight=80.0)
        signed = sign_vote(vote, generate_signing_key())
        weight = signed.compute_weight(_t0(), SteppedDecay(step_interval_secs=30, decay_factor=0.10))
        assert abs(weight - 56.0) < 0.001

    def test_weight_at_start_is_unchanged(self) -> None:
        signed = sign_vote(_vote(), generate_signing_key())
        assert signed.compute_weight(_t0(), SteppedDecay(30, 0.5)) == 100.0
