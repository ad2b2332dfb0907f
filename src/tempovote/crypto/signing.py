"""Vote signing — Ed25519 envelopes over the canonical vote encoding.

The tally only consumes the boolean from ``SignedVote.verify()``; it never
inspects signature internals. Keys travel as raw 32-byte public keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from tempovote.engine.decay import decayed_weight
from tempovote.models.decay import DecayModel
from tempovote.models.vote import Vote


def generate_signing_key() -> ed25519.Ed25519PrivateKey:
    return ed25519.Ed25519PrivateKey.generate()


def public_key_bytes(private_key: ed25519.Ed25519PrivateKey) -> bytes:
    """Raw public key bytes for a private key."""
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


@dataclass(frozen=True)
class SignedVote:
    """A vote with its Ed25519 signature and the signer's public key."""
    vote: Vote
    signature: bytes
    public_key: bytes

    def verify(self) -> bool:
        """True if the signature matches the vote under the public key.

        Malformed keys and tampered votes both yield False.
        """
        try:
            key = ed25519.Ed25519PublicKey.from_public_bytes(self.public_key)
        except ValueError:
            return False
        try:
            key.verify(self.signature, self.vote.to_bytes())
        except InvalidSignature:
            return False
        return True

    def compute_weight(self, vote_start: datetime, decay_model: DecayModel) -> float:
        """Decayed weight of the enclosed vote, evaluated at its cast time."""
        return decayed_weight(self.vote.vote_weight, vote_start, self.vote.vote_time, decay_model)


def sign_vote(vote: Vote, private_key: ed25519.Ed25519PrivateKey) -> SignedVote:
    return SignedVote(
        vote=vote,
        signature=private_key.sign(vote.to_bytes()),
        public_key=public_key_bytes(private_key),
    )
