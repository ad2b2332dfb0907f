"""Cryptographic primitives — hash-chain ledger and vote signing."""

from tempovote.crypto.chain import Block, HashChain, GENESIS_PREVIOUS_HASH
from tempovote.crypto.signing import SignedVote, sign_vote

__all__ = ["Block", "HashChain", "GENESIS_PREVIOUS_HASH", "SignedVote", "sign_vote"]
