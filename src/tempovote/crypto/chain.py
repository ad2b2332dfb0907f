"""Hash-chain ledger — append-only, tamper-evident record of tally decisions.

Every block commits to its predecessor:

    block.hash = sha256(canonical_json({index, timestamp_utc, payload, prev_hash}))
    block[i].prev_hash == block[i - 1].hash

Verification recomputes each block's hash from its fields; the stored
value is never trusted.

Chain invariants:
- Block 0 is genesis: prev_hash is GENESIS_PREVIOUS_HASH, payload is
  GENESIS_PAYLOAD.
- Indices equal positions; no gaps.
- ``append`` is the only mutator.
- A verification failure is reported (False + WARNING log), never raised.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


# Sentinel for the genesis block (no previous block exists).
GENESIS_PREVIOUS_HASH = "sha256:" + "0" * 64
GENESIS_PAYLOAD = "Genesis Block"


def compute_block_hash(
    index: int,
    timestamp_utc: datetime,
    payload: str,
    prev_hash: str,
) -> str:
    """SHA-256 over the canonical JSON of the four hashed fields."""
    canonical = json.dumps(
        {
            "index": index,
            "timestamp_utc": timestamp_utc.isoformat(),
            "payload": payload,
            "prev_hash": prev_hash,
        },
        sort_keys=True,
        ensure_ascii=False,
    ).encode("utf-8")
    return f"sha256:{hashlib.sha256(canonical).hexdigest()}"


@dataclass(frozen=True)
class Block:
    """A single immutable, hash-linked ledger record."""
    index: int
    timestamp_utc: datetime
    payload: str
    prev_hash: str
    hash: str

    @staticmethod
    def create(
        index: int,
        timestamp_utc: datetime,
        payload: str,
        prev_hash: str,
    ) -> Block:
        """Create a block with its hash computed from the other fields."""
        return Block(
            index=index,
            timestamp_utc=timestamp_utc,
            payload=payload,
            prev_hash=prev_hash,
            hash=compute_block_hash(index, timestamp_utc, payload, prev_hash),
        )

    def recompute_hash(self) -> str:
        return compute_block_hash(self.index, self.timestamp_utc, self.payload, self.prev_hash)

    def is_self_consistent(self) -> bool:
        """True if the stored hash matches the block's own fields."""
        return self.hash == self.recompute_hash()


class HashChain:
    """Append-only chain of blocks starting at a genesis block.

    Usage:
        chain = HashChain()
        chain.append('{"proposal_id": "p1", "result": "PASSED"}')
        assert chain.verify()
    """

    def __init__(self, genesis_timestamp: Optional[datetime] = None) -> None:
        ts = genesis_timestamp or datetime.now(timezone.utc)
        self._blocks: list[Block] = [
            Block.create(0, ts, GENESIS_PAYLOAD, GENESIS_PREVIOUS_HASH)
        ]

    def append(self, payload: str, timestamp_utc: Optional[datetime] = None) -> Block:
        """Append a block carrying ``payload`` and return it."""
        previous = self._blocks[-1]
        block = Block.create(
            index=len(self._blocks),
            timestamp_utc=timestamp_utc or datetime.now(timezone.utc),
            payload=payload,
            prev_hash=previous.hash,
        )
        self._blocks.append(block)
        logger.debug("Appended block %d (%s)", block.index, block.hash)
        return block

    # ------------------------------------------------------------------
    # Integrity
    # ------------------------------------------------------------------

    def first_invalid_index(self) -> Optional[int]:
        """Position of the first block that fails verification, or None.

        For each block: index matches position, stored hash matches the
        recomputed hash, and prev_hash matches the predecessor's stored
        hash (the sentinel for genesis).
        """
        for position, block in enumerate(self._blocks):
            if block.index != position:
                return position
            if not block.is_self_consistent():
                return position
            expected_prev = (
                GENESIS_PREVIOUS_HASH if position == 0
                else self._blocks[position - 1].hash
            )
            if block.prev_hash != expected_prev:
                return position
        return None

    def verify(self) -> bool:
        """True only if every block passes every integrity check."""
        bad = self.first_invalid_index()
        if bad is not None:
            logger.warning("Chain integrity check failed at block %d", bad)
            return False
        return True

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def blocks(self) -> tuple[Block, ...]:
        return tuple(self._blocks)

    @property
    def genesis(self) -> Block:
        return self._blocks[0]

    @property
    def last_block(self) -> Block:
        return self._blocks[-1]

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(tuple(self._blocks))

    def __getitem__(self, index: int) -> Block:
        return self._blocks[index]
