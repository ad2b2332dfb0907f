"""Weight ledger — effective vote weights with an audit history."""

from tempovote.ledger.weights import WeightLedger

__all__ = ["WeightLedger"]
