"""tempovote — time-decay weighted vote tallying anchored in a hash chain."""

__version__ = "0.1.0"
