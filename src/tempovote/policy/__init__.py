"""Policy configuration loading and invariant checks."""
