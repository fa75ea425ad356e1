"""Chainable thread-based futures resolving to completed, errored or cancelled results."""

__version__ = "0.1.0"

__all__ = [
    "cancellation",
    "combinators",
    "error",
    "expected",
    "future",
    "options",
    "signatures",
    "tasks",
]