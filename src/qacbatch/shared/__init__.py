"""Primitives shared across feature slices."""

from .cancellation import CancellationToken, OperationCancelledError

__all__ = ["CancellationToken", "OperationCancelledError"]
