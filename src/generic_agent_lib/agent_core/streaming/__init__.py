"""Streaming reconstruction and cancellation primitives."""

from .aggregator import StreamingAggregator, aggregate
from .cancellation import CancellationToken, cancellable, check_cancelled

__all__ = ["StreamingAggregator", "aggregate", "CancellationToken", "cancellable", "check_cancelled"]
