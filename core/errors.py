from __future__ import annotations


class AggregationError(Exception):
    """A single aggregation call failed; no partial result was produced."""


class InvariantViolation(AggregationError):
    """Input broke an ordering or validity rule (clock skew, bad sample)."""
