"""Classification layer: predicates and parallel counting."""

from nodeclaim_sampler.classification.aggregator import (
    Aggregate,
    AggregationCancelled,
    aggregate,
)

__all__ = [
    "Aggregate",
    "AggregationCancelled",
    "aggregate",
]
