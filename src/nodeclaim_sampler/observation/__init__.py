"""Observation layer: list cluster resources for classification."""

from nodeclaim_sampler.observation.collector import (
    ClusterResourceStore,
    ListCancelled,
    ResourceKind,
    ResourceStoreError,
)
from nodeclaim_sampler.observation.models import (
    Condition,
    Machine,
    NodeClaim,
    Taint,
)

__all__ = [
    "ClusterResourceStore",
    "ListCancelled",
    "Condition",
    "Machine",
    "NodeClaim",
    "ResourceKind",
    "ResourceStoreError",
    "Taint",
]
