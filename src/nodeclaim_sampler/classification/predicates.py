"""Boolean facts about a single node or NodeClaim.

Every predicate is total: a missing condition or taint is simply ``False``.
"""

from __future__ import annotations

from nodeclaim_sampler.observation.models import Machine, NodeClaim

NODE_READY = "Ready"
# Condition injected by the node-repair scale tests
NODE_HEALTH_CONDITION = "TestTypeReady"
DISRUPTED_TAINT_KEY = "karpenter.sh/disrupted"

CONDITION_LAUNCHED = "Launched"
CONDITION_REGISTERED = "Registered"
CONDITION_INITIALIZED = "Initialized"
CONDITION_DRIFTED = "Drifted"
CONDITION_DISRUPTION_REASON = "DisruptionReason"


def is_ready(node: Machine) -> bool:
    """Return True if the node reports Ready=True."""
    condition = node.condition(NODE_READY)
    return condition is not None and condition.is_true


def is_unhealthy(node: Machine) -> bool:
    """Return True if the node health condition is explicitly False."""
    condition = node.condition(NODE_HEALTH_CONDITION)
    return condition is not None and condition.status == "False"


def has_taint(node: Machine, key: str) -> bool:
    """Return True if the node carries a taint with this key."""
    return any(t.key == key for t in node.taints)


def is_disruption_tainted(node: Machine) -> bool:
    """Return True if Karpenter has tainted the node for disruption."""
    return has_taint(node, DISRUPTED_TAINT_KEY)


def is_deleting(item: Machine | NodeClaim) -> bool:
    """Return True once the item has a deletion timestamp."""
    return item.deletion_timestamp is not None


def has_condition_true(claim: NodeClaim, name: str) -> bool:
    """Return True if the named condition has status True."""
    condition = claim.condition(name)
    return condition is not None and condition.is_true


def is_launched(claim: NodeClaim) -> bool:
    """Return True if the NodeClaim has launched an instance."""
    return has_condition_true(claim, CONDITION_LAUNCHED)


def is_registered(claim: NodeClaim) -> bool:
    """Return True if the NodeClaim has registered its node."""
    return has_condition_true(claim, CONDITION_REGISTERED)


def is_initialized(claim: NodeClaim) -> bool:
    """Return True if the NodeClaim node is initialized."""
    return has_condition_true(claim, CONDITION_INITIALIZED)


def is_drifted(claim: NodeClaim) -> bool:
    """Return True if the NodeClaim has drifted from its NodePool."""
    return has_condition_true(claim, CONDITION_DRIFTED)


def is_disrupted(claim: NodeClaim) -> bool:
    """Return True if the NodeClaim has a disruption reason set."""
    return has_condition_true(claim, CONDITION_DISRUPTION_REASON)
