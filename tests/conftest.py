"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from nodeclaim_sampler.config import Settings
from nodeclaim_sampler.observation import Condition, Machine, NodeClaim, Taint

DELETED_AT = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_machine(
    name: str = "node-a",
    conditions: dict[str, str] | None = None,
    taints: list[str] | None = None,
    deleting: bool = False,
) -> Machine:
    """Build a Machine from condition type -> status and taint keys."""
    return Machine(
        name=name,
        conditions=[Condition(type=t, status=s) for t, s in (conditions or {}).items()],
        taints=[Taint(key=k, effect="NoSchedule") for k in (taints or [])],
        deletion_timestamp=DELETED_AT if deleting else None,
    )


def make_nodeclaim(
    name: str = "claim-a",
    conditions: dict[str, str] | None = None,
    deleting: bool = False,
) -> NodeClaim:
    """Build a NodeClaim from condition type -> status."""
    return NodeClaim(
        name=name,
        conditions=[Condition(type=t, status=s) for t, s in (conditions or {}).items()],
        deletion_timestamp=DELETED_AT if deleting else None,
    )


@pytest.fixture
def settings() -> Settings:
    """Settings with no sleep between rows."""
    return Settings(_env_file=None, interval_seconds=0.0, workers=4, max_retries_per_second=1000)
