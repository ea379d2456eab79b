"""Structured models for the cluster resources the sampler classifies."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class Condition(BaseModel):
    """Status condition summary."""

    type: str
    status: str  # True | False | Unknown

    @property
    def is_true(self) -> bool:
        return self.status == "True"


class Taint(BaseModel):
    """Node taint summary."""

    key: str
    value: str | None = None
    effect: str | None = None


class Machine(BaseModel):
    """Summary of a Node."""

    name: str
    conditions: list[Condition] = Field(default_factory=list)
    taints: list[Taint] = Field(default_factory=list)
    deletion_timestamp: datetime | None = None

    def condition(self, type_: str) -> Condition | None:
        """Return the first condition of the given type, if any."""
        return next((c for c in self.conditions if c.type == type_), None)


class NodeClaim(BaseModel):
    """Summary of a karpenter.sh NodeClaim."""

    name: str
    conditions: list[Condition] = Field(default_factory=list)
    deletion_timestamp: datetime | None = None

    def condition(self, type_: str) -> Condition | None:
        """Return the first condition of the given type, if any."""
        return next((c for c in self.conditions if c.type == type_), None)
