"""Output record schema: ordered columns bound to the predicates that fill them."""

from __future__ import annotations

from datetime import datetime
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nodeclaim_sampler.classification import predicates as p

TIME_COLUMN = "time"
NODE_TOTAL_COLUMN = "node_total"
NODECLAIM_TOTAL_COLUMN = "nodeclaim_total"

# Go time.TimeOnly layout, local time
TIME_FORMAT = "%H:%M:%S"

NODE_COLUMNS = {
    "node_ready": p.is_ready,
    "node_unhealthy": p.is_unhealthy,
    "node_tainted": p.is_disruption_tainted,
    "node_deleting": p.is_deleting,
}

NODECLAIM_COLUMNS = {
    "nodeclaim_launched": p.is_launched,
    "nodeclaim_registered": p.is_registered,
    "nodeclaim_initialized": p.is_initialized,
    "nodeclaim_drifted": p.is_drifted,
    "nodeclaim_disrupted": p.is_disrupted,
    "nodeclaim_deleting": p.is_deleting,
}

HEADER: tuple[str, ...] = (
    TIME_COLUMN,
    NODE_TOTAL_COLUMN,
    *NODE_COLUMNS,
    NODECLAIM_TOTAL_COLUMN,
    *NODECLAIM_COLUMNS,
)


class Snapshot(BaseModel):
    """One cycle's aggregated counts."""

    model_config = ConfigDict(frozen=True)

    time: datetime
    node_total: int = Field(ge=0)
    nodeclaim_total: int = Field(ge=0)
    counts: Mapping[str, int] = Field(
        default_factory=dict,
        validate_default=True,
        description="predicate column -> count, for every column in NODE_COLUMNS and NODECLAIM_COLUMNS",
    )

    @field_validator("counts", mode="after")
    @classmethod
    def _freeze_counts(cls, value: Mapping[str, int]) -> Mapping[str, int]:
        """Store counts as a read-only view over a private copy."""
        return MappingProxyType(dict(value))

    def row(self) -> list[str]:
        """Render the snapshot as field values in HEADER order."""
        values = {
            TIME_COLUMN: self.time.strftime(TIME_FORMAT),
            NODE_TOTAL_COLUMN: str(self.node_total),
            NODECLAIM_TOTAL_COLUMN: str(self.nodeclaim_total),
        }
        for name, count in self.counts.items():
            values[name] = str(count)
        return [values[column] for column in HEADER]
