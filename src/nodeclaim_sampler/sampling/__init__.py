"""Sampling layer: record schema, CSV emission and the sampling loop."""

from nodeclaim_sampler.sampling.emitter import (
    CsvSink,
    DestinationExistsError,
    RecordEmitter,
    check_destination,
    open_destination,
)
from nodeclaim_sampler.sampling.loop import Sampler
from nodeclaim_sampler.sampling.schema import HEADER, Snapshot

__all__ = [
    "CsvSink",
    "DestinationExistsError",
    "HEADER",
    "RecordEmitter",
    "Sampler",
    "Snapshot",
    "check_destination",
    "open_destination",
]
