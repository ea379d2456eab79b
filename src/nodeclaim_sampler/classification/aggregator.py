"""Count how many items satisfy each predicate, using a bounded worker pool."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from nodeclaim_sampler.config import MAX_WORKERS

logger = logging.getLogger(__name__)

Predicate = Callable[[Any], bool]


class AggregationCancelled(Exception):
    """The cancellation signal was set while items were being classified."""


@dataclass(frozen=True)
class Aggregate:
    """Item total and per-predicate counts for one collection."""

    total: int
    counts: dict[str, int] = field(default_factory=dict)


def _partition(n: int, workers: int) -> list[range]:
    """Split ``[0, n)`` into at most ``workers`` contiguous, non-empty ranges."""
    size, extra = divmod(n, workers)
    ranges = []
    start = 0
    for i in range(workers):
        stop = start + size + (1 if i < extra else 0)
        if stop > start:
            ranges.append(range(start, stop))
        start = stop
    return ranges


def _count_chunk(
    items: Sequence[Any],
    indices: range,
    predicates: Mapping[str, Predicate],
    cancel_event: threading.Event | None,
) -> dict[str, int] | None:
    local = dict.fromkeys(predicates, 0)
    for i in indices:
        if cancel_event is not None and cancel_event.is_set():
            return None
        item = items[i]
        for name, predicate in predicates.items():
            if predicate(item):
                local[name] += 1
    return local


def aggregate(
    items: Sequence[Any],
    predicates: Mapping[str, Predicate],
    workers: int = 16,
    cancel_event: threading.Event | None = None,
) -> Aggregate:
    """Evaluate every predicate against every item and return the counts.

    Items are split into contiguous chunks, one per worker. Each worker counts
    into its own accumulator and the accumulators are summed once all workers
    have finished, so the result does not depend on ``workers``.

    Raises:
        AggregationCancelled: If ``cancel_event`` is set before all chunks finish.
    """
    counts = dict.fromkeys(predicates, 0)
    n = len(items)
    if n == 0:
        return Aggregate(total=0, counts=counts)

    width = max(1, min(workers, MAX_WORKERS, n))
    chunks = _partition(n, width)
    logger.debug("Classifying %d items with %d workers", n, len(chunks))

    with ThreadPoolExecutor(max_workers=len(chunks), thread_name_prefix="classify") as pool:
        futures = [
            pool.submit(_count_chunk, items, chunk, predicates, cancel_event)
            for chunk in chunks
        ]
        partials = [f.result() for f in futures]

    if any(p is None for p in partials):
        raise AggregationCancelled(f"cancelled while classifying {n} items")
    for partial in partials:
        for name, value in partial.items():
            counts[name] += value
    return Aggregate(total=n, counts=counts)
