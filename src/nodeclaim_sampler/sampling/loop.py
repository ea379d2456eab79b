"""Sampling loop: fetch -> classify -> emit -> sleep, until shutdown."""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from typing import Callable, Protocol, Sequence

from nodeclaim_sampler.classification import AggregationCancelled, aggregate
from nodeclaim_sampler.config import Settings
from nodeclaim_sampler.observation import ListCancelled, ResourceKind, ResourceStoreError
from nodeclaim_sampler.sampling.emitter import RecordEmitter
from nodeclaim_sampler.sampling.schema import NODE_COLUMNS, NODECLAIM_COLUMNS, Snapshot

logger = logging.getLogger(__name__)


class ResourceStore(Protocol):
    def list(self, kind: ResourceKind, cancel_event: threading.Event | None = None) -> Sequence: ...


class Sampler:
    """Emits one snapshot of node and NodeClaim counts per interval.

    A cycle whose fetch fails is abandoned without emitting anything and is
    retried immediately. At most ``max_retries_per_second`` retries run per
    one-second window; beyond that the loop waits for the next window.
    """

    def __init__(
        self,
        store: ResourceStore,
        emitter: RecordEmitter,
        settings: Settings,
        shutdown_event: threading.Event,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._emitter = emitter
        self._settings = settings
        self._shutdown_event = shutdown_event
        self._clock = clock
        self.cycles_emitted = 0
        self.cycles_skipped = 0

    def run_cycle(self) -> Snapshot | None:
        """Run one fetch/classify/emit pass.

        Returns:
            The emitted snapshot, or None if the cycle was abandoned.
        """
        try:
            nodes = self._store.list(ResourceKind.NODE, self._shutdown_event)
            nodeclaims = self._store.list(ResourceKind.NODECLAIM, self._shutdown_event)
        except ListCancelled:
            logger.debug("Cycle cancelled while listing")
            return None
        except ResourceStoreError as e:
            self.cycles_skipped += 1
            logger.debug("Skipping cycle: %s", e)
            return None
        if self._shutdown_event.is_set():
            return None

        workers = self._settings.workers
        try:
            node_agg = aggregate(nodes, NODE_COLUMNS, workers, self._shutdown_event)
            claim_agg = aggregate(nodeclaims, NODECLAIM_COLUMNS, workers, self._shutdown_event)
        except AggregationCancelled:
            logger.debug("Cycle cancelled during classification")
            return None

        snapshot = Snapshot(
            time=self._clock(),
            node_total=node_agg.total,
            nodeclaim_total=claim_agg.total,
            counts={**node_agg.counts, **claim_agg.counts},
        )
        self._emitter.emit(snapshot)
        self.cycles_emitted += 1
        return snapshot

    def run(self) -> None:
        """Run cycles until the shutdown event is set.

        Raises:
            OSError: If a row cannot be written or flushed.
        """
        window_start = time.monotonic()
        retries_in_window = 0
        while not self._shutdown_event.is_set():
            if self.run_cycle() is not None:
                retries_in_window = 0
                self._shutdown_event.wait(self._settings.interval_seconds)
                continue

            now = time.monotonic()
            if now - window_start >= 1.0:
                window_start, retries_in_window = now, 0
            retries_in_window += 1
            if retries_in_window >= self._settings.max_retries_per_second:
                remaining = max(0.0, 1.0 - (now - window_start))
                logger.warning(
                    "Cluster listing failed %d times within a second; pausing %.2fs",
                    retries_in_window,
                    remaining,
                )
                self._shutdown_event.wait(remaining)
                window_start, retries_in_window = time.monotonic(), 0
        logger.info(
            "Sampler stopped: %d rows emitted, %d cycles skipped",
            self.cycles_emitted,
            self.cycles_skipped,
        )
