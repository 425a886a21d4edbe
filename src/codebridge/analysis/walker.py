"""Breadth-first frontier walk over discovered file relations."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Callable

from .models import FileRef, QueueEntry, WalkBudget
from .providers import RelationAggregator

logger = logging.getLogger(__name__)


class FrontierWalker:
    """Computes the bounded neighborhood of one seed.

    The walker owns all mutable walk state (visited set, FIFO queue,
    results). An instance runs one walk at a time; concurrent seeds each
    get their own walker.

    Usage:
        walker = FrontierWalker(aggregator, budget, target_filter.is_allowed)
        related = await walker.walk("/repo/src/a.ts")
    """

    def __init__(
        self,
        aggregator: RelationAggregator,
        budget: WalkBudget,
        is_allowed: Callable[[FileRef], bool],
        cancel_event: asyncio.Event | None = None,
    ):
        self._aggregator = aggregator
        self._budget = budget
        self._is_allowed = is_allowed
        self._cancel = cancel_event

        self._visited: set[FileRef] = set()
        self._queue: deque[QueueEntry] = deque()
        self._results: list[FileRef] = []

    @property
    def budget(self) -> WalkBudget:
        return self._budget

    @property
    def cancelled(self) -> bool:
        return self._cancel is not None and self._cancel.is_set()

    async def walk(self, seed: FileRef) -> list[FileRef]:
        """Walk outward from ``seed`` and return related files.

        The seed itself is never part of the result. Results are in
        discovery order.
        """
        self._visited = set()
        self._queue = deque()
        self._results = []

        self._admit(seed, 0)

        nodes = 0
        while self._queue and not self._budget.exhausted(len(self._results)):
            if self.cancelled:
                logger.info("Walk from %s cancelled after %d nodes", seed, nodes)
                break

            current = self._queue.popleft()
            if current.depth >= self._budget.max_depth:
                continue

            candidates = await self._aggregator.discover(current.ref)
            nodes += 1
            self._merge(candidates, current.depth + 1)

        logger.debug(
            "Walk from %s expanded %d nodes, found %d related files",
            seed, nodes, len(self._results),
        )
        return list(self._results)

    def _merge(self, candidates: list[FileRef], depth: int) -> None:
        # No await in here: check, mark and enqueue happen as one step.
        for candidate in candidates:
            if self._budget.exhausted(len(self._results)):
                return
            if candidate in self._visited or not self._is_allowed(candidate):
                continue
            self._admit(candidate, depth)

    def _admit(self, ref: FileRef, depth: int) -> None:
        self._visited.add(ref)
        if depth > 0:
            self._results.append(ref)
        self._queue.append(QueueEntry(ref=ref, depth=depth))
