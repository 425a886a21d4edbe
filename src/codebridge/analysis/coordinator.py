"""Entry point for expanding a user's selection into related files."""

from __future__ import annotations

import asyncio
import logging
import os
import stat
from typing import Callable, Iterable, Optional, Sequence

from ..backends.models import SymbolKind
from ..backends.protocol import LanguageHost
from ..workspace import DEFAULT_MAX_FILE_SIZE, TextCache, Workspace, to_file_ref
from .filter import TargetFilter
from .models import (
    MAX_SYMBOLS_PER_FILE,
    ExpansionResult,
    FileRef,
    Strategy,
    WalkBudget,
    summarize,
)
from .providers import (
    DEFAULT_SYMBOL_KINDS,
    DiscoveryContext,
    RelationAggregator,
    build_providers,
)
from .walker import FrontierWalker

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENT_WALKS = 4


class ExpansionCoordinator:
    """Expands seed files and directories into a bounded related-file set.

    Every call to :meth:`expand` starts from scratch: visited sets, walk
    state and file reads are created for that call and dropped after it.

    Usage:
        coordinator = ExpansionCoordinator(
            Workspace(["/repo"]), LocalLanguageHost(workspace),
            strategy=Strategy.DEEP, max_files=10,
        )
        result = asyncio.run(coordinator.expand(["/repo/src/app.ts"]))
        print(result.summary_log)
    """

    def __init__(
        self,
        workspace: Workspace,
        host: LanguageHost,
        strategy: Strategy | str = Strategy.SHALLOW,
        max_files: int = 0,
        exclude_patterns: Sequence[str] = (),
        symbol_kinds: Iterable[SymbolKind] = DEFAULT_SYMBOL_KINDS,
        max_symbols_per_file: int = MAX_SYMBOLS_PER_FILE,
        provider_timeout: Optional[float] = None,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        max_concurrent_walks: int = DEFAULT_CONCURRENT_WALKS,
    ):
        self._workspace = workspace
        self._host = host
        self.strategy = Strategy(strategy)
        self.budget = WalkBudget.for_strategy(self.strategy, max_files, exclude_patterns)
        self._symbol_kinds = frozenset(symbol_kinds)
        self._max_symbols = max_symbols_per_file
        self._timeout = provider_timeout
        self._max_file_size = max_file_size
        self._concurrency = max(1, max_concurrent_walks)

    @classmethod
    def from_config(cls, config, workspace: Workspace, host: LanguageHost) -> "ExpansionCoordinator":
        """Build a coordinator from a :class:`codebridge.config.Config`."""
        return cls(
            workspace,
            host,
            strategy=config.strategy,
            max_files=config.max_files,
            exclude_patterns=config.exclude_patterns,
            symbol_kinds=config.parsed_symbol_kinds(),
            max_symbols_per_file=config.max_symbols_per_file,
            provider_timeout=config.provider_timeout,
            max_file_size=config.max_file_size,
            max_concurrent_walks=config.max_concurrent_walks,
        )

    async def expand(
        self,
        seeds: Sequence[str],
        cancel_event: asyncio.Event | None = None,
        on_progress: Callable[[str], None] | None = None,
    ) -> ExpansionResult:
        """Discover files related to ``seeds``.

        Args:
            seeds: File or directory paths (or file URIs) chosen by the user.
            cancel_event: When set, walks stop at the next node boundary and
                the files found so far are returned.
            on_progress: Receives short status messages.

        Returns:
            ExpansionResult whose related_refs excludes every seed file.
        """
        roots, unresolved = self.resolve_seeds(seeds)
        if self.strategy is Strategy.NONE:
            return ExpansionResult(seed_refs=roots, unresolved_seeds=unresolved)

        if not roots:
            return ExpansionResult(
                summary_log=summarize(self.strategy, 0), unresolved_seeds=unresolved
            )

        if on_progress:
            on_progress("Analyzing dependencies...")

        context = DiscoveryContext(
            host=self._host,
            texts=TextCache(self._max_file_size),
            symbol_kinds=self._symbol_kinds,
            max_symbols_per_file=self._max_symbols,
        )
        aggregator = RelationAggregator(build_providers(self.strategy, context), self._timeout)
        target_filter = TargetFilter(self._workspace, self.budget.exclude_patterns)

        known: set[FileRef] = set(roots)
        related: list[FileRef] = []

        for start in range(0, len(roots), self._concurrency):
            if self.budget.exhausted(len(related)):
                break
            if cancel_event is not None and cancel_event.is_set():
                break

            batch = roots[start : start + self._concurrency]
            walks = await asyncio.gather(
                *(
                    FrontierWalker(
                        aggregator, self.budget, target_filter.is_allowed, cancel_event
                    ).walk(root)
                    for root in batch
                )
            )
            for found in walks:
                for ref in found:
                    if self.budget.exhausted(len(related)):
                        break
                    if ref not in known:
                        known.add(ref)
                        related.append(ref)

        summary = summarize(self.strategy, len(related))
        logger.info(
            "Expanded %d seeds (%s): %d related files", len(roots), self.strategy.value, len(related)
        )
        return ExpansionResult(
            seed_refs=roots,
            related_refs=related,
            added_count=len(related),
            summary_log=summary,
            unresolved_seeds=unresolved,
        )

    def resolve_seeds(self, seeds: Sequence[str]) -> tuple[list[FileRef], list[str]]:
        """Turn seed paths into walk roots.

        Directories are replaced by the files they contain, minus excluded
        paths. Seeds that cannot be statted are reported, not raised.

        Returns:
            (roots in selection order without duplicates, unresolved seeds)
        """
        roots: list[FileRef] = []
        seen: set[FileRef] = set()
        unresolved: list[str] = []

        for seed in seeds:
            ref = to_file_ref(seed)
            if ref is None:
                logger.warning("Seed is not a file reference: %s", seed)
                unresolved.append(seed)
                continue
            try:
                is_dir = stat.S_ISDIR(os.stat(ref).st_mode)
            except OSError as e:
                logger.warning("Cannot stat seed %s: %s", seed, e)
                unresolved.append(seed)
                continue

            members = (
                self._workspace.walk_files(ref, self.budget.exclude_patterns)
                if is_dir
                else [ref]
            )
            for member in members:
                if member not in seen:
                    seen.add(member)
                    roots.append(member)

        return roots, unresolved
