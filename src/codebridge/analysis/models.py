"""Data models for context expansion."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

FileRef = str

# Symbol lookups per file in the deep strategy.
MAX_SYMBOLS_PER_FILE = 25


class Strategy(str, Enum):
    """How far, and along which relations, expansion travels."""

    NONE = "none"
    SHALLOW = "shallow"
    DEEP = "deep"

    @property
    def max_depth(self) -> int:
        return 5 if self is Strategy.DEEP else 1


@dataclass(frozen=True)
class WalkBudget:
    """Limits for a single walk.

    Attributes:
        max_files: Maximum related files to emit (0 = unlimited)
        max_depth: Hops from the seed beyond which nodes are not expanded
        exclude_patterns: Exclusion patterns checked by the target filter
    """

    max_files: int = 0
    max_depth: int = 1
    exclude_patterns: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.max_files < 0:
            raise ValueError(f"max_files must be >= 0, got {self.max_files}")
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {self.max_depth}")

    @classmethod
    def for_strategy(
        cls,
        strategy: Strategy,
        max_files: int = 0,
        exclude_patterns: list[str] | tuple[str, ...] = (),
    ) -> "WalkBudget":
        return cls(
            max_files=max_files,
            max_depth=strategy.max_depth,
            exclude_patterns=tuple(exclude_patterns),
        )

    def exhausted(self, emitted: int) -> bool:
        """True once ``emitted`` files fill a bounded budget."""
        return self.max_files > 0 and emitted >= self.max_files


@dataclass
class QueueEntry:
    """A file waiting to be expanded, with its hop count from the seed."""

    ref: FileRef
    depth: int


class ExpansionResult(BaseModel):
    """Outcome of expanding a seed selection."""

    seed_refs: List[FileRef] = Field(default_factory=list)
    related_refs: List[FileRef] = Field(default_factory=list)
    added_count: int = 0
    summary_log: str = ""
    unresolved_seeds: List[str] = Field(default_factory=list)

    @property
    def all_refs(self) -> List[FileRef]:
        """Seed files followed by related files: the working set to bundle."""
        return [*self.seed_refs, *self.related_refs]

    @property
    def is_partial(self) -> bool:
        """True when at least one seed could not be resolved."""
        return bool(self.unresolved_seeds)


def summarize(strategy: Strategy, count: int) -> str:
    """Build the status line shown after an expansion."""
    if count > 0:
        return f"DEPENDENCIES ({strategy.value.upper()}): Bundled {count} files"
    if strategy is Strategy.DEEP:
        return "DEEP SCAN: No local dependencies found (Leaf Node)"
    return ""
