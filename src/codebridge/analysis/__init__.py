"""Context expansion: bounded discovery of files related to a selection."""

from .models import (
    FileRef,
    Strategy,
    WalkBudget,
    QueueEntry,
    ExpansionResult,
    MAX_SYMBOLS_PER_FILE,
    summarize,
)
from .filter import TargetFilter
from .providers import (
    RelationProvider,
    LinkScanner,
    ImportResolver,
    ReferenceResolver,
    RelationAggregator,
    DiscoveryContext,
    DiscoveryError,
    DEFAULT_SYMBOL_KINDS,
    build_providers,
)
from .walker import FrontierWalker
from .coordinator import ExpansionCoordinator

__all__ = [
    "FileRef",
    "Strategy",
    "WalkBudget",
    "QueueEntry",
    "ExpansionResult",
    "MAX_SYMBOLS_PER_FILE",
    "summarize",
    "TargetFilter",
    "RelationProvider",
    "LinkScanner",
    "ImportResolver",
    "ReferenceResolver",
    "RelationAggregator",
    "DiscoveryContext",
    "DiscoveryError",
    "DEFAULT_SYMBOL_KINDS",
    "build_providers",
    "FrontierWalker",
    "ExpansionCoordinator",
]
