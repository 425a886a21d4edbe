"""Relation providers: the edges of the expansion graph.

Each provider answers one question about a file ("what does it link
to?", "what do its relative imports resolve to?", "who references its
symbols?") by querying a LanguageHost. Providers are stateless per call;
which ones run is decided by the strategy registry below.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Protocol, Sequence, runtime_checkable

from ..backends.models import (
    DocumentSymbol,
    Location,
    LocationLink,
    Position,
    SymbolInformation,
    SymbolKind,
)
from ..backends.protocol import LanguageHost
from ..workspace import TextCache, to_file_ref
from .models import MAX_SYMBOLS_PER_FILE, FileRef, Strategy

logger = logging.getLogger(__name__)

# Quoted specifiers starting with ./ or ../
IMPORT_PATTERN = re.compile(r"""['"](\.{1,2}/[^'"]+)['"]""")

DEFAULT_SYMBOL_KINDS: frozenset[SymbolKind] = frozenset(
    {
        SymbolKind.CLASS,
        SymbolKind.FUNCTION,
        SymbolKind.INTERFACE,
        SymbolKind.CONSTANT,
        SymbolKind.VARIABLE,
        SymbolKind.ENUM,
    }
)


class DiscoveryError(Exception):
    """Raised when a provider cannot inspect a file at all."""


@dataclass
class DiscoveryContext:
    """Collaborators shared by the providers of one expansion call."""

    host: LanguageHost
    texts: TextCache = field(default_factory=TextCache)
    symbol_kinds: frozenset[SymbolKind] = DEFAULT_SYMBOL_KINDS
    max_symbols_per_file: int = MAX_SYMBOLS_PER_FILE


@runtime_checkable
class RelationProvider(Protocol):
    """Something that proposes files related to a given file."""

    name: str

    async def discover(self, ref: FileRef) -> list[FileRef]:
        """Return candidate files in discovery order."""
        ...


def _location_target(location: Location | LocationLink) -> str | None:
    if isinstance(location, LocationLink):
        return location.target_uri
    return getattr(location, "target", None)


class LinkScanner:
    """Follows the document links a host finds in a file."""

    name = "links"

    def __init__(self, context: DiscoveryContext):
        self._host = context.host

    async def discover(self, ref: FileRef) -> list[FileRef]:
        links = await self._host.document_links(ref) or []
        base_dir = os.path.dirname(ref)
        found: list[FileRef] = []
        for link in links:
            if not link.target:
                continue
            target = to_file_ref(link.target, base_dir=base_dir)
            if target is None or target == ref:
                continue
            found.append(target)
        return found


class ImportResolver:
    """Resolves relative import specifiers through definition lookups."""

    name = "imports"

    def __init__(self, context: DiscoveryContext):
        self._host = context.host
        self._texts = context.texts

    async def discover(self, ref: FileRef) -> list[FileRef]:
        text = self._texts.read(ref)
        if text is None:
            raise DiscoveryError(f"Cannot read {ref}")

        # Offset + 1 lands inside the quotes, on the specifier itself.
        offsets = [m.start() + 1 for m in IMPORT_PATTERN.finditer(text)]
        if not offsets:
            return []

        answers = await asyncio.gather(
            *(self._host.definitions(ref, offset) for offset in offsets),
            return_exceptions=True,
        )

        found: list[FileRef] = []
        for offset, answer in zip(offsets, answers):
            if isinstance(answer, BaseException):
                logger.debug("Definition lookup failed in %s at %d: %s", ref, offset, answer)
                continue
            for location in answer or []:
                raw = _location_target(location)
                target = to_file_ref(raw) if raw else None
                if target is not None:
                    found.append(target)
        return found


def _flatten(symbols: Iterable[DocumentSymbol]) -> Iterator[DocumentSymbol]:
    for symbol in symbols:
        yield symbol
        if symbol.children:
            yield from _flatten(symbol.children)


def symbol_positions(
    symbols: Sequence[DocumentSymbol] | Sequence[SymbolInformation],
) -> list[tuple[SymbolKind, Position]]:
    """Normalize either symbol shape to (kind, name position) pairs.

    Hierarchical symbols are flattened depth-first, parents before
    children.
    """
    if not symbols:
        return []
    if isinstance(symbols[0], DocumentSymbol):
        return [(s.kind, s.selection) for s in _flatten(symbols)]
    return [(s.kind, s.location.position) for s in symbols]


class ReferenceResolver:
    """Collects files that reference the symbols a file declares."""

    name = "references"

    def __init__(self, context: DiscoveryContext):
        self._host = context.host
        self._kinds = context.symbol_kinds
        self._limit = context.max_symbols_per_file

    async def discover(self, ref: FileRef) -> list[FileRef]:
        if not self._kinds:
            return []

        symbols = await self._host.document_symbols(ref)
        entries = [pos for kind, pos in symbol_positions(symbols or []) if kind in self._kinds]
        if len(entries) > self._limit:
            logger.debug(
                "Symbol lookups for %s truncated to %d of %d", ref, self._limit, len(entries)
            )
            entries = entries[: self._limit]
        if not entries:
            return []

        answers = await asyncio.gather(
            *(self._host.references(ref, position) for position in entries),
            return_exceptions=True,
        )

        found: list[FileRef] = []
        for position, answer in zip(entries, answers):
            if isinstance(answer, BaseException):
                logger.debug(
                    "Reference lookup failed in %s at %d:%d: %s",
                    ref, position.line, position.character, answer,
                )
                continue
            for location in answer or []:
                raw = _location_target(location)
                target = to_file_ref(raw) if raw else None
                if target is not None:
                    found.append(target)
        return found


# Declaration order is merge order.
STRATEGY_PROVIDERS: dict[Strategy, tuple[type, ...]] = {
    Strategy.NONE: (),
    Strategy.SHALLOW: (LinkScanner,),
    Strategy.DEEP: (LinkScanner, ImportResolver, ReferenceResolver),
}


def build_providers(strategy: Strategy, context: DiscoveryContext) -> list[RelationProvider]:
    """Instantiate the providers a strategy uses, in merge order."""
    return [provider(context) for provider in STRATEGY_PROVIDERS[strategy]]


class RelationAggregator:
    """Runs providers concurrently and merges their answers in fixed order.

    A provider that raises or exceeds ``timeout`` contributes nothing for
    that file; the others are unaffected.
    """

    def __init__(self, providers: Sequence[RelationProvider], timeout: float | None = None):
        self._providers = list(providers)
        self._timeout = timeout if timeout and timeout > 0 else None

    @property
    def providers(self) -> list[RelationProvider]:
        return list(self._providers)

    async def discover(self, ref: FileRef) -> list[FileRef]:
        if not self._providers:
            return []
        # gather preserves argument order, not completion order
        answers = await asyncio.gather(*(self._run(p, ref) for p in self._providers))
        merged: list[FileRef] = []
        for answer in answers:
            merged.extend(answer)
        return merged

    async def _run(self, provider: RelationProvider, ref: FileRef) -> list[FileRef]:
        try:
            if self._timeout is None:
                return list(await provider.discover(ref))
            return list(await asyncio.wait_for(provider.discover(ref), self._timeout))
        except asyncio.TimeoutError:
            logger.debug("Provider %s timed out on %s", provider.name, ref)
        except Exception as e:
            logger.debug("Provider %s failed on %s: %s", provider.name, ref, e)
        return []
