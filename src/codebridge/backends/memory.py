"""In-memory language host for testing."""

from __future__ import annotations

import asyncio
from typing import Sequence

from .models import (
    DocumentLink,
    DocumentSymbol,
    Location,
    LocationLink,
    Position,
    SymbolInformation,
    SymbolKind,
)


class HostFailure(RuntimeError):
    """Injected failure raised by InMemoryLanguageHost."""


class InMemoryLanguageHost:
    """Scripted language host.

    Answers come from tables filled in by the test, so a relation graph
    can be described without real language servers.

    Example:
        host = InMemoryLanguageHost()
        host.add_links("/ws/a.ts", "/ws/b.ts", "https://example.com")
        host.add_symbol("/ws/b.ts", "Widget", SymbolKind.CLASS, referenced_by=["/ws/c.ts"])
        host.add_definition("/ws/a.ts", 21, "/ws/util.ts")
    """

    def __init__(self) -> None:
        self._links: dict[str, list[DocumentLink]] = {}
        self._definitions: dict[tuple[str, int], list[Location | LocationLink]] = {}
        self._symbols: dict[str, list[DocumentSymbol | SymbolInformation]] = {}
        self._references: dict[tuple[str, Position], list[Location]] = {}
        self._delays: dict[tuple[str, str | None], float] = {}
        self._failing: dict[str, set[str]] = {}
        self.calls: list[tuple[str, str]] = []

    def add_links(self, path: str, *targets: str | None) -> None:
        """Record outbound links of ``path`` in order."""
        self._links.setdefault(path, []).extend(DocumentLink(target=t) for t in targets)

    def add_definition(self, path: str, offset: int, *targets: str, as_link: bool = False) -> None:
        """Record what the token at ``offset`` in ``path`` resolves to."""
        locations = self._definitions.setdefault((path, offset), [])
        for target in targets:
            locations.append(LocationLink(target_uri=target) if as_link else Location(target=target))

    def add_symbol(
        self,
        path: str,
        name: str,
        kind: SymbolKind = SymbolKind.FUNCTION,
        referenced_by: Sequence[str] = (),
        children: Sequence[DocumentSymbol] = (),
    ) -> DocumentSymbol:
        """Declare a top-level symbol and the files that reference it."""
        position = Position(line=len(self._symbols.get(path, [])), character=0)
        symbol = DocumentSymbol(name=name, kind=kind, selection=position, children=list(children))
        self._symbols.setdefault(path, []).append(symbol)
        self.set_references(path, position, *referenced_by)
        return symbol

    def set_symbols(self, path: str, symbols: Sequence[DocumentSymbol | SymbolInformation]) -> None:
        self._symbols[path] = list(symbols)

    def set_references(self, path: str, position: Position, *referenced_by: str) -> None:
        self._references[(path, position)] = [Location(target=r) for r in referenced_by]

    def set_delay(self, path: str, seconds: float, capability: str | None = None) -> None:
        """Delay answers about ``path`` (one capability, or all if None)."""
        self._delays[(path, capability)] = seconds

    def fail(self, path: str, *capabilities: str) -> None:
        """Make the given capabilities raise for ``path`` (all if none given)."""
        self._failing[path] = set(capabilities) or {
            "document_links", "definitions", "document_symbols", "references"
        }

    async def _answer(self, capability: str, path: str) -> None:
        self.calls.append((capability, path))
        delay = self._delays.get((path, capability), self._delays.get((path, None)))
        if delay:
            await asyncio.sleep(delay)
        if capability in self._failing.get(path, ()):
            raise HostFailure(f"{capability} unavailable for {path}")

    async def document_links(self, path: str) -> list[DocumentLink]:
        await self._answer("document_links", path)
        return list(self._links.get(path, []))

    async def definitions(self, path: str, offset: int) -> list[Location | LocationLink]:
        await self._answer("definitions", path)
        return list(self._definitions.get((path, offset), []))

    async def document_symbols(self, path: str) -> list[DocumentSymbol | SymbolInformation]:
        await self._answer("document_symbols", path)
        return list(self._symbols.get(path, []))

    async def references(self, path: str, position: Position) -> list[Location]:
        await self._answer("references", path)
        return list(self._references.get((path, position), []))
