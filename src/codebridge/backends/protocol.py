"""Protocol definition for language-intelligence hosts.

A host answers the semantic questions the expansion engine cannot:
where a document links to, what defines the token at an offset, which
symbols a document declares, and who references a symbol. Two
implementations ship with the package:
- LocalLanguageHost: heuristic answers from the file system, stdlib ast
  and tree-sitter
- InMemoryLanguageHost: scripted answers for tests
An editor integration supplies its own host backed by its language servers.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import (
        DocumentLink,
        DocumentSymbol,
        Location,
        LocationLink,
        Position,
        SymbolInformation,
    )


@runtime_checkable
class LanguageHost(Protocol):
    """Protocol for language-intelligence capabilities.

    Every method is a coroutine: answering may involve out-of-process
    communication, so callers must tolerate arbitrary latency. Paths are
    normalized absolute file references.
    """

    async def document_links(self, path: str) -> Sequence[DocumentLink]:
        """Return outbound links found in a document.

        Args:
            path: Document to scan.

        Returns:
            Links in document order. Targets may be non-file URIs.
        """
        ...

    async def definitions(
        self, path: str, offset: int
    ) -> Sequence[Location | LocationLink]:
        """Resolve what defines the token at a character offset.

        Args:
            path: Document containing the token.
            offset: Character offset into the document text.

        Returns:
            Definition locations, possibly empty.
        """
        ...

    async def document_symbols(
        self, path: str
    ) -> Sequence[DocumentSymbol] | Sequence[SymbolInformation]:
        """Enumerate the symbols a document declares.

        Hosts return either a hierarchical DocumentSymbol tree or a flat
        list of SymbolInformation; never a mix of both.
        """
        ...

    async def references(self, path: str, position: Position) -> Sequence[Location]:
        """Find references to the symbol declared at ``position``.

        Args:
            path: Document declaring the symbol.
            position: Selection position of the symbol name.

        Returns:
            Reference locations across the workspace.
        """
        ...
