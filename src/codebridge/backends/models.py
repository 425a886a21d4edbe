"""Data models exchanged with language-intelligence hosts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class SymbolKind(str, Enum):
    """Kinds of symbols a host can report."""

    CLASS = "class"
    FUNCTION = "function"
    METHOD = "method"
    INTERFACE = "interface"
    ENUM = "enum"
    CONSTANT = "constant"
    VARIABLE = "variable"
    PROPERTY = "property"
    MODULE = "module"

    @classmethod
    def parse(cls, value: str) -> "SymbolKind | None":
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class Position:
    """Zero-based line and character offset within a document."""

    line: int
    character: int


@dataclass
class Location:
    """A position in a target document."""

    target: str
    position: Position = field(default_factory=lambda: Position(0, 0))


@dataclass
class LocationLink:
    """A definition link pointing at a position in its target."""

    target_uri: str
    target_position: Position = field(default_factory=lambda: Position(0, 0))


@dataclass
class DocumentLink:
    """A link found in a document's text.

    ``target`` is a path, a ``file://`` URI or any other URI; None means
    the host found a link but could not resolve where it points.
    """

    target: str | None
    start: int = 0
    end: int = 0


@dataclass
class DocumentSymbol:
    """A hierarchical symbol as reported by a document-symbol query."""

    name: str
    kind: SymbolKind
    selection: Position
    children: list[DocumentSymbol] = field(default_factory=list)


@dataclass
class SymbolInformation:
    """A flat symbol carrying its own location."""

    name: str
    kind: SymbolKind
    location: Location
