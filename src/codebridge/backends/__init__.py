"""Language-intelligence hosts consumed by the expansion engine."""

from .models import (
    SymbolKind,
    Position,
    Location,
    LocationLink,
    DocumentLink,
    DocumentSymbol,
    SymbolInformation,
)
from .protocol import LanguageHost
from .memory import InMemoryLanguageHost, HostFailure
from .local import LocalLanguageHost

__all__ = [
    "SymbolKind",
    "Position",
    "Location",
    "LocationLink",
    "DocumentLink",
    "DocumentSymbol",
    "SymbolInformation",
    "LanguageHost",
    "InMemoryLanguageHost",
    "HostFailure",
    "LocalLanguageHost",
]
