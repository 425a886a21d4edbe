"""JavaScript/TypeScript symbol extraction using tree-sitter."""

from __future__ import annotations

from pathlib import PurePosixPath

import tree_sitter_javascript as tsjs
import tree_sitter_typescript as tsts
from tree_sitter import Language, Parser

from ..models import DocumentSymbol, Position, SymbolKind

JS_LANGUAGE = Language(tsjs.language())
TS_LANGUAGE = Language(tsts.language_typescript())
TSX_LANGUAGE = Language(tsts.language_tsx())

# Map file extensions to tree-sitter languages
_LANG_MAP: dict[str, Language] = {
    ".js": JS_LANGUAGE,
    ".jsx": JS_LANGUAGE,
    ".mjs": JS_LANGUAGE,
    ".cjs": JS_LANGUAGE,
    ".ts": TS_LANGUAGE,
    ".mts": TS_LANGUAGE,
    ".cts": TS_LANGUAGE,
    ".tsx": TSX_LANGUAGE,
}

_KIND_MAP: dict[str, SymbolKind] = {
    "function_declaration": SymbolKind.FUNCTION,
    "generator_function_declaration": SymbolKind.FUNCTION,
    "class_declaration": SymbolKind.CLASS,
    "abstract_class_declaration": SymbolKind.CLASS,
    "interface_declaration": SymbolKind.INTERFACE,
    "enum_declaration": SymbolKind.ENUM,
}

_MEMBER_TYPES = {
    "method_definition",
    "public_field_definition",
    "field_definition",
    "method_signature",
    "property_signature",
}


class TSParser:
    """Parse JS/TS source using tree-sitter."""

    def _get_language(self, file_path: str) -> Language:
        """Pick the right tree-sitter language from file extension."""
        ext = PurePosixPath(file_path).suffix.lower()
        return _LANG_MAP.get(ext, JS_LANGUAGE)

    def get_symbols(self, source: str, file_path: str) -> list[DocumentSymbol]:
        """Extract top-level symbols, with members nested under classes."""
        parser = Parser(self._get_language(file_path))
        src = source.encode()
        tree = parser.parse(src)
        symbols: list[DocumentSymbol] = []

        for node in tree.root_node.children:
            actual = node
            if node.type == "export_statement":
                actual = node.child_by_field_name("declaration")
                if actual is None:
                    continue
            symbols.extend(self._declaration_to_symbols(actual, src))

        return symbols

    def _declaration_to_symbols(self, node, src: bytes) -> list[DocumentSymbol]:
        if node.type in ("lexical_declaration", "variable_declaration"):
            return self._bindings_to_symbols(node, src)

        kind = _KIND_MAP.get(node.type)
        name_node = node.child_by_field_name("name")
        if kind is None or name_node is None:
            return []

        symbol = self._make_symbol(name_node, kind, src)
        if kind in (SymbolKind.CLASS, SymbolKind.INTERFACE):
            body = node.child_by_field_name("body")
            if body is not None:
                symbol.children = [
                    self._make_symbol(member.child_by_field_name("name"), SymbolKind.METHOD, src)
                    for member in body.children
                    if member.type in _MEMBER_TYPES and member.child_by_field_name("name")
                ]
        return [symbol]

    def _bindings_to_symbols(self, node, src: bytes) -> list[DocumentSymbol]:
        """``const`` bindings are constants; ``let``/``var`` are variables."""
        keyword = node.children[0].type if node.children else ""
        kind = SymbolKind.CONSTANT if keyword == "const" else SymbolKind.VARIABLE
        symbols: list[DocumentSymbol] = []
        for child in node.children:
            if child.type != "variable_declarator":
                continue
            name_node = child.child_by_field_name("name")
            # Destructuring patterns have no single name
            if name_node is None or name_node.type != "identifier":
                continue
            symbols.append(self._make_symbol(name_node, kind, src))
        return symbols

    def _make_symbol(self, name_node, kind: SymbolKind, src: bytes) -> DocumentSymbol:
        row, byte_column = name_node.start_point
        # tree-sitter columns count bytes; positions count characters
        line_prefix = src[name_node.start_byte - byte_column : name_node.start_byte]
        return DocumentSymbol(
            name=name_node.text.decode(),
            kind=kind,
            selection=Position(row, len(line_prefix.decode("utf-8", errors="ignore"))),
        )
