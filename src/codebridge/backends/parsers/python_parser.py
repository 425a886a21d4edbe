"""Python symbol extraction using stdlib ast."""

from __future__ import annotations

import ast

from ..models import DocumentSymbol, Position, SymbolKind

_ENUM_BASES = {"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"}

_KEYWORDS = {
    ast.FunctionDef: "def",
    ast.AsyncFunctionDef: "async def",
    ast.ClassDef: "class",
}


class PythonParser:
    """Parse Python source using stdlib ast."""

    def get_symbols(self, source: str) -> list[DocumentSymbol]:
        """Extract top-level symbols, with methods nested under classes."""
        try:
            tree = ast.parse(source)
        except SyntaxError:
            return []

        lines = source.splitlines()
        symbols: list[DocumentSymbol] = []

        for node in ast.iter_child_nodes(tree):
            if isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef):
                symbols.append(self._def_to_symbol(node, lines, SymbolKind.FUNCTION))
            elif isinstance(node, ast.ClassDef):
                symbols.append(self._class_to_symbol(node, lines))
            elif isinstance(node, ast.Assign | ast.AnnAssign):
                symbols.extend(self._assign_to_symbols(node, lines))

        return symbols

    def _class_to_symbol(self, node: ast.ClassDef, lines: list[str]) -> DocumentSymbol:
        """Convert a class node to a symbol with method children."""
        children = [
            self._def_to_symbol(child, lines, SymbolKind.METHOD)
            for child in ast.iter_child_nodes(node)
            if isinstance(child, ast.FunctionDef | ast.AsyncFunctionDef)
        ]
        kind = SymbolKind.ENUM if self._base_names(node) & _ENUM_BASES else SymbolKind.CLASS
        symbol = self._def_to_symbol(node, lines, kind)
        symbol.children = children
        return symbol

    def _def_to_symbol(
        self,
        node: ast.FunctionDef | ast.AsyncFunctionDef | ast.ClassDef,
        lines: list[str],
        kind: SymbolKind,
    ) -> DocumentSymbol:
        return DocumentSymbol(
            name=node.name,
            kind=kind,
            selection=self._name_position(node, lines),
        )

    def _assign_to_symbols(
        self, node: ast.Assign | ast.AnnAssign, lines: list[str]
    ) -> list[DocumentSymbol]:
        targets = node.targets if isinstance(node, ast.Assign) else [node.target]
        symbols: list[DocumentSymbol] = []
        for target in targets:
            if not isinstance(target, ast.Name):
                continue
            kind = SymbolKind.CONSTANT if target.id.isupper() else SymbolKind.VARIABLE
            symbols.append(
                DocumentSymbol(
                    name=target.id,
                    kind=kind,
                    selection=Position(
                        target.lineno - 1, _char_column(lines, target.lineno - 1, target.col_offset)
                    ),
                )
            )
        return symbols

    def _name_position(self, node: ast.AST, lines: list[str]) -> Position:
        """Locate the symbol name on its ``def``/``class`` line."""
        line_index = node.lineno - 1
        line = lines[line_index] if line_index < len(lines) else ""
        keyword = _KEYWORDS.get(type(node), "")
        start = _char_column(lines, line_index, node.col_offset)
        column = line.find(node.name, start + len(keyword))
        return Position(line_index, column if column >= 0 else start)

    def _base_names(self, node: ast.ClassDef) -> set[str]:
        names: set[str] = set()
        for base in node.bases:
            if isinstance(base, ast.Name):
                names.add(base.id)
            elif isinstance(base, ast.Attribute):
                names.add(base.attr)
        return names


def _char_column(lines: list[str], line_index: int, byte_offset: int) -> int:
    """Convert an ast UTF-8 byte column to a character column."""
    line = lines[line_index] if line_index < len(lines) else ""
    return len(line.encode("utf-8")[:byte_offset].decode("utf-8", errors="ignore"))
