"""Local language host: heuristic answers from the file system.

Stands in for an editor's language servers when CodeBridge runs from
the command line. Links come from markdown/HTML syntax, definitions
from relative specifier resolution, symbols from stdlib ast (Python) and
tree-sitter (JS/TS), and references from a whole-word scan of the
owning workspace folder.

File reads, parsing and scans are blocking, so every capability runs in
a worker thread via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Iterable, Sequence

from ..workspace import DEFAULT_MAX_FILE_SIZE, TextCache, Workspace, to_file_ref
from .models import DocumentLink, DocumentSymbol, Location, Position
from .parsers import PythonParser, TSParser

logger = logging.getLogger(__name__)

_PYTHON_EXTS = {".py", ".pyi"}
_JS_TS_EXTS = {".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".mts", ".cts"}

# Tried in order when a specifier omits its extension
RESOLVE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".py", ".json", ".md")

SEARCHABLE_EXTENSIONS: set[str] = _PYTHON_EXTS | _JS_TS_EXTS | {
    ".vue", ".svelte", ".md", ".mdx", ".html", ".css", ".scss",
}

MAX_REFERENCE_FILES = 50

_LINK_PATTERN = re.compile(
    r"""\[[^\]\n]*\]\(\s*<?([^)\s>]+)>?(?:\s+"[^"]*")?\s*\)"""
    r"""|(?:href|src)\s*=\s*["']([^"']+)["']"""
    r"""|(https?://[^\s)<>"'`\]]+)"""
)
_QUOTED = re.compile(r"""(['"])([^'"\n]*)\1""")
_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*")

Query = tuple[str, Position]


@dataclass
class _ReferenceBatch:
    """Reference lookups against one folder that share a single scan."""

    root: str
    queries: list[Query] = field(default_factory=list)
    task: asyncio.Task | None = None


class LocalLanguageHost:
    """LanguageHost over the local file system.

    Reads are never cached across calls; each answer reflects the files
    as they are on disk when asked. Reference lookups issued together
    (one per symbol of a file) are answered by one scan of the folder.
    """

    def __init__(
        self,
        workspace: Workspace,
        exclude_patterns: Sequence[str] = (),
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        max_reference_files: int = MAX_REFERENCE_FILES,
    ):
        self._workspace = workspace
        self._exclude_patterns = list(exclude_patterns)
        self._max_file_size = max_file_size
        self._max_reference_files = max_reference_files
        self._python = PythonParser()
        self._ts = TSParser()
        self._batches: dict[str, _ReferenceBatch] = {}

    def _read(self, path: str) -> str:
        text = TextCache(self._max_file_size).read(path)
        if text is None:
            raise FileNotFoundError(f"Cannot read {path}")
        return text

    async def document_links(self, path: str) -> list[DocumentLink]:
        return await asyncio.to_thread(self._document_links, path)

    async def definitions(self, path: str, offset: int) -> list[Location]:
        return await asyncio.to_thread(self._definitions, path, offset)

    async def document_symbols(self, path: str) -> list[DocumentSymbol]:
        return await asyncio.to_thread(self._document_symbols, path)

    async def references(self, path: str, position: Position) -> list[Location]:
        folder = self._workspace.folder_for(path)
        if folder is None:
            return []

        # Lookups started before the batch task first runs join its scan.
        batch = self._batches.get(folder.path)
        if batch is None:
            batch = _ReferenceBatch(root=folder.path)
            self._batches[folder.path] = batch
            batch.task = asyncio.create_task(self._run_batch(batch))
        batch.queries.append((path, position))

        answers = await asyncio.shield(batch.task)
        return list(answers.get((path, position), []))

    async def _run_batch(self, batch: _ReferenceBatch) -> dict[Query, list[Location]]:
        if self._batches.get(batch.root) is batch:
            del self._batches[batch.root]
        return await asyncio.to_thread(self._answer_references, batch.root, list(batch.queries))

    def _document_links(self, path: str) -> list[DocumentLink]:
        text = self._read(path)
        base_dir = os.path.dirname(path)
        links: list[DocumentLink] = []

        for match in _LINK_PATTERN.finditer(text):
            raw = match.group(1) or match.group(2) or match.group(3)
            span = match.span(match.lastindex or 0)
            if re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]+:", raw) and not raw.lower().startswith("file:"):
                links.append(DocumentLink(target=raw, start=span[0], end=span[1]))
                continue
            if raw.startswith("#"):
                continue

            local = re.split(r"[#?]", raw, maxsplit=1)[0]
            ref = to_file_ref(local, base_dir=base_dir)
            if ref is not None and os.path.isfile(ref):
                links.append(DocumentLink(target=ref, start=span[0], end=span[1]))

        return links

    def _definitions(self, path: str, offset: int) -> list[Location]:
        text = self._read(path)
        specifier = self._specifier_at(text, offset)
        if specifier is None or not specifier.startswith("."):
            return []

        resolved = self.resolve_specifier(os.path.dirname(path), specifier)
        return [Location(target=resolved)] if resolved else []

    def _document_symbols(self, path: str) -> list[DocumentSymbol]:
        text = self._read(path)
        ext = PurePosixPath(path).suffix.lower()
        if ext in _PYTHON_EXTS:
            return self._python.get_symbols(text)
        if ext in _JS_TS_EXTS:
            return self._ts.get_symbols(text, path)
        return []

    def resolve_specifier(self, base_dir: str, specifier: str) -> str | None:
        """Resolve a relative specifier the way bundlers commonly do.

        Tries the exact path, then known extensions, then ``index.*`` in a
        directory. A ``.js`` specifier also matches a ``.ts``/``.tsx``
        source next to it.
        """
        target = to_file_ref(specifier, base_dir=base_dir)
        if target is None:
            return None

        candidates = [target]
        stem, ext = os.path.splitext(target)
        if ext in (".js", ".jsx", ".mjs"):
            candidates += [stem + ".ts", stem + ".tsx"]
        candidates += [target + e for e in RESOLVE_EXTENSIONS]
        candidates += [f"{target}/index{e}" for e in RESOLVE_EXTENSIONS]
        if os.path.isdir(target):
            candidates.append(f"{target}/__init__.py")

        for candidate in candidates:
            if os.path.isfile(candidate):
                return candidate
        return None

    def _specifier_at(self, text: str, offset: int) -> str | None:
        line_start = text.rfind("\n", 0, offset) + 1
        line_end = text.find("\n", offset)
        line = text[line_start : line_end if line_end != -1 else len(text)]
        column = offset - line_start
        for match in _QUOTED.finditer(line):
            if match.start() < column < match.end():
                return match.group(2)
        return None

    def _identifier_at(self, text: str, position: Position) -> str | None:
        lines = text.splitlines()
        if position.line >= len(lines):
            return None
        for match in _IDENTIFIER.finditer(lines[position.line]):
            if match.start() <= position.character < match.end():
                return match.group(0)
        return None

    def _answer_references(self, root: str, queries: list[Query]) -> dict[Query, list[Location]]:
        """Resolve each query to a name, then scan ``root`` once for all names."""
        texts = TextCache(self._max_file_size)
        names: dict[Query, str] = {}
        for path, position in queries:
            text = texts.read(path)
            name = self._identifier_at(text, position) if text is not None else None
            if name is not None:
                names[(path, position)] = name

        if not names:
            return {}
        hits = self._scan_references(root, set(names.values()))
        return {query: hits[name] for query, name in names.items()}

    def _scan_references(self, root: str, names: Iterable[str]) -> dict[str, list[Location]]:
        """Whole-word scan of searchable files under ``root``.

        Records the first occurrence of each name per file, in path order,
        up to ``max_reference_files`` files per name.
        """
        # Longest first so a name never shadows a longer one sharing its prefix
        wanted = sorted(set(names), key=len, reverse=True)
        alternation = "|".join(re.escape(name) for name in wanted)
        pattern = re.compile(rf"(?<![\w$])(?:{alternation})(?![\w$])")
        found: dict[str, list[Location]] = {name: [] for name in wanted}
        open_names = set(wanted)
        texts = TextCache(self._max_file_size)

        for ref in self._workspace.walk_files(root, self._exclude_patterns):
            if PurePosixPath(ref).suffix.lower() not in SEARCHABLE_EXTENSIONS:
                continue
            content = texts.read(ref)
            if not content:
                continue

            seen: set[str] = set()
            for match in pattern.finditer(content):
                name = match.group(0)
                if name in seen or name not in open_names:
                    continue
                seen.add(name)
                line = content.count("\n", 0, match.start())
                character = match.start() - (content.rfind("\n", 0, match.start()) + 1)
                found[name].append(Location(target=ref, position=Position(line, character)))
                if len(found[name]) >= self._max_reference_files:
                    logger.debug("Reference scan for %s stopped at %d files", name, len(found[name]))
                    open_names.discard(name)
                if open_names <= seen:
                    break

            if not open_names:
                break

        return found
