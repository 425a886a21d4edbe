"""Workspace folders, file references and per-call file reads."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable, Iterator, Optional
from urllib.parse import unquote, urlparse

from .patterns import is_ignored

logger = logging.getLogger(__name__)

# Files above this are treated as unreadable.
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024

_SCHEME = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*):")


def to_file_ref(target: str, base_dir: Optional[str] = None) -> Optional[str]:
    """Normalize a path or URI into a file reference.

    Args:
        target: Absolute or relative path, or a URI.
        base_dir: Directory that relative targets are resolved against.

    Returns:
        Normalized absolute POSIX path, or None for non-file URIs.
    """
    target = target.strip()
    if not target:
        return None

    match = _SCHEME.match(target)
    # One-letter schemes are Windows drive letters.
    if match and len(match.group(1)) > 1:
        if match.group(1).lower() != "file":
            return None
        target = unquote(urlparse(target).path)
        if re.match(r"^/[a-zA-Z]:/", target):
            target = target[1:]

    if not os.path.isabs(target) and base_dir is not None:
        target = os.path.join(base_dir, target)

    return Path(os.path.abspath(target)).as_posix()


@dataclass(frozen=True)
class WorkspaceFolder:
    """A root directory the user has open."""

    path: str
    name: str

    @classmethod
    def from_path(cls, path: str | Path) -> "WorkspaceFolder":
        ref = to_file_ref(str(path))
        return cls(path=ref, name=PurePosixPath(ref).name or ref)

    def contains(self, ref: str) -> bool:
        root = self.path.rstrip("/")
        return ref == root or ref.startswith(root + "/")


class Workspace:
    """The set of open workspace folders.

    File references outside every folder are not part of the workspace
    and are never offered as expansion results.
    """

    def __init__(self, folders: Iterable[WorkspaceFolder | str | Path]):
        self._folders: list[WorkspaceFolder] = [
            f if isinstance(f, WorkspaceFolder) else WorkspaceFolder.from_path(f)
            for f in folders
        ]

    @property
    def folders(self) -> list[WorkspaceFolder]:
        return list(self._folders)

    def folder_for(self, ref: str) -> WorkspaceFolder | None:
        """Return the innermost folder containing ``ref``."""
        owners = [f for f in self._folders if f.contains(ref)]
        if not owners:
            return None
        return max(owners, key=lambda f: len(f.path))

    def relative_path(self, ref: str) -> str | None:
        """Path of ``ref`` relative to its owning folder, POSIX separators."""
        folder = self.folder_for(ref)
        if folder is None:
            return None
        root = folder.path.rstrip("/")
        return ref[len(root) + 1 :] if ref != root else ""

    def is_excluded(self, ref: str, patterns: Iterable[str]) -> bool:
        relative = self.relative_path(ref)
        return relative is not None and is_ignored(relative, list(patterns))

    def walk_files(self, directory: str, exclude_patterns: Iterable[str] = ()) -> Iterator[str]:
        """Yield files under ``directory`` in path order.

        Hidden files are included. Excluded directories are pruned before
        descending into them.

        Args:
            directory: Normalized directory reference.
            exclude_patterns: Patterns matched against folder-relative paths.

        Yields:
            File references.
        """
        patterns = list(exclude_patterns)
        folder = self.folder_for(directory)
        base = folder.path.rstrip("/") if folder else directory.rstrip("/")

        def _relative(path: str) -> str:
            return path[len(base) + 1 :] if path.startswith(base + "/") else path

        found: list[str] = []
        for dirpath, dirnames, filenames in os.walk(directory):
            current = Path(dirpath).as_posix()
            dirnames[:] = sorted(
                d for d in dirnames
                if not is_ignored(_relative(f"{current}/{d}"), patterns)
            )
            for filename in filenames:
                ref = f"{current}/{filename}"
                if is_ignored(_relative(ref), patterns):
                    continue
                found.append(ref)

        yield from sorted(found)


class TextCache:
    """Memoized UTF-8 reads, scoped to one expansion call.

    Workspace files change between commands, so an instance must not
    outlive the call that created it.
    """

    def __init__(self, max_file_size: int = DEFAULT_MAX_FILE_SIZE):
        self._max_file_size = max_file_size
        self._texts: dict[str, str | None] = {}

    def read(self, ref: str) -> str | None:
        """Return file text, or None if missing, too large or unreadable."""
        if ref in self._texts:
            return self._texts[ref]

        text: str | None = None
        path = Path(ref)
        try:
            if path.is_file() and path.stat().st_size <= self._max_file_size:
                text = path.read_text(encoding="utf-8", errors="ignore")
        except OSError:
            logger.debug("Could not read %s", ref)

        self._texts[ref] = text
        return text

    def __len__(self) -> int:
        return len(self._texts)
