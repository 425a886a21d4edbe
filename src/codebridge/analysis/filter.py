"""Admissibility check for expansion candidates."""

from __future__ import annotations

from typing import Sequence

from ..workspace import Workspace
from .models import FileRef


class TargetFilter:
    """Decides whether a candidate file may join the walk.

    A candidate is allowed when it sits inside a workspace folder and its
    folder-relative path matches no exclusion pattern. File type is not
    considered; binary files are dropped later by the output stage.
    """

    def __init__(self, workspace: Workspace, exclude_patterns: Sequence[str] = ()):
        self._workspace = workspace
        self._patterns = list(exclude_patterns)

    @property
    def exclude_patterns(self) -> list[str]:
        return list(self._patterns)

    def is_allowed(self, ref: FileRef) -> bool:
        if self._workspace.folder_for(ref) is None:
            return False
        return not self._workspace.is_excluded(ref, self._patterns)

    __call__ = is_allowed
