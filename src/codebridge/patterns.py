"""Exclusion pattern matching for workspace-relative paths.

Two matching paths exist and both are part of the contract:

- Patterns without ``*`` or ``?`` are literal and match a whole path, a
  leading directory, an inner segment run, or a trailing segment.
- Wildcard patterns are compiled to an anchored, case-insensitive regex.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable

# Characters escaped before wildcard substitution.
_REGEX_SPECIALS = re.compile(r"[.+^${}()|\[\]\\*?]")


@lru_cache(maxsize=512)
def glob_to_regex(glob: str) -> re.Pattern[str]:
    """Compile a glob into a regex matched against the full relative path.

    ``**/`` matches zero or more leading segments, a remaining ``**``
    matches anything, ``*`` stays within one segment and ``?`` matches a
    single character. Globs without a ``/`` are matched at any depth.
    """
    pattern = glob.replace("\\", "/")
    if "/" not in pattern:
        pattern = "**/" + pattern

    escaped = _REGEX_SPECIALS.sub(lambda m: "\\" + m.group(0), pattern)
    regex = (
        escaped.replace("\\*\\*/", "(?:.*/)?")
        .replace("\\*\\*", ".*")
        .replace("\\*", "[^/]*")
        .replace("\\?", ".")
    )
    return re.compile(f"^{regex}$", re.IGNORECASE)


def _matches_literal(path: str, pattern: str) -> bool:
    clean = pattern[:-1] if pattern.endswith("/") else pattern
    return (
        path == clean
        or path.startswith(clean + "/")
        or ("/" + clean + "/") in path
        or path.endswith("/" + clean)
    )


def is_ignored(relative_path: str, patterns: Iterable[str] | None) -> bool:
    """Return True if ``relative_path`` matches any exclusion pattern.

    Args:
        relative_path: Path relative to its workspace folder.
        patterns: Exclusion patterns, evaluated in order.

    Returns:
        True on the first matching pattern.
    """
    if not patterns:
        return False

    path = relative_path.replace("\\", "/")
    for raw in patterns:
        pattern = raw.replace("\\", "/")
        if "*" not in pattern and "?" not in pattern:
            if _matches_literal(path, pattern):
                return True
            continue
        if glob_to_regex(pattern).fullmatch(path):
            return True
    return False
