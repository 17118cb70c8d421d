"""Blacklist pattern matching against paths relative to the source root."""

from __future__ import annotations

import re
from collections.abc import Iterable

DIRECTORY_PATTERN_SUFFIX = "/*"


def normalize_path(path: str) -> str:
    """Return ``path`` in forward-slash form without a leading separator."""
    return path.replace("\\", "/").lstrip("/")


def pattern_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a blacklist glob into an anchored regular expression.

    ``*`` matches any run of characters (path separators included) and ``?``
    exactly one character. Everything else is literal.
    """
    pieces = []
    for character in normalize_path(pattern):
        if character == "*":
            pieces.append(".*")
        elif character == "?":
            pieces.append(".")
        else:
            pieces.append(re.escape(character))
    return re.compile("".join(pieces), re.DOTALL)


def matches_file(relative_path: str, pattern: str) -> bool:
    """Check whether the whole relative path matches ``pattern``."""
    return pattern_to_regex(pattern).fullmatch(normalize_path(relative_path)) is not None


def is_directory_pattern(pattern: str) -> bool:
    """Check whether ``pattern`` names a directory (ends with ``/*``)."""
    return normalize_path(pattern).endswith(DIRECTORY_PATTERN_SUFFIX)


def directory_prefix(pattern: str) -> str:
    """Return a directory pattern with its trailing ``/*`` removed."""
    return normalize_path(pattern)[: -len(DIRECTORY_PATTERN_SUFFIX)]


def is_under_excluded_dir(relative_path: str, pattern: str) -> bool:
    """Check whether ``relative_path`` is, or sits below, the directory ``pattern`` names.

    Only patterns ending in ``/*`` take part; the prefix is compared literally.
    """
    if not is_directory_pattern(pattern):
        return False
    prefix = directory_prefix(pattern)
    path = normalize_path(relative_path)
    return path == prefix or path.startswith(prefix + "/")


def is_file_excluded(relative_path: str, patterns: Iterable[str]) -> bool:
    """Return True if any pattern excludes the file at ``relative_path``."""
    return any(
        matches_file(relative_path, pattern) or is_under_excluded_dir(relative_path, pattern)
        for pattern in patterns
    )


def is_directory_excluded(relative_path: str, patterns: Iterable[str]) -> bool:
    """Return True if the directory at ``relative_path`` must not be entered.

    Besides the file predicates, a ``dir/*`` pattern whose prefix contains
    wildcards (``*/node_modules/*``) prunes every directory the prefix matches,
    since everything below such a directory would be excluded anyway.
    """
    for pattern in patterns:
        if matches_file(relative_path, pattern) or is_under_excluded_dir(relative_path, pattern):
            return True
        if is_directory_pattern(pattern) and matches_file(relative_path, directory_prefix(pattern)):
            return True
    return False
