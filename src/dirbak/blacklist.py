"""Blacklist file handling: default rules, loading and creation."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

BLACKLIST_FILE_NAME = "blacklist.txt"
COMMENT_PREFIX = "#"

# Ecosystem -> patterns written to a freshly created blacklist file.
DEFAULT_BLACKLIST: dict[str, list[str]] = {
    "Node.js": [
        "node_modules/*",
        "*/node_modules/*",
        ".npm/*",
        ".next/*",
        ".nuxt/*",
        "npm-debug.log*",
        "yarn-error.log*",
    ],
    "Python": [
        "__pycache__/*",
        "*/__pycache__/*",
        "*.pyc",
        ".venv/*",
        "venv/*",
        ".pytest_cache/*",
        ".mypy_cache/*",
        ".tox/*",
        "*.egg-info/*",
    ],
    ".NET": [
        "bin/*",
        "obj/*",
        "*/bin/*",
        "*/obj/*",
        ".vs/*",
        "packages/*",
    ],
    "Java / JVM": [
        "target/*",
        ".gradle/*",
        "build/*",
        "*.class",
    ],
    "Rust / Go / C++": [
        "*/target/*",
        "vendor/*",
        "cmake-build-*/*",
        "*.o",
        "*.obj",
    ],
    "Version control": [
        ".git/*",
        ".svn/*",
        ".hg/*",
    ],
    "Editors and OS": [
        ".idea/*",
        "*.swp",
        ".DS_Store",
        "*/.DS_Store",
        "Thumbs.db",
    ],
    "Logs and temporary files": [
        "*.log",
        "logs/*",
        "tmp/*",
        "*.tmp",
    ],
}


def default_blacklist_content() -> str:
    """Return the text of a new blacklist file, grouped by ecosystem."""
    lines = [
        "# dirbak blacklist",
        "# One pattern per line, relative to the source directory.",
        "# '*' matches any characters (including '/'), '?' matches one character.",
        "# 'dir/*' excludes the directory 'dir' and everything below it.",
    ]
    for ecosystem, patterns in DEFAULT_BLACKLIST.items():
        lines.append("")
        lines.append(f"# {ecosystem}")
        lines.extend(patterns)
    return "\n".join(lines) + "\n"


def parse_blacklist(text: str) -> tuple[str, ...]:
    """Extract patterns from blacklist text, ignoring blank and comment lines."""
    patterns = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(COMMENT_PREFIX):
            continue
        patterns.append(stripped)
    return tuple(patterns)


def ensure_blacklist(path: Path) -> bool:
    """Create the blacklist file with default rules if it is missing.

    Returns True if the file was created.
    """
    path = Path(path)
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(default_blacklist_content(), encoding="utf-8")
    logger.info("Created default blacklist at %s", path)
    return True


def load_blacklist(path: Path) -> tuple[str, ...]:
    """Load blacklist patterns from ``path``, creating the default file first if absent."""
    path = Path(path)
    ensure_blacklist(path)
    patterns = parse_blacklist(path.read_text(encoding="utf-8"))
    logger.debug("Loaded %d blacklist patterns from %s", len(patterns), path)
    return patterns
