"""Source file discovery from include/exclude glob patterns."""

from __future__ import annotations

import glob
import logging
import re
from collections.abc import Iterable
from fnmatch import fnmatch
from pathlib import Path

from i18nxy.core.parser import SOURCE_SUFFIXES

logger = logging.getLogger(__name__)

_RE_BRACES = re.compile(r"\{([^{}]*,[^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives, which glob does not understand.

    >>> expand_braces("src/**/*.{js,ts}")
    ['src/**/*.js', 'src/**/*.ts']
    """
    m = _RE_BRACES.search(pattern)
    if not m:
        return [pattern]
    head, tail = pattern[: m.start()], pattern[m.end():]
    expanded: list[str] = []
    for option in m.group(1).split(","):
        expanded.extend(expand_braces(f"{head}{option}{tail}"))
    return expanded


def is_excluded(rel_path: str, patterns: Iterable[str]) -> bool:
    """Match a POSIX relative path against exclude globs.

    A leading ``**/`` also matches at the top level, so ``**/*.test.js``
    excludes ``a.test.js`` as well as ``src/a.test.js``.
    """
    for pattern in patterns:
        for expanded in expand_braces(pattern):
            if fnmatch(rel_path, expanded):
                return True
            if expanded.startswith("**/") and fnmatch(rel_path, expanded[3:]):
                return True
    return False


def find_source_files(
    include: Iterable[str],
    exclude: Iterable[str] = (),
    root: str | Path = ".",
) -> list[Path]:
    """Files under *root* matching any include pattern and no exclude pattern.

    Results are sorted and de-duplicated so runs are reproducible.
    """
    root = Path(root)
    exclude = list(exclude)
    found: set[Path] = set()

    for pattern in include:
        for expanded in expand_braces(pattern):
            for match in glob.glob(expanded, root_dir=root, recursive=True):
                path = root / match
                if not path.is_file():
                    continue
                rel = Path(match).as_posix()
                if is_excluded(rel, exclude):
                    logger.debug("Excluded %s", rel)
                    continue
                found.add(path)

    return sorted(found)


def collect_paths(paths: Iterable[str | Path]) -> list[Path]:
    """Expand explicit CLI arguments: files as-is, directories recursively."""
    files: list[Path] = []
    for p in paths:
        p = Path(p)
        if p.is_dir():
            files.extend(
                sorted(f for f in p.rglob("*") if f.is_file() and f.suffix in SOURCE_SUFFIXES)
            )
        elif p.is_file():
            files.append(p)
        else:
            logger.warning("Path not found: %s", p)
    return files
