# src/core/globbing.py - v1
"""Ordered glob expansion with exclusion patterns and brace sets.

Patterns are resolved relative to a root directory:
  - "app/styles/**/*.css"          recursive match
  - "app/{images,fonts}/**"        brace set, expanded before globbing
  - "!app/bower_components"        exclusion; also excludes everything below

Positive patterns are expanded in the order given, each one's matches
sorted, duplicates dropped on first occurrence. Exclusions apply to every
positive match regardless of position. Only regular files are returned.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path, PurePosixPath

_MAGIC = re.compile(r"[*?\[{]")
_BRACE = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    """Expand the first brace set recursively: "a/{b,c}/d" -> ["a/b/d", "a/c/d"]."""
    match = _BRACE.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    results: list[str] = []
    for option in match.group(1).split(","):
        results.extend(expand_braces(f"{head}{option}{tail}"))
    return results


def glob_base(pattern: str) -> str:
    """Return the leading non-magic directory of a pattern ("" for the root).

    A literal pattern's base is its parent directory, matching how glob
    streams compute the base used for relative output paths.
    """
    parts = PurePosixPath(pattern).parts
    base: list[str] = []
    for i, part in enumerate(parts):
        if _MAGIC.search(part):
            break
        if i == len(parts) - 1:
            break
        base.append(part)
    return "/".join(base)


@lru_cache(maxsize=512)
def _compile(pattern: str) -> re.Pattern[str]:
    """Translate a single (brace-free) glob into an anchored regex."""
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif c == "*":
            out.append("[^/]*")
            i += 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(c))
                i += 1
            else:
                body = pattern[i + 1 : end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = end + 1
        else:
            out.append(re.escape(c))
            i += 1
    return re.compile("".join(out) + r"\Z")


def match_pattern(relative_path: str, pattern: str) -> bool:
    """True if a POSIX relative path matches the glob (braces allowed)."""
    return any(
        _compile(_normalize(p)).match(relative_path) for p in expand_braces(pattern)
    )


def is_excluded(relative_path: str, exclusions: list[str]) -> bool:
    """True if the path or any of its parent directories matches an exclusion."""
    if not exclusions:
        return False
    candidates = [relative_path]
    parent = PurePosixPath(relative_path).parent
    while str(parent) not in ("", "."):
        candidates.append(parent.as_posix())
        parent = parent.parent
    return any(match_pattern(c, ex) for c in candidates for ex in exclusions)


def split_patterns(patterns: list[str]) -> tuple[list[str], list[str]]:
    """Split into (positive, exclusion) lists, stripping the "!" prefix."""
    positive: list[str] = []
    negative: list[str] = []
    for pattern in patterns:
        if pattern.startswith("!"):
            negative.append(_normalize(pattern[1:]))
        else:
            positive.append(_normalize(pattern))
    return positive, negative


def expand_patterns(patterns: list[str], root: Path) -> list[tuple[Path, Path]]:
    """Resolve patterns under root into ordered (file, glob base) pairs."""
    root = Path(root)
    positive, negative = split_patterns(patterns)
    seen: set[Path] = set()
    matches: list[tuple[Path, Path]] = []

    for pattern in positive:
        # the base is taken before brace expansion so "a/{b,c}/*" keeps b/ and c/
        base = root / glob_base(pattern)
        for expanded in expand_braces(pattern):
            glob_pattern = expanded
            if glob_pattern.endswith("**"):
                glob_pattern = f"{glob_pattern}/*"
            for path in sorted(root.glob(glob_pattern)):
                if not path.is_file():
                    continue
                rel = path.relative_to(root).as_posix()
                if is_excluded(rel, negative):
                    continue
                resolved = path.resolve()
                if resolved in seen:
                    continue
                seen.add(resolved)
                matches.append((resolved, base.resolve()))

    return matches


def _normalize(pattern: str) -> str:
    """Strip a leading "./" so patterns compare against root-relative paths."""
    while pattern.startswith("./") and len(pattern) > 2:
        pattern = pattern[2:]
    return pattern
