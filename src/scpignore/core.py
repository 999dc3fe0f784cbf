"""
Core logic for scpignore package.
"""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

import pathspec
from colorama import Fore, Style, init as colorama_init

colorama_init()

# Exceptions
class ScpignoreError(Exception): ...
class ConfigFileError(ScpignoreError): ...
class InvalidRootError(ScpignoreError): ...
class TraversalError(ScpignoreError): ...
class TransferError(ScpignoreError): ...

# Defaults & helpers
DEFAULT_IGNORE_FILE = ".scpignore"

# gitignore gives these a meaning of their own; escape them so they match
# literally.
_LITERAL_PREFIXES = ("!", "#")


def status(msg: str, color: str = "", err: bool = False) -> None:
    line = f"[scpignore] {msg}"
    if color:
        line = color + line + Style.RESET_ALL
    print(line, file=sys.stderr if err else sys.stdout)


def warn(msg: str) -> None:
    status(f"! {msg}", Fore.YELLOW, err=True)


# Pattern loading
def parse_patterns(lines: Iterable[str]) -> List[str]:
    """Return the non-blank, non-comment *lines*, stripped, in order."""
    patterns: List[str] = []
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        patterns.append(line)
    return patterns


def load_patterns(path: Path, required: bool = False) -> List[str]:
    """
    Read ignore patterns from *path*.

    A missing file means "no patterns" unless *required* is set. Every
    other read failure is raised as :class:`ConfigFileError`.
    """
    try:
        with path.open("r", encoding="utf-8") as fh:
            return parse_patterns(fh)
    except FileNotFoundError as e:
        if required:
            raise ConfigFileError(f"Ignore file '{path}' does not exist") from e
        return []
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read ignore file '{path}': {e}") from e


# Matching
@dataclass(frozen=True)
class CompiledPattern:
    raw: str
    glob: Optional[pathspec.PathSpec]
    fragment: Optional[re.Pattern[str]]

    @property
    def valid(self) -> bool:
        return self.glob is not None


def _compile_glob(pattern: str) -> Optional[pathspec.PathSpec]:
    source = "\\" + pattern if pattern.startswith(_LITERAL_PREFIXES) else pattern
    try:
        spec = pathspec.GitIgnoreSpec.from_lines([source])
    except ValueError as e:
        warn(f"Ignoring malformed pattern {pattern!r}: {e}")
        return None
    # gitignore silently drops patterns it cannot use (e.g. an unclosed
    # range); those never match anything either.
    if not spec.patterns or spec.patterns[0].include is None:
        warn(f"Ignoring malformed pattern {pattern!r}")
        return None
    return spec


def _compile_fragment(pattern: str) -> Optional[re.Pattern[str]]:
    open_left = pattern.startswith("*")
    fragment = pattern[1:] if open_left else pattern
    open_right = fragment.endswith("*")
    if open_right:
        fragment = fragment[:-1]
    fragment = fragment.strip("/")
    if not fragment:
        return None

    regex = re.escape(fragment)
    if not open_left:
        regex = r"(?<![^/])" + regex
    if not open_right:
        regex += r"(?![^/])"
    return re.compile(regex)


def compile_patterns(patterns: Iterable[str]) -> List[CompiledPattern]:
    """Compile *patterns* once, warning about (and disabling) malformed ones."""
    compiled: List[CompiledPattern] = []
    for pattern in patterns:
        glob = _compile_glob(pattern)
        fragment = _compile_fragment(pattern) if glob is not None else None
        compiled.append(CompiledPattern(raw=pattern, glob=glob, fragment=fragment))
    return compiled


def _normalize(path: Union[str, Path]) -> str:
    text = path.as_posix() if isinstance(path, Path) else str(path).replace(os.sep, "/")
    if len(text) > 1:
        text = text.rstrip("/")
    return text


PatternsArg = Union[Iterable[str], Iterable[CompiledPattern]]


def _ensure_compiled(patterns: PatternsArg) -> List[CompiledPattern]:
    patterns = list(patterns)
    if all(isinstance(p, CompiledPattern) for p in patterns):
        return patterns  # type: ignore[return-value]
    return compile_patterns(patterns)  # type: ignore[arg-type]


def _matches(path: str, basename: str, pattern: CompiledPattern) -> bool:
    if pattern.glob is None:
        return False
    if pattern.glob.match_file(basename):
        return True
    return pattern.fragment is not None and pattern.fragment.search(path) is not None


def is_ignored(path: Union[str, Path], patterns: PatternsArg) -> bool:
    """
    Return ``True`` when any pattern excludes *path*.

    A pattern excludes a path when, as a glob, it matches the basename, or
    when its literal fragment (one leading/trailing ``*`` removed) lines up
    with whole segments of the path.
    """
    text = _normalize(path)
    basename = text.rsplit("/", 1)[-1]
    return any(_matches(text, basename, p) for p in _ensure_compiled(patterns))


def filter_paths(paths: Iterable[str], patterns: PatternsArg) -> List[str]:
    """Drop every path excluded by *patterns*, keeping the input order."""
    compiled = _ensure_compiled(patterns)
    if not compiled:
        return list(paths)
    return [p for p in paths if not is_ignored(p, compiled)]


# File discovery
def _raise_walk_error(err: OSError) -> None:
    raise TraversalError(f"Could not read '{err.filename}': {err.strerror or err}") from err


def scan_paths(root: Path) -> List[str]:
    """
    Collect every file and every empty leaf directory under *root*.

    Paths are returned relative to *root*, ``/``-separated, in depth-first
    name order. Non-empty directories are never listed themselves.
    """
    try:
        root = root.resolve()
    except (OSError, RuntimeError) as e:
        raise InvalidRootError(f"Could not resolve root path '{root}': {e}")

    if not root.exists():
        raise InvalidRootError(f"Root directory '{root}' does not exist")

    if not root.is_dir():
        raise InvalidRootError(f"Root path '{root}' is not a directory")

    found: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        current = Path(dirpath)
        rel_dir = current.relative_to(root)

        if not dirnames and not filenames:
            if current != root:
                found.append(rel_dir.as_posix())
            continue

        found.extend((rel_dir / name).as_posix() for name in filenames)
        # os.walk does not descend into directory symlinks; copy them as-is
        found.extend(
            (rel_dir / name).as_posix()
            for name in dirnames
            if (current / name).is_symlink()
        )

    return sorted(found, key=lambda p: p.split("/"))
