"""
Copy step for scpignore: hands each surviving path to scp.
"""

from __future__ import annotations

import posixpath
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from .core import TransferError, warn

# Destination handling
def is_remote(destination: str) -> bool:
    """scp's rule: a ``:`` before any ``/`` marks ``host:path``."""
    idx = destination.find(":")
    if idx <= 0:
        return False
    return "/" not in destination[:idx]


def parse_destination(destination: str) -> Tuple[Optional[str], str]:
    """Split *destination* into ``(host, path)``; ``host`` is ``None`` when local."""
    if not destination:
        raise TransferError("Destination must not be empty")
    if not is_remote(destination):
        return None, destination
    host, _, path = destination.partition(":")
    return host, path


def _join(base: str, rel: str) -> str:
    if not base:
        return rel
    return posixpath.join(base, rel)


@dataclass(frozen=True)
class TransferResult:
    path: str
    target: str
    ok: bool
    returncode: int = 0
    output: str = ""


# Directory preparation
def _parent_dirs(paths: Iterable[str], base: str) -> List[str]:
    dirs = set()
    for rel in paths:
        parent = posixpath.dirname(rel)
        dirs.add(_join(base, parent) if parent else base)
    dirs.discard("")
    return sorted(dirs)


def _quote_remote(path: str) -> str:
    # Keep home expansion for ~/... targets.
    if path == "~":
        return '"$HOME"'
    if path.startswith("~/"):
        rest = path[2:]
        for ch in ("\\", '"', "$", "`"):
            rest = rest.replace(ch, "\\" + ch)
        return f'"$HOME/{rest}"'
    return shlex.quote(path)


def _ensure_dirs(
    host: Optional[str],
    dirs: Sequence[str],
    ssh_cmd: str,
) -> None:
    if not dirs:
        return

    if host is None:
        for d in dirs:
            try:
                Path(d).expanduser().mkdir(parents=True, exist_ok=True)
            except OSError as e:
                warn(f"Could not create directory '{d}': {e}")
        return

    remote_cmd = "mkdir -p -- " + " ".join(_quote_remote(d) for d in dirs)
    try:
        p = subprocess.run(
            [ssh_cmd, host, remote_cmd],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError as e:
        raise TransferError(f"Could not run '{ssh_cmd}': {e}") from e
    if p.returncode != 0:
        warn(
            f"Creating remote directories on {host} failed "
            f"(exit code {p.returncode}): {p.stdout.strip()}"
        )


# Copy
def _copy_one(
    source: Path,
    target: str,
    scp_cmd: str,
    scp_options: Sequence[str],
) -> subprocess.CompletedProcess:
    cmd = [scp_cmd, "-r", *scp_options, str(source), target]
    try:
        return subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError as e:
        raise TransferError(f"Could not run '{scp_cmd}': {e}") from e


def copy_paths(
    paths: Sequence[str],
    root: Path,
    destination: str,
    *,
    scp_cmd: str = "scp",
    ssh_cmd: str = "ssh",
    scp_options: Sequence[str] = (),
    dry_run: bool = False,
) -> List[TransferResult]:
    """
    Copy each root-relative path in *paths* to *destination*.

    Every path gets its own scp call and its own :class:`TransferResult`;
    a failing item does not stop the others. The tree layout below *root*
    is kept: ``sub/a.txt`` lands at ``<destination>/sub/a.txt``. Parent
    directories are created up front (``ssh mkdir -p`` for remote hosts).

    An empty *paths* list does nothing. :class:`TransferError` is raised
    only when scp/ssh cannot be started at all.
    """
    if not paths:
        return []

    host, base = parse_destination(destination)

    def build_target(rel: str) -> str:
        full = _join(base, rel)
        return f"{host}:{full}" if host is not None else full

    if dry_run:
        return [TransferResult(path=rel, target=build_target(rel), ok=True) for rel in paths]

    _ensure_dirs(host, _parent_dirs(paths, base), ssh_cmd)

    results: List[TransferResult] = []
    for rel in paths:
        target = build_target(rel)
        p = _copy_one(root / rel, target, scp_cmd, scp_options)
        results.append(
            TransferResult(
                path=rel,
                target=target,
                ok=p.returncode == 0,
                returncode=p.returncode,
                output=(p.stdout or "").strip(),
            )
        )
    return results
