"""
Version-control collaborator.

The canonical envelope and the traceability record need a handful of facts
about the working copy: commit, branch, author, and which files are staged
or modified. ``Vcs`` is the protocol the store consumes; ``GitCli`` answers
it by running ``git`` as a subprocess (with a timeout) and ``StaticVcs``
answers it from fixed values for tests and non-git deployments.

``GitCli`` raises ``VcsError`` for every failure (git missing, not a
repository, timeout). Callers that can degrade use ``describe`` which
substitutes ``"unknown"``.

Tags:
    git, vcs, subprocess, traceability
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from fossil.core.errors import VcsError
from fossil.core.logging import get_logger

logger = get_logger(__name__)

UNKNOWN = "unknown"
GIT_TIMEOUT_SECONDS = 10


class Vcs(Protocol):
    def current_commit_hash(self) -> str: ...
    def current_branch(self) -> str: ...
    def author_name(self) -> str: ...
    def author_email(self) -> str: ...
    def repo_root(self) -> Path: ...
    def staged_files(self) -> list[str]: ...
    def unstaged_files(self) -> list[str]: ...


class GitCli:
    """``Vcs`` backed by the ``git`` executable."""

    def __init__(self, cwd: Path | str | None = None, *, timeout: float = GIT_TIMEOUT_SECONDS) -> None:
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.timeout = timeout

    @classmethod
    def for_path(cls, path: Path | str, **kwargs: Any) -> GitCli:
        """Run git from ``path``, or from its nearest existing parent."""
        directory = Path(path).resolve()
        while not directory.is_dir() and directory != directory.parent:
            directory = directory.parent
        return cls(directory, **kwargs)

    def _run(self, *args: str) -> str:
        cmd = ["git", *args]
        try:
            result = subprocess.run(
                cmd, capture_output=True, cwd=str(self.cwd),
                check=True, timeout=self.timeout,
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as exc:
            raise VcsError(f"{' '.join(cmd)} failed: {exc}", cause=exc) from exc
        return result.stdout.decode("utf-8", errors="replace").strip()

    def _lines(self, *args: str) -> list[str]:
        return [line.strip() for line in self._run(*args).splitlines() if line.strip()]

    def current_commit_hash(self) -> str:
        return self._run("rev-parse", "HEAD")

    def current_branch(self) -> str:
        return self._run("rev-parse", "--abbrev-ref", "HEAD")

    def author_name(self) -> str:
        return self._run("config", "user.name")

    def author_email(self) -> str:
        return self._run("config", "user.email")

    def repo_root(self) -> Path:
        return Path(self._run("rev-parse", "--show-toplevel"))

    def staged_files(self) -> list[str]:
        return self._lines("diff", "--cached", "--name-only")

    def unstaged_files(self) -> list[str]:
        return self._lines("diff", "--name-only")


@dataclass
class StaticVcs:
    """``Vcs`` with fixed answers."""

    commit_hash: str = UNKNOWN
    branch: str = UNKNOWN
    author: str = UNKNOWN
    email: str = UNKNOWN
    root: Path = field(default_factory=Path.cwd)
    staged: list[str] = field(default_factory=list)
    unstaged: list[str] = field(default_factory=list)

    def current_commit_hash(self) -> str:
        return self.commit_hash

    def current_branch(self) -> str:
        return self.branch

    def author_name(self) -> str:
        return self.author

    def author_email(self) -> str:
        return self.email

    def repo_root(self) -> Path:
        return self.root

    def staged_files(self) -> list[str]:
        return list(self.staged)

    def unstaged_files(self) -> list[str]:
        return list(self.unstaged)


@dataclass(frozen=True)
class VcsInfo:
    commit_hash: str = UNKNOWN
    branch: str = UNKNOWN
    author: str = UNKNOWN
    email: str = UNKNOWN


def describe(vcs: Vcs) -> VcsInfo:
    """Collect envelope facts, substituting ``"unknown"`` for anything git cannot answer."""
    values: dict[str, str] = {}
    for name, getter in (
        ("commit_hash", vcs.current_commit_hash),
        ("branch", vcs.current_branch),
        ("author", vcs.author_name),
        ("email", vcs.author_email),
    ):
        try:
            values[name] = getter() or UNKNOWN
        except VcsError as exc:
            logger.warning("vcs_unavailable", field=name, error=str(exc))
            values[name] = UNKNOWN
    return VcsInfo(**values)


__all__ = ["GitCli", "StaticVcs", "UNKNOWN", "Vcs", "VcsInfo", "describe"]
