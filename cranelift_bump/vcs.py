"""Version-control backends for the embedding repository.

Gecko checkouts come either from Mercurial or from git, so the pipeline only
talks to the small RepositoryBackend interface below:

- `is_repo(path)`: whether the backend's marker directory sits directly
  under `path`. Filesystem check only, no process is spawned.
- `has_diff()`: whether the working tree has uncommitted changes, i.e. the
  backend's diff command printed anything.
- `commit(message)`: commit every tracked modification. A commit with
  nothing to commit is a no-op rather than an error, so a bump can be
  re-run after a partial failure.

`detect_repository()` picks the backend for a directory by probing them in
a configurable order.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Protocol

from .errors import PreconditionError, ProcessError, UsageError
from .shell import capture

# git words an empty commit differently when untracked files are present
GIT_NOOP = ("nothing to commit", "nothing added to commit")
HG_NOOP = ("nothing changed",)


class RepositoryBackend(Protocol):
    kind: ClassVar[str]
    root: Path

    @classmethod
    def is_repo(cls, path: Path) -> bool: ...

    def has_diff(self) -> bool: ...

    def commit(self, message: str) -> None: ...


def _has_diff(executable: str, root: Path) -> bool:
    return bool(capture(executable, "diff", cwd=root).stdout)


def _commit(
    args: Sequence[str], nothing_to_commit: Sequence[str], root: Path
) -> None:
    result = capture(*args, cwd=root)
    if result.returncode == 0:
        return
    stdout = result.stdout.decode(errors="replace").strip()
    stderr = result.stderr.decode(errors="replace").strip()
    if any(sentinel in stdout for sentinel in nothing_to_commit):
        print("  Nothing to commit")
        return
    raise ProcessError(f"{args[0]} commit failed: {stdout} {stderr}")


@dataclass(frozen=True)
class Git:
    kind: ClassVar[str] = "git"
    root: Path

    @classmethod
    def is_repo(cls, path: Path) -> bool:
        return (Path(path) / ".git").is_dir()

    def has_diff(self) -> bool:
        return _has_diff("git", self.root)

    def commit(self, message: str) -> None:
        # -a stages modifications to tracked files, like hg commit does
        _commit(("git", "commit", "-a", "-m", message), GIT_NOOP, self.root)


@dataclass(frozen=True)
class Mercurial:
    kind: ClassVar[str] = "hg"
    root: Path

    @classmethod
    def is_repo(cls, path: Path) -> bool:
        return (Path(path) / ".hg").is_dir()

    def has_diff(self) -> bool:
        return _has_diff("hg", self.root)

    def commit(self, message: str) -> None:
        _commit(("hg", "commit", "-m", message), HG_NOOP, self.root)


BACKENDS: dict[str, type[Git] | type[Mercurial]] = {
    Git.kind: Git,
    Mercurial.kind: Mercurial,
}


def detect_repository(
    path: Path, precedence: Sequence[str] = ("hg", "git")
) -> RepositoryBackend:
    """Return the backend managing ``path``.

    Backends are probed in ``precedence`` order and the first one whose
    marker directory exists wins, which only matters for a directory that
    holds both a ``.hg`` and a ``.git``.

    Raises:
        UsageError: If ``precedence`` names an unknown backend.
        PreconditionError: If no backend recognizes the directory.
    """
    for kind in precedence:
        backend = BACKENDS.get(kind)
        if backend is None:
            raise UsageError(
                f"Unknown version control backend {kind!r}; "
                f"expected one of: {', '.join(BACKENDS)}"
            )
        if backend.is_repo(path):
            return backend(path)

    raise PreconditionError(f"Not a git or Mercurial repository: {path}")
