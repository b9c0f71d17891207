"""Version-control access for the review pipeline.

The pipeline only needs a handful of primitives (list changed paths, check
whether a path is ignored or tracked, diff a single file), so they are
captured by the narrow VersionControl interface. GitVersionControl is the
production implementation and shells out to the ``git`` executable; tests
substitute an in-memory implementation.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

# Modified, added (including intent-to-add " A") or untracked entries from
# `git status --porcelain`. Deletions are never in scope.
_STATUS_LINE_RE = re.compile(r"^(\?\?|[ MAR][ MA]) ")


class VersionControlError(RuntimeError):
    """A version-control command failed."""


class NotARepositoryError(VersionControlError):
    """The working directory is not inside a repository."""


class ToolNotFoundError(VersionControlError):
    """The version-control executable is not installed."""


class VersionControl(ABC):
    @abstractmethod
    def is_repository(self) -> bool:
        """Return True if the working directory is inside a work tree."""

    @abstractmethod
    def top_level(self) -> str:
        """Return the absolute path of the work tree root."""

    @abstractmethod
    def intent_to_add(self) -> None:
        """Make new, non-ignored paths visible to diff without staging their content."""

    @abstractmethod
    def working_tree_changes(self) -> list[str]:
        """Return modified tracked paths and untracked paths, relative to the root."""

    @abstractmethod
    def branch_changes(self, ref: str) -> list[str]:
        """Return paths changed between ``ref`` and HEAD, excluding deletions."""

    @abstractmethod
    def is_ignored(self, path: str) -> bool: ...

    @abstractmethod
    def is_tracked(self, path: str) -> bool: ...

    @abstractmethod
    def diff_working(self, path: str) -> str:
        """Return the unified diff of ``path`` against the index."""

    @abstractmethod
    def diff_branch(self, ref: str, path: str) -> str:
        """Return the unified diff of ``path`` between ``ref`` and HEAD."""


def ensure_git_available() -> None:
    if shutil.which("git") is None:
        raise ToolNotFoundError("Required command 'git' is not installed.")


class GitVersionControl(VersionControl):
    """VersionControl backed by the git command line."""

    def __init__(self, cwd: str | os.PathLike | None = None):
        self.cwd = os.fspath(cwd) if cwd is not None else None

    def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        cmd = ["git", *args]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=self.cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError:
            raise ToolNotFoundError("Required command 'git' is not installed.")
        if check and result.returncode != 0:
            raise VersionControlError(f"`{' '.join(cmd)}` failed: {result.stderr.strip() or result.returncode}")
        return result

    def is_repository(self) -> bool:
        result = self._run("rev-parse", "--is-inside-work-tree", check=False)
        return result.returncode == 0 and result.stdout.strip() == "true"

    def top_level(self) -> str:
        result = self._run("rev-parse", "--show-toplevel", check=False)
        if result.returncode != 0:
            raise NotARepositoryError("Not in a git repository.")
        return result.stdout.strip()

    def intent_to_add(self) -> None:
        self._run("add", "--intent-to-add", "--", ".")

    def working_tree_changes(self) -> list[str]:
        output = self._run("-c", "core.quotePath=false", "status", "--porcelain", "--untracked-files=all").stdout
        paths = []
        for line in output.splitlines():
            if not _STATUS_LINE_RE.match(line):
                continue
            path = line[3:]
            # Renames are reported as "old -> new"; review the new path.
            if " -> " in path:
                path = path.split(" -> ", 1)[1]
            paths.append(_unquote(path))
        return paths

    def branch_changes(self, ref: str) -> list[str]:
        output = self._run(
            "-c", "core.quotePath=false", "diff", "--name-only", "--diff-filter=d", f"{ref}...HEAD"
        ).stdout
        return [_unquote(line) for line in output.splitlines() if line.strip()]

    def is_ignored(self, path: str) -> bool:
        return self._run("check-ignore", "-q", "--", path, check=False).returncode == 0

    def is_tracked(self, path: str) -> bool:
        return self._run("ls-files", "--error-unmatch", "--", path, check=False).returncode == 0

    def diff_working(self, path: str) -> str:
        return self._run("diff", "--", path).stdout

    def diff_branch(self, ref: str, path: str) -> str:
        return self._run("diff", f"{ref}...HEAD", "--", path).stdout


def _unquote(path: str) -> str:
    """Strip the double quotes git puts around paths containing special characters."""
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        return path[1:-1].encode("utf-8").decode("unicode_escape").encode("latin-1").decode("utf-8")
    return path
