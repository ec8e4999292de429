"""Commit history providers.

History is always most-recent-first: index 0 is HEAD.  The primary variant
looks back over the local repository's log; the derived variant sees exactly
one commit, the upstream snapshot it was built from.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from buildstamp.core.errors import HistoryUnavailable
from buildstamp.models.version import Variant

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK = 100


@runtime_checkable
class HistoryProvider(Protocol):
    """Anything that can list recent commits and name the current one."""

    def history(self, variant: Variant, upstream_ref: str | None = None) -> tuple[str, ...]: ...

    def head_commit(self) -> str: ...


def read_upstream_ref(path: Path) -> str:
    """Read the pinned upstream commit from a pin file (first non-blank line)."""
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise HistoryUnavailable(f"Cannot read upstream pin {path}: {exc}") from exc
    for line in content.splitlines():
        if line.strip():
            return line.strip()
    raise HistoryUnavailable(f"Upstream pin {path} is empty")


def _pinned(upstream_ref: str | None) -> tuple[str, ...]:
    if not upstream_ref or not upstream_ref.strip():
        raise HistoryUnavailable("Derived builds need a pinned upstream commit")
    return (upstream_ref.strip(),)


class GitHistory:
    """History read from a local git checkout.

    Parameters
    ----------
    repo_path:
        Working tree to run ``git log`` in.
    lookback:
        Maximum number of commits returned for the primary variant.
    upstream_file:
        Pin file consulted for derived builds when no explicit ref is given.
        A relative path is taken relative to ``repo_path``.
    """

    def __init__(
        self,
        repo_path: Path | str = ".",
        *,
        lookback: int = DEFAULT_LOOKBACK,
        upstream_file: Path | None = None,
        git_binary: str = "git",
    ) -> None:
        self._repo = Path(repo_path)
        self._lookback = lookback
        self._upstream_file = self._repo / upstream_file if upstream_file is not None else None
        self._git = git_binary

    def _log(self, count: int) -> tuple[str, ...]:
        if shutil.which(self._git) is None:
            raise HistoryUnavailable(f"{self._git!r} not found on PATH")
        try:
            result = subprocess.run(
                [self._git, "log", "--pretty=format:%H", "-n", str(count)],
                cwd=self._repo,
                capture_output=True,
                text=True,
                timeout=60,
                check=True,
            )
        except subprocess.CalledProcessError as exc:
            raise HistoryUnavailable(
                f"git log failed in {self._repo}: {exc.stderr.strip() or exc}"
            ) from exc
        except (subprocess.SubprocessError, OSError) as exc:
            raise HistoryUnavailable(f"git log failed in {self._repo}: {exc}") from exc

        commits = tuple(line.strip() for line in result.stdout.splitlines() if line.strip())
        if not commits:
            raise HistoryUnavailable(f"No commits found in {self._repo}")
        return commits

    def history(self, variant: Variant, upstream_ref: str | None = None) -> tuple[str, ...]:
        if variant == Variant.DERIVED:
            if upstream_ref is None and self._upstream_file is not None:
                upstream_ref = read_upstream_ref(self._upstream_file)
            return _pinned(upstream_ref)
        commits = self._log(self._lookback)
        logger.debug("Read %d commits from %s (HEAD %s)", len(commits), self._repo, commits[0])
        return commits

    def head_commit(self) -> str:
        return self._log(1)[0]


class StaticHistory:
    """History supplied up front, e.g. by a caller that already ran git."""

    def __init__(self, commits: Sequence[str], *, head: str | None = None) -> None:
        self._commits = tuple(commits)
        self._head = head

    def history(self, variant: Variant, upstream_ref: str | None = None) -> tuple[str, ...]:
        if variant == Variant.DERIVED:
            return _pinned(upstream_ref)
        if not self._commits:
            raise HistoryUnavailable("No commits supplied")
        return self._commits

    def head_commit(self) -> str:
        if self._head:
            return self._head
        if not self._commits:
            raise HistoryUnavailable("No commits supplied")
        return self._commits[0]
