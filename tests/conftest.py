"""Shared test fixtures for buildstamp."""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from buildstamp.config import BuildstampConfig
from buildstamp.core.engine import VersionEngine
from buildstamp.core.history import StaticHistory
from buildstamp.core.ledger_store import LocalLedgerStore

FIXED_NOW = datetime(2026, 10, 19, 12, 30, 0, tzinfo=timezone.utc)
OLD_TIMESTAMP = "2026-01-05 09:00:00"


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep BUILDSTAMP_* variables, .env files and upstream pins out of tests."""
    for name in list(os.environ):
        if name.startswith("BUILDSTAMP_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    path = tmp_path / "ledgers"
    path.mkdir()
    return path


@pytest.fixture
def store(store_dir: Path) -> LocalLedgerStore:
    """Provide a fresh LocalLedgerStore in a temp directory."""
    return LocalLedgerStore(store_dir)


@pytest.fixture
def product_line() -> str:
    return "desktop"


@pytest.fixture
def write_ledger(store: LocalLedgerStore, product_line: str) -> Callable[[str, str], None]:
    """Factory fixture: seed a ledger blob, e.g. ``write_ledger("oss-patch.csv", text)``."""

    def _write(name: str, text: str) -> None:
        store.write(f"{product_line}/{name}", text)

    return _write


@pytest.fixture
def read_ledger(store: LocalLedgerStore, product_line: str) -> Callable[[str], str]:
    def _read(name: str) -> str:
        return store.read(f"{product_line}/{name}")

    return _read


@pytest.fixture
def make_engine(store: LocalLedgerStore, product_line: str) -> Callable[..., VersionEngine]:
    """Factory fixture: build a VersionEngine over static history and a fixed clock."""

    def _factory(
        history: list[str] | None = None,
        *,
        head: str | None = None,
        target_store: Any = None,
        **overrides: Any,
    ) -> VersionEngine:
        options: dict[str, Any] = {"product_line": product_line}
        options.update(overrides)
        return VersionEngine(
            BuildstampConfig(**options),
            store=target_store or store,
            history=StaticHistory(history or [], head=head),
            clock=lambda: FIXED_NOW,
        )

    return _factory


# ---------------------------------------------------------------------------
# Git fixtures
# ---------------------------------------------------------------------------


def run_git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        [
            "git",
            "-c", "user.name=Build Bot",
            "-c", "user.email=build@example.com",
            "-c", "commit.gpgsign=false",
            *args,
        ],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def git_repo(tmp_path: Path) -> tuple[Path, list[str]]:
    """A throwaway repository with five commits; returns (path, commits newest-first)."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo = tmp_path / "repo"
    repo.mkdir()
    run_git(repo, "init", "-q")
    commits: list[str] = []
    for n in range(1, 6):
        run_git(repo, "commit", "-q", "--allow-empty", "-m", f"change {n}")
        commits.insert(0, run_git(repo, "rev-parse", "HEAD"))
    return repo, commits


@pytest.fixture
def now() -> datetime:
    """The instant every engine built by ``make_engine`` sees."""
    return FIXED_NOW


@pytest.fixture
def git_cmd() -> Callable[..., str]:
    """Run a git command in a repository and return its stdout."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    return run_git
