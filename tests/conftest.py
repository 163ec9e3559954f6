"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from context_doctor.git import NoHistoryOracle

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeOracle:
    """History oracle answering from a fixed table of commit times."""

    def __init__(self, commits: dict[str, datetime] | None = None, root: Path | None = None, scope_commits: int = 0):
        self.commits = commits or {}
        self.root = root
        self.scope_commits = scope_commits

    def last_commit_time(self, path: Path) -> datetime | None:
        return self.commits.get(Path(path).name)

    def commit_count_since(self, directory: Path, since: datetime) -> int:
        return self.scope_commits

    def repo_root(self, directory: Path) -> Path | None:
        return self.root


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def set_age(path: Path, days: float, now: datetime = NOW) -> None:
    """Backdate a file's mtime to ``days`` before ``now``."""
    ts = (now - timedelta(days=days)).timestamp()
    os.utime(path, (ts, ts))


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def no_history() -> NoHistoryOracle:
    return NoHistoryOracle()
