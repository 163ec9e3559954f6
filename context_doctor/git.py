"""Version-control metadata used for freshness and reference staleness.

Every query tolerates git being missing, the path being outside a
repository, or the file having no history, and answers "no history" in
those cases instead of raising.
"""

from __future__ import annotations

import logging
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 10


class HistoryOracle(Protocol):
    def last_commit_time(self, path: Path) -> datetime | None: ...

    def commit_count_since(self, directory: Path, since: datetime) -> int: ...

    def repo_root(self, directory: Path) -> Path | None: ...


def _run_git(args: list[str], cwd: Path) -> str | None:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("git %s failed in %s: %s", " ".join(args), cwd, exc)
        return None
    if result.returncode != 0:
        logger.debug("git %s exited %d in %s", " ".join(args), result.returncode, cwd)
        return None
    return result.stdout.strip()


class GitOracle:
    """Answers history queries by shelling out to git."""

    def last_commit_time(self, path: Path) -> datetime | None:
        output = _run_git(["log", "-1", "--format=%cI", "--", path.name], cwd=path.parent)
        if not output:
            return None
        try:
            return datetime.fromisoformat(output)
        except ValueError:
            logger.debug("unparsable git date %r for %s", output, path)
            return None

    def commit_count_since(self, directory: Path, since: datetime) -> int:
        output = _run_git(["log", f"--since={since.isoformat()}", "--oneline", "--", "."], cwd=directory)
        if not output:
            return 0
        return len(output.splitlines())

    def repo_root(self, directory: Path) -> Path | None:
        output = _run_git(["rev-parse", "--show-toplevel"], cwd=directory)
        return Path(output) if output else None


class NoHistoryOracle:
    """Oracle for directories without version control (or with git disabled)."""

    def last_commit_time(self, path: Path) -> datetime | None:
        return None

    def commit_count_since(self, directory: Path, since: datetime) -> int:
        return 0

    def repo_root(self, directory: Path) -> Path | None:
        return None
