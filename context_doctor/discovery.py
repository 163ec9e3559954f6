"""Finding context files and orphaned docs in a directory tree."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Iterable

from .git import GIT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_FILENAME = "CLAUDE.md"

SKIPPED_DIRS = {"node_modules", "vendor"}

# Markdown files that are never context docs.
NON_CONTEXT_DOCS = {
    "README.md",
    "readme.md",
    "CHANGELOG.md",
    "changelog.md",
    "LICENSE.md",
    "license.md",
    "CONTRIBUTING.md",
    "contributing.md",
    "CODE_OF_CONDUCT.md",
    "SECURITY.md",
}


def _git_ls_files(directory: Path, patterns: list[str]) -> list[str] | None:
    """Tracked and untracked-but-not-ignored files, or None outside a git repo."""
    try:
        result = subprocess.run(
            ["git", "ls-files", "--cached", "--others", "--exclude-standard", *patterns],
            cwd=directory,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("git ls-files unavailable in %s: %s", directory, exc)
        return None
    if result.returncode != 0:
        return None
    # Both --cached and --others can list the same path.
    return list(dict.fromkeys(line.strip() for line in result.stdout.splitlines() if line.strip()))


def _walk(directory: Path) -> Iterable[Path]:
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in SKIPPED_DIRS)
        for name in sorted(filenames):
            yield Path(dirpath) / name


def find_context_files(directory: Path, filename: str = DEFAULT_CONTEXT_FILENAME, *, use_git: bool = True) -> list[Path]:
    """All context files under ``directory``, honouring .gitignore when possible."""
    if use_git:
        listed = _git_ls_files(directory, [filename, f"*/{filename}"])
        if listed is not None:
            return [directory / rel for rel in listed]
    return [p for p in _walk(directory) if p.name == filename]


def find_markdown_files(directory: Path, *, use_git: bool = True) -> list[str]:
    """Relative paths (posix style) of every markdown file under ``directory``."""
    if use_git:
        listed = _git_ls_files(directory, ["*.md", "**/*.md"])
        if listed is not None:
            return listed
    return [p.relative_to(directory).as_posix() for p in _walk(directory) if p.name.lower().endswith(".md")]


def find_orphan_docs(
    directory: Path,
    context_files: Iterable[Path],
    referenced: Iterable[str],
    *,
    use_git: bool = True,
) -> list[str]:
    """Markdown files that are neither context files nor referenced by one."""
    known: set[str] = set(referenced)
    for path in context_files:
        try:
            known.add(path.relative_to(directory).as_posix())
        except ValueError:
            known.add(path.as_posix())

    return [
        md
        for md in find_markdown_files(directory, use_git=use_git)
        if md not in known and Path(md).name not in NON_CONTEXT_DOCS
    ]
