"""Reference resolution: follow progressive-disclosure links between docs."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from ..git import GitOracle, HistoryOracle
from .metrics import MetricBag
from .parser import build_metrics

logger = logging.getLogger(__name__)

BROKEN_REFERENCES_COUNT = "broken_references_count"
STALE_REFERENCES_COUNT = "stale_references_count"
REFERENCED_FILES = "referenced_files"


@dataclass
class ReferenceNode:
    """A document referenced (directly or transitively) by a context file."""

    path: str  # as written in the referencing document
    resolved_path: Path
    referenced_by: str
    depth: int  # 0 = referenced directly by the primary document
    exists: bool = False
    last_modified: datetime | None = None
    days_since_update: int = 0
    is_stale: bool = False
    metrics: MetricBag | None = None
    children: list["ReferenceNode"] = field(default_factory=list)


@dataclass
class _Traversal:
    """State shared by every recursive call of one resolution."""

    repo_root: Path | None
    stale_days: int
    oracle: HistoryOracle
    now: datetime
    seen: set[str] = field(default_factory=set)


def _join(base_dir: Path, ref: str) -> Path:
    return Path(os.path.normpath(base_dir / ref))


def _exists(path: Path) -> bool:
    # Path.exists() still raises for errors such as ENAMETOOLONG.
    try:
        return path.exists()
    except OSError:
        return False


def _locate(ref: str, base_dir: Path, repo_root: Path | None) -> Path:
    resolved = _join(base_dir, ref)
    if repo_root is not None and not _exists(resolved):
        from_root = _join(repo_root, ref)
        if _exists(from_root):
            return from_root
    return resolved


def _days_between(earlier: datetime, later: datetime) -> int:
    return int((later - earlier).total_seconds() / 86400)


def _resolve(bag: MetricBag, base_dir: Path, referenced_by: str, depth: int, state: _Traversal) -> list[ReferenceNode]:
    nodes: list[ReferenceNode] = []

    for raw in bag.references:
        ref = raw.strip()
        if not ref:
            continue

        resolved = _locate(ref, base_dir, state.repo_root)
        key = os.path.abspath(resolved)
        if key in state.seen:
            logger.debug("skipping already-visited reference %s (from %s)", ref, referenced_by)
            continue
        state.seen.add(key)

        node = ReferenceNode(path=ref, resolved_path=resolved, referenced_by=referenced_by, depth=depth)
        nodes.append(node)

        try:
            stat = resolved.stat()
        except OSError:
            continue

        last_modified = state.oracle.last_commit_time(resolved)
        if last_modified is None:
            last_modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)

        try:
            content = resolved.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.debug("cannot read referenced doc %s: %s", resolved, exc)
            continue

        node.exists = True
        node.last_modified = last_modified
        node.days_since_update = _days_between(last_modified, state.now)
        node.is_stale = state.stale_days > 0 and node.days_since_update > state.stale_days
        node.metrics = build_metrics(str(resolved), content)
        node.children = _resolve(node.metrics, resolved.parent, ref, depth + 1, state)

    return nodes


def resolve_references(
    bag: MetricBag,
    base_dir: Path | str,
    stale_days: int,
    *,
    oracle: HistoryOracle | None = None,
    now: datetime | None = None,
) -> list[ReferenceNode]:
    """Resolve the doc references of ``bag`` recursively.

    Each absolute path is visited at most once per call, which also cuts
    reference cycles. Missing or unreadable files become childless nodes
    with ``exists=False``.
    """
    oracle = oracle or GitOracle()
    base_dir = Path(base_dir)
    state = _Traversal(
        repo_root=oracle.repo_root(base_dir),
        stale_days=stale_days,
        oracle=oracle,
        now=now or datetime.now(timezone.utc),
    )
    return _resolve(bag, base_dir, bag.path, 0, state)


def flatten_references(nodes: list[ReferenceNode]) -> list[ReferenceNode]:
    """Depth-first pre-order list of every node in the forest."""
    flat: list[ReferenceNode] = []
    for node in nodes:
        flat.append(node)
        flat.extend(flatten_references(node.children))
    return flat


def enrich_with_reference_metrics(bag: MetricBag, flat: list[ReferenceNode]) -> None:
    bag.metrics[BROKEN_REFERENCES_COUNT] = sum(1 for n in flat if not n.exists)
    bag.metrics[STALE_REFERENCES_COUNT] = sum(1 for n in flat if n.exists and n.is_stale)
    bag.metrics[REFERENCED_FILES] = [n.path for n in flat]
