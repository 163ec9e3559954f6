"""Analysis pipeline for a single context file and for a whole repository."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from .discovery import DEFAULT_CONTEXT_FILENAME, find_context_files, find_orphan_docs
from .document.crossfile import AggregateMetrics, compute_aggregate_metrics
from .document.metrics import MetricBag
from .document.parser import build_metrics
from .document.refs import (
    ReferenceNode,
    enrich_with_reference_metrics,
    flatten_references,
    resolve_references,
)
from .git import GitOracle, HistoryOracle
from .rules.engine import RuleEngine
from .rules.schema import Rule, RuleResult
from .scoring import (
    DimensionScores,
    calculate_dimension_scores,
    calculate_freshness_score,
    calculate_score,
    scope_activity_since_update,
)
from .stacks import detect_stacks

logger = logging.getLogger(__name__)

# Flat penalty on the repository average when several context files compete.
MULTIPLE_ROOT_PENALTY = 30

TOTAL_INSTRUCTION_COUNT = "total_instruction_count"
DUPLICATE_INSTRUCTION_COUNT = "duplicate_instruction_count"
DETECTED_STACKS = "detected_stacks"
SCOPE_COMMITS_SINCE_UPDATE = "scope_commits_since_update"
DAYS_SINCE_UPDATE = "days_since_update"


@dataclass
class FileAnalysis:
    path: Path
    metrics: MetricBag
    results: list[RuleResult]
    references: list[ReferenceNode]
    reference_results: dict[str, list[RuleResult]]  # keyed by resolved path
    aggregate: AggregateMetrics
    score: int
    dimensions: DimensionScores
    freshness_score: int
    freshness_days: int

    @property
    def problems(self) -> list[RuleResult]:
        return [r for r in self.results if r.matched and not r.rule.is_virtue]

    @property
    def errors(self) -> int:
        return sum(1 for r in self.problems if r.rule.severity == "error")

    @property
    def warnings(self) -> int:
        return sum(1 for r in self.problems if r.rule.severity == "warning")


def analyze_file(
    path: Path,
    rules: list[Rule],
    *,
    stale_days: int,
    oracle: HistoryOracle | None = None,
    now: datetime | None = None,
) -> FileAnalysis:
    """Run the full pipeline on one context file.

    Raises OSError only if the context file itself cannot be read.
    """
    oracle = oracle or GitOracle()
    now = now or datetime.now(timezone.utc)

    content = path.read_text(encoding="utf-8", errors="replace")
    bag = build_metrics(str(path), content)
    base_dir = path.parent

    references = resolve_references(bag, base_dir, stale_days, oracle=oracle, now=now)
    flat = flatten_references(references)
    enrich_with_reference_metrics(bag, flat)

    aggregate = compute_aggregate_metrics(bag, references)
    bag.metrics[TOTAL_INSTRUCTION_COUNT] = aggregate.total_instruction_count
    bag.metrics[DUPLICATE_INSTRUCTION_COUNT] = len(aggregate.duplicates)

    stack_root = oracle.repo_root(base_dir) or base_dir
    bag.metrics[DETECTED_STACKS] = detect_stacks(stack_root)

    scope_commits, days_since_update = scope_activity_since_update(path, oracle=oracle, now=now)
    bag.metrics[SCOPE_COMMITS_SINCE_UPDATE] = scope_commits
    bag.metrics[DAYS_SINCE_UPDATE] = days_since_update

    engine = RuleEngine(rules)
    results = engine.evaluate_all(bag)

    reference_results: dict[str, list[RuleResult]] = {}
    for node in flat:
        if node.exists and node.metrics is not None:
            reference_results[str(node.resolved_path)] = engine.evaluate_secondary(node.metrics)

    freshness_score, freshness_days = calculate_freshness_score(path, oracle=oracle, now=now)

    return FileAnalysis(
        path=path,
        metrics=bag,
        results=results,
        references=references,
        reference_results=reference_results,
        aggregate=aggregate,
        score=calculate_score(results),
        dimensions=calculate_dimension_scores(results, freshness_score),
        freshness_score=freshness_score,
        freshness_days=freshness_days,
    )


@dataclass
class RepoSummary:
    root: Path
    analyses: list[FileAnalysis] = field(default_factory=list)
    orphans: list[str] = field(default_factory=list)

    @property
    def has_multiple_roots(self) -> bool:
        return len(self.analyses) > 1

    @property
    def total_lines(self) -> int:
        return sum(a.aggregate.total_line_count for a in self.analyses)

    @property
    def total_instructions(self) -> int:
        return sum(a.aggregate.total_instruction_count for a in self.analyses)

    @property
    def total_errors(self) -> int:
        # Multiple context files count as one extra error.
        return sum(a.errors for a in self.analyses) + (1 if self.has_multiple_roots else 0)

    @property
    def total_warnings(self) -> int:
        return sum(a.warnings for a in self.analyses)

    @property
    def average_score(self) -> int:
        if not self.analyses:
            return 0
        average = sum(a.score for a in self.analyses) // len(self.analyses)
        if self.has_multiple_roots:
            average = max(0, average - MULTIPLE_ROOT_PENALTY)
        return average


def _referenced_paths(root: Path, analyses: list[FileAnalysis]) -> set[str]:
    referenced: set[str] = set()
    for analysis in analyses:
        for node in flatten_references(analysis.references):
            referenced.add(node.path)
            try:
                referenced.add(node.resolved_path.resolve().relative_to(root.resolve()).as_posix())
            except (OSError, ValueError):
                continue
    return referenced


def analyze_repository(
    root: Path,
    rules_for: Callable[[Path], list[Rule]],
    *,
    stale_days: int,
    context_filename: str = DEFAULT_CONTEXT_FILENAME,
    use_git: bool = True,
    oracle: HistoryOracle | None = None,
    now: datetime | None = None,
) -> RepoSummary:
    """Analyze every context file under ``root``.

    ``rules_for`` returns the rule set for a given context file, so custom
    rules next to each file are honoured. Files that cannot be read are
    logged and skipped.
    """
    summary = RepoSummary(root=root)
    files = find_context_files(root, context_filename, use_git=use_git)

    for path in files:
        try:
            analysis = analyze_file(path, rules_for(path), stale_days=stale_days, oracle=oracle, now=now)
        except OSError as exc:
            logger.warning("error analyzing %s: %s", path, exc)
            continue
        summary.analyses.append(analysis)

    summary.orphans = find_orphan_docs(
        root,
        [a.path for a in summary.analyses],
        _referenced_paths(root, summary.analyses),
        use_git=use_git,
    )
    return summary
