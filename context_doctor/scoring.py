"""Flat, per-dimension, and freshness scoring."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from .git import HistoryOracle
from .rules.schema import DIMENSIONS, Dimension, Rule, RuleResult

SEVERITY_PENALTY = {"error": 15, "warning": 5, "info": 2}
GOOD_PRACTICE_BONUS = 5

DIMENSION_WEIGHTS: dict[Dimension, float] = {
    "correctness": 0.40,
    "style": 0.20,
    "compliance": 0.20,
    "freshness": 0.20,
}

# Fallback for rules without an explicit dimension.
CATEGORY_DIMENSIONS: dict[str, Dimension] = {
    "length": "correctness",
    "instructions": "correctness",
    "referenced-docs": "correctness",
    "linter-abuse": "style",
    "progressive-disclosure": "style",
    "generic-advice": "style",
    "auto-generated": "compliance",
    "content-quality": "compliance",
    "cross-file-consistency": "compliance",
    "stack-suggestions": "compliance",
}

UNKNOWN_FRESHNESS_SCORE = 75
UNKNOWN_DAYS = -1

# (max days, score); anything older scores 0.
FRESHNESS_TIERS = ((7, 100), (30, 90), (60, 75), (90, 50), (180, 25), (365, 10))


def calculate_score(results: Iterable[RuleResult]) -> int:
    """100 minus a penalty per detected problem, floored at 0."""
    score = 100
    for r in results:
        if r.rule.is_virtue or not r.matched:
            continue
        score -= SEVERITY_PENALTY.get(r.rule.severity, 0)
    return max(score, 0)


def resolve_dimension(rule: Rule) -> Dimension:
    if rule.dimension:
        return rule.dimension
    return CATEGORY_DIMENSIONS.get(rule.category, "compliance")


@dataclass
class DimensionScore:
    dimension: Dimension
    score: int = 100
    violations: int = 0
    bonuses: int = 0


@dataclass
class DimensionScores:
    scores: dict[Dimension, DimensionScore] = field(default_factory=dict)
    overall: int = 0


def calculate_dimension_scores(results: Iterable[RuleResult], freshness_score: int) -> DimensionScores:
    """Score each dimension from rule results, then take the weighted overall.

    The freshness dimension is set directly from ``freshness_score``.
    """
    scores = {dim: DimensionScore(dimension=dim) for dim in DIMENSIONS}

    for r in results:
        if not r.matched:
            continue
        entry = scores[resolve_dimension(r.rule)]
        if r.rule.is_virtue:
            entry.score += GOOD_PRACTICE_BONUS
            entry.bonuses += 1
        else:
            entry.score -= SEVERITY_PENALTY.get(r.rule.severity, 0)
            entry.violations += 1

    scores["freshness"].score = freshness_score

    for entry in scores.values():
        entry.score = min(max(entry.score, 0), 100)

    total = sum(scores[dim].score * weight for dim, weight in DIMENSION_WEIGHTS.items())
    return DimensionScores(scores=scores, overall=int(total + 0.5))


def score_from_days(days: int) -> int:
    """Map days since the last update to a freshness score."""
    for max_days, score in FRESHNESS_TIERS:
        if days <= max_days:
            return score
    return 0


def _days_since(then: datetime, now: datetime | None) -> int:
    now = now or datetime.now(timezone.utc)
    return int((now - then).total_seconds() / 86400)


def calculate_freshness_score(
    path: Path, *, oracle: HistoryOracle, now: datetime | None = None
) -> tuple[int, int]:
    """Return ``(score, days)``; ``(75, -1)`` when the file has no history."""
    last_commit = oracle.last_commit_time(path)
    if last_commit is None:
        return UNKNOWN_FRESHNESS_SCORE, UNKNOWN_DAYS
    days = _days_since(last_commit, now)
    return score_from_days(days), days


def scope_activity_since_update(
    path: Path, *, oracle: HistoryOracle, now: datetime | None = None
) -> tuple[int, int]:
    """Commits in the file's directory since its last update, and the days since.

    Returns ``(0, -1)`` when the file has no history.
    """
    last_commit = oracle.last_commit_time(path)
    if last_commit is None:
        return 0, UNKNOWN_DAYS
    return oracle.commit_count_since(path.parent, last_commit), _days_since(last_commit, now)
