from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Literal


Severity = Literal["error", "warning", "info"]
Dimension = Literal["correctness", "style", "compliance", "freshness"]

DIMENSIONS: tuple[Dimension, ...] = ("correctness", "style", "compliance", "freshness")

GOOD_PRACTICE = "good-practice"


class RuleKind(Enum):
    """Whether a match flags a problem or rewards a desirable pattern."""

    PROBLEM = "problem"
    VIRTUE = "virtue"

    @classmethod
    def for_category(cls, category: str | None) -> "RuleKind":
        return cls.VIRTUE if category == GOOD_PRACTICE else cls.PROBLEM


@dataclass(frozen=True)
class MatchSpec:
    action: str
    metric: str | None = None
    value: Any = None
    patterns: tuple[str, ...] = ()
    sub_match: tuple["MatchSpec", ...] = ()

    @property
    def is_combinator(self) -> bool:
        return self.action in ("and", "or")


@dataclass(frozen=True)
class Rule:
    code: str
    match_spec: MatchSpec
    description: str = ""
    severity: Severity = "warning"
    category: str = ""
    dimension: Dimension | None = None
    error_message: str = ""
    suggestion: str | None = None
    links: tuple[str, ...] = ()
    primary_only: bool = False
    kind: RuleKind | None = None

    def __post_init__(self) -> None:
        if self.kind is None:
            object.__setattr__(self, "kind", RuleKind.for_category(self.category))

    @property
    def is_virtue(self) -> bool:
        return self.kind is RuleKind.VIRTUE


@dataclass(frozen=True)
class RuleResult:
    rule: Rule
    matched: bool
    message: str | None = None


@dataclass(frozen=True)
class RuleSet:
    rules: list[Rule] = field(default_factory=list)
    version: str | None = None
    source: Path | None = None
