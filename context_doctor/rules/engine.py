from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..document.metrics import MetricBag
from .actions import evaluate_spec
from .schema import Rule, RuleResult


def evaluate_rule(bag: MetricBag, rule: Rule) -> RuleResult:
    """Evaluate one rule.

    ``matched`` means "problem found" for problem rules and "good pattern
    found" for virtue rules. Either way the rule's message is attached only
    on a match.
    """
    matched = evaluate_spec(bag, rule.match_spec)
    return RuleResult(rule=rule, matched=matched, message=rule.error_message if matched else None)


class RuleEngine:
    """Applies a loaded rule set to metric bags."""

    def __init__(self, rules: Iterable[Rule]):
        self.rules = list(rules)

    def evaluate_all(self, bag: MetricBag) -> list[RuleResult]:
        """Run every rule against a primary document."""
        return [evaluate_rule(bag, rule) for rule in self.rules]

    def evaluate_secondary(self, bag: MetricBag) -> list[RuleResult]:
        """Run the rules that apply to referenced sub-documents."""
        return [evaluate_rule(bag, rule) for rule in self.rules if not rule.primary_only]


@dataclass(frozen=True)
class FilterOptions:
    failures_only: bool = False
    severities: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    hide_good_practice: bool = False


def filter_results(results: Iterable[RuleResult], opts: FilterOptions) -> list[RuleResult]:
    filtered: list[RuleResult] = []
    for r in results:
        if opts.failures_only and not r.matched:
            continue
        if opts.severities and r.rule.severity not in opts.severities:
            continue
        if opts.categories and r.rule.category not in opts.categories:
            continue
        if opts.hide_good_practice and r.rule.is_virtue:
            continue
        filtered.append(r)
    return filtered
