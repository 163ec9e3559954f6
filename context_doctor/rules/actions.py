from __future__ import annotations

import re
from typing import Any, Callable

from ..document.metrics import CONTENT, MetricBag
from .schema import MatchSpec


ActionFn = Callable[[MetricBag, MatchSpec], bool]


def _to_int(value: Any) -> int | None:
    # bool is an int subclass but never a count.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return None


def _to_string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _literal(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def _same_value(left: Any, right: Any) -> bool:
    return type(left) is type(right) and left == right


def _search_text(bag: MetricBag, spec: MatchSpec) -> str:
    if not spec.metric or spec.metric == CONTENT:
        return bag.content
    return _to_string(bag.get(spec.metric))


def _compile(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error:
        return None


def action_less_than(bag: MetricBag, spec: MatchSpec) -> bool:
    actual = _to_int(bag.get(spec.metric))
    threshold = _to_int(spec.value)
    if actual is None or threshold is None:
        return False
    return actual < threshold


def action_greater_than(bag: MetricBag, spec: MatchSpec) -> bool:
    actual = _to_int(bag.get(spec.metric))
    threshold = _to_int(spec.value)
    if actual is None or threshold is None:
        return False
    return actual > threshold


def action_equals(bag: MetricBag, spec: MatchSpec) -> bool:
    return _same_value(bag.get(spec.metric), spec.value)


def action_not_equals(bag: MetricBag, spec: MatchSpec) -> bool:
    return not _same_value(bag.get(spec.metric), spec.value)


def _contains_any(bag: MetricBag, spec: MatchSpec) -> bool | None:
    """Substring test shared by contains/notContains; None when there is nothing to test."""
    haystack = _search_text(bag, spec).lower()
    if spec.patterns:
        return any(pattern.lower() in haystack for pattern in spec.patterns)
    if spec.value is not None:
        return _literal(spec.value).lower() in haystack
    return None


def action_contains(bag: MetricBag, spec: MatchSpec) -> bool:
    return _contains_any(bag, spec) is True


def action_not_contains(bag: MetricBag, spec: MatchSpec) -> bool:
    return _contains_any(bag, spec) is not True


def action_regex_match(bag: MetricBag, spec: MatchSpec) -> bool:
    text = _search_text(bag, spec)

    if spec.patterns:
        for pattern in spec.patterns:
            compiled = _compile(pattern)
            if compiled is not None and compiled.search(text):
                return True
        return False

    if spec.value is not None:
        compiled = _compile(_literal(spec.value))
        return compiled is not None and compiled.search(text) is not None

    return False


def action_regex_not_match(bag: MetricBag, spec: MatchSpec) -> bool:
    return not action_regex_match(bag, spec)


def action_is_present(bag: MetricBag, spec: MatchSpec) -> bool:
    content = bag.content

    if spec.patterns:
        for pattern in spec.patterns:
            compiled = _compile(pattern)
            if compiled is None:
                if pattern in content:
                    return True
                continue
            if compiled.search(content):
                return True
        return False

    if spec.value is not None:
        return _literal(spec.value) in content

    return False


def action_not_present(bag: MetricBag, spec: MatchSpec) -> bool:
    return not action_is_present(bag, spec)


def action_list_contains(bag: MetricBag, spec: MatchSpec) -> bool:
    items = bag.get(spec.metric)
    if not isinstance(items, list):
        return False
    target = _to_string(spec.value).lower()
    if not target:
        return False
    return any(str(item).lower() == target for item in items)


def action_and(bag: MetricBag, spec: MatchSpec) -> bool:
    return all(evaluate_spec(bag, sub) for sub in spec.sub_match)


def action_or(bag: MetricBag, spec: MatchSpec) -> bool:
    return any(evaluate_spec(bag, sub) for sub in spec.sub_match)


ACTIONS: dict[str, ActionFn] = {
    "lessThan": action_less_than,
    "greaterThan": action_greater_than,
    "equals": action_equals,
    "notEquals": action_not_equals,
    "contains": action_contains,
    "notContains": action_not_contains,
    "regexMatch": action_regex_match,
    "regexNotMatch": action_regex_not_match,
    "isPresent": action_is_present,
    "notPresent": action_not_present,
    "listContains": action_list_contains,
    "and": action_and,
    "or": action_or,
}


def evaluate_spec(bag: MetricBag, spec: MatchSpec) -> bool:
    """Evaluate a match spec against a metric bag. Unknown actions never match."""
    fn = ACTIONS.get(spec.action)
    if fn is None:
        return False
    return fn(bag, spec)
