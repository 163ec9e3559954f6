import pytest

from context_doctor.document.parser import build_metrics
from context_doctor.rules.actions import evaluate_spec
from context_doctor.rules.schema import MatchSpec


def _bag(content: str = "", **metrics):
    bag = build_metrics("CLAUDE.md", content)
    bag.metrics.update(metrics)
    return bag


def test_and_with_no_children_is_true() -> None:
    assert evaluate_spec(_bag(), MatchSpec(action="and"))


def test_or_with_no_children_is_false() -> None:
    assert not evaluate_spec(_bag(), MatchSpec(action="or"))


def test_unknown_action_never_matches() -> None:
    assert not evaluate_spec(_bag("anything"), MatchSpec(action="fuzzyMatch", value="anything"))


def test_less_than_and_greater_than_on_line_count() -> None:
    bag = _bag("\n".join(["x"] * 10))
    assert evaluate_spec(bag, MatchSpec(action="lessThan", metric="lineCount", value=11))
    assert not evaluate_spec(bag, MatchSpec(action="lessThan", metric="lineCount", value=10))
    assert evaluate_spec(bag, MatchSpec(action="greaterThan", metric="lineCount", value=9))
    assert not evaluate_spec(bag, MatchSpec(action="greaterThan", metric="lineCount", value=10))


def test_numeric_comparison_truncates_floats() -> None:
    bag = _bag(ratio=3.7)
    assert evaluate_spec(bag, MatchSpec(action="greaterThan", metric="ratio", value=2))
    assert not evaluate_spec(bag, MatchSpec(action="greaterThan", metric="ratio", value=3))


@pytest.mark.parametrize("value", ["10", True, None])
def test_numeric_comparison_with_non_numeric_threshold_is_false(value) -> None:
    bag = _bag("\n".join(["x"] * 50))
    assert not evaluate_spec(bag, MatchSpec(action="greaterThan", metric="lineCount", value=value))
    assert not evaluate_spec(bag, MatchSpec(action="lessThan", metric="lineCount", value=value))


def test_numeric_comparison_with_missing_metric_is_false() -> None:
    assert not evaluate_spec(_bag(), MatchSpec(action="lessThan", metric="noSuchMetric", value=5))


def test_equals_requires_same_type() -> None:
    bag = _bag(count=1, flag=True)
    assert evaluate_spec(bag, MatchSpec(action="equals", metric="count", value=1))
    assert not evaluate_spec(bag, MatchSpec(action="equals", metric="count", value=1.0))
    assert not evaluate_spec(bag, MatchSpec(action="equals", metric="flag", value=1))
    assert evaluate_spec(bag, MatchSpec(action="notEquals", metric="flag", value=1))


def test_equals_on_progressive_disclosure_flag() -> None:
    bag = _bag("See docs/guide.md")
    assert evaluate_spec(bag, MatchSpec(action="equals", metric="hasProgressiveDisclosure", value=True))
    assert not evaluate_spec(bag, MatchSpec(action="notEquals", metric="hasProgressiveDisclosure", value=True))


def test_contains_is_case_insensitive() -> None:
    bag = _bag("Run ESLint before every commit")
    assert evaluate_spec(bag, MatchSpec(action="contains", value="eslint"))
    assert evaluate_spec(bag, MatchSpec(action="contains", patterns=("prettier", "ESLINT")))
    assert not evaluate_spec(bag, MatchSpec(action="contains", patterns=("prettier", "biome")))


def test_not_contains() -> None:
    bag = _bag("Run ESLint before every commit")
    assert evaluate_spec(bag, MatchSpec(action="notContains", patterns=("prettier",)))
    assert not evaluate_spec(bag, MatchSpec(action="notContains", value="commit"))


def test_contains_without_operand() -> None:
    bag = _bag("text")
    assert not evaluate_spec(bag, MatchSpec(action="contains"))
    assert evaluate_spec(bag, MatchSpec(action="notContains"))


def test_contains_on_non_string_metric_searches_empty_text() -> None:
    bag = _bag("text", count=42)
    assert not evaluate_spec(bag, MatchSpec(action="contains", metric="count", value="42"))


def test_contains_against_named_string_metric() -> None:
    bag = _bag("text", summary="Generated by a Tool")
    assert evaluate_spec(bag, MatchSpec(action="contains", metric="summary", value="generated"))


def test_regex_match_skips_invalid_patterns() -> None:
    bag = _bag("Use pytest for tests")
    assert evaluate_spec(bag, MatchSpec(action="regexMatch", patterns=("(unclosed", r"py\w+")))
    assert not evaluate_spec(bag, MatchSpec(action="regexMatch", value="(unclosed"))
    assert evaluate_spec(bag, MatchSpec(action="regexNotMatch", value="(unclosed"))


def test_regex_match_is_case_insensitive() -> None:
    bag = _bag("AUTO-GENERATED by tooling")
    assert evaluate_spec(bag, MatchSpec(action="regexMatch", value=r"auto-?generated"))


@pytest.mark.parametrize(
    "spec",
    [
        MatchSpec(action="regexMatch", value=r"^# "),
        MatchSpec(action="regexMatch", value=r"never\s+\w+"),
        MatchSpec(action="regexMatch", patterns=("foo", "bar")),
        MatchSpec(action="regexMatch", value="(broken"),
        MatchSpec(action="regexMatch"),
    ],
)
def test_regex_not_match_is_negation(spec: MatchSpec) -> None:
    bag = _bag("# Title\nNever commit secrets\n")
    negated = MatchSpec(action="regexNotMatch", metric=spec.metric, value=spec.value, patterns=spec.patterns)
    assert evaluate_spec(bag, negated) == (not evaluate_spec(bag, spec))


def test_is_present_falls_back_to_literal_for_invalid_regex() -> None:
    spec = MatchSpec(action="isPresent", patterns=("(TODO",))
    assert evaluate_spec(_bag("fix (TODO later"), spec)
    assert not evaluate_spec(_bag("fix (todo later"), spec)


def test_is_present_value_is_case_sensitive_substring() -> None:
    assert evaluate_spec(_bag("a TODO here"), MatchSpec(action="isPresent", value="TODO"))
    assert not evaluate_spec(_bag("a todo here"), MatchSpec(action="isPresent", value="TODO"))
    assert evaluate_spec(_bag("a todo here"), MatchSpec(action="notPresent", value="TODO"))


def test_is_present_patterns_are_case_insensitive_regex() -> None:
    bag = _bag("Lorem ipsum dolor")
    assert evaluate_spec(bag, MatchSpec(action="isPresent", patterns=(r"lorem\s+ipsum",)))
    assert not evaluate_spec(bag, MatchSpec(action="notPresent", patterns=(r"lorem\s+ipsum",)))


def test_list_contains() -> None:
    bag = _bag(detected_stacks=["go", "Docker"])
    assert evaluate_spec(bag, MatchSpec(action="listContains", metric="detected_stacks", value="docker"))
    assert not evaluate_spec(bag, MatchSpec(action="listContains", metric="detected_stacks", value="rust"))
    assert not evaluate_spec(bag, MatchSpec(action="listContains", metric="lineCount", value="1"))


def test_nested_combinators() -> None:
    bag = _bag("\n".join(["- always test the code"] * 5))
    spec = MatchSpec(
        action="and",
        sub_match=(
            MatchSpec(action="greaterThan", metric="instructionCount", value=3),
            MatchSpec(
                action="or",
                sub_match=(
                    MatchSpec(action="contains", value="missing"),
                    MatchSpec(action="notContains", value="see "),
                ),
            ),
        ),
    )
    assert evaluate_spec(bag, spec)


def test_non_string_literal_value_is_matched_as_text() -> None:
    bag = _bag("Keep functions under 50 lines")
    assert evaluate_spec(bag, MatchSpec(action="contains", value=50))
    assert not evaluate_spec(bag, MatchSpec(action="contains", value=5000))
    assert evaluate_spec(bag, MatchSpec(action="regexMatch", value=50))
    assert not evaluate_spec(bag, MatchSpec(action="regexMatch", value=404))
