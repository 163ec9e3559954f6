from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

from .schema import DIMENSIONS, MatchSpec, Rule, RuleSet

logger = logging.getLogger(__name__)

RULE_FILE_SUFFIXES = (".yaml", ".yml", ".json")
CUSTOM_RULES_DIRNAME = ".context-doctor"


class RuleLoadError(ValueError):
    """Raised when a rule file cannot be read or parsed."""


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _coerce_str_list(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list):
        return tuple(str(v) for v in value if v is not None)
    return ()


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def parse_match_spec(raw: Any) -> MatchSpec:
    data = _coerce_dict(raw)

    metric = data.get("metric")
    metric_str = str(metric).strip() if metric is not None else None

    sub_raw = data.get("subMatch")
    sub_match = tuple(parse_match_spec(s) for s in sub_raw) if isinstance(sub_raw, list) else ()

    return MatchSpec(
        action=str(data.get("action", "")).strip(),
        metric=metric_str or None,
        value=data.get("value"),
        patterns=_coerce_str_list(data.get("patterns")),
        sub_match=sub_match,
    )


def parse_rule(raw: dict[str, Any]) -> Rule | None:
    code = str(raw.get("code", "")).strip()
    if not code:
        return None

    severity = str(raw.get("severity", "warning")).strip().lower() or "warning"
    category = str(raw.get("category") or "").strip()

    dimension = raw.get("dimension")
    dimension_str = str(dimension).strip().lower() if isinstance(dimension, str) else None
    if dimension_str not in DIMENSIONS:
        dimension_str = None

    return Rule(
        code=code,
        description=str(raw.get("description") or ""),
        severity=severity,  # type: ignore[arg-type]
        category=category,
        dimension=dimension_str,  # type: ignore[arg-type]
        match_spec=parse_match_spec(raw.get("matchSpec")),
        error_message=str(raw.get("errorMessage") or ""),
        suggestion=_optional_str(raw.get("suggestion")),
        links=_coerce_str_list(raw.get("links")),
        primary_only=raw.get("primaryOnly") is True,
    )


def parse_ruleset(text: str, *, source: Path | None = None) -> RuleSet:
    """Parse a ``{version, rules}`` document. JSON parses as YAML."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise RuleLoadError(f"failed to parse rules{f' from {source}' if source else ''}: {exc}") from exc

    data = _coerce_dict(data)
    version = data.get("version")

    rules: list[Rule] = []
    for raw in data.get("rules") or []:
        if not isinstance(raw, dict):
            continue
        rule = parse_rule(raw)
        if rule is not None:
            rules.append(rule)

    return RuleSet(
        rules=rules,
        version=str(version) if version is not None else None,
        source=source,
    )


def load_rules_file(path: Path) -> RuleSet:
    """Load a rule set from a YAML or JSON file."""
    if path.suffix.lower() not in RULE_FILE_SUFFIXES:
        raise RuleLoadError(f"unsupported rules file format: {path.suffix or path.name}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuleLoadError(f"failed to read rules file {path}: {exc}") from exc
    return parse_ruleset(text, source=path)


def load_builtin_rules() -> RuleSet:
    """Load the rule set shipped with the package."""
    text = resources.files("context_doctor.rules").joinpath("builtin.yaml").read_text(encoding="utf-8")
    return parse_ruleset(text)


def _is_custom_rules_file(name: str) -> bool:
    return name.endswith(("_rules.yaml", "_rules.yml")) or name in ("rules.yaml", "rules.yml")


def discover_custom_rules(directory: Path) -> list[Rule]:
    """Find and load custom rule files in ``directory/.context-doctor`` and ``directory``.

    A file that fails to load is reported and skipped.
    """
    rules: list[Rule] = []
    for check_dir in (directory / CUSTOM_RULES_DIRNAME, directory):
        if not check_dir.is_dir():
            continue
        try:
            entries = sorted(check_dir.iterdir())
        except OSError as exc:
            logger.debug("cannot list %s: %s", check_dir, exc)
            continue

        for entry in entries:
            if not entry.is_file() or not _is_custom_rules_file(entry.name):
                continue
            try:
                ruleset = load_rules_file(entry)
            except RuleLoadError as exc:
                logger.warning("failed to load %s: %s", entry, exc)
                continue
            logger.debug("loaded %d custom rule(s) from %s", len(ruleset.rules), entry)
            rules.extend(ruleset.rules)
    return rules


def load_all_rules(custom_dir: Path | None, *, include_builtin: bool = True) -> list[Rule]:
    """Built-in rules followed by any custom rules discovered under ``custom_dir``."""
    rules: list[Rule] = []
    if include_builtin:
        rules.extend(load_builtin_rules().rules)
    if custom_dir is not None:
        rules.extend(discover_custom_rules(custom_dir))
    return rules
