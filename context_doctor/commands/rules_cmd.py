"""Rules command: list or explain the loaded rule set."""

from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..config import LintConfig
from ..rules.load import load_all_rules
from ..rules.schema import MatchSpec, Rule
from ..scoring import resolve_dimension


def _describe_spec(spec: MatchSpec, indent: int = 0) -> list[str]:
    pad = "  " * indent
    if spec.is_combinator:
        lines = [f"{pad}{spec.action}:"]
        for sub in spec.sub_match:
            lines.extend(_describe_spec(sub, indent + 1))
        return lines

    target = spec.metric or "content"
    if spec.patterns:
        operand = "any of " + ", ".join(repr(p) for p in spec.patterns)
    else:
        operand = repr(spec.value)
    return [f"{pad}{target} {spec.action} {operand}"]


def run_rules_list(directory: Path, config: LintConfig, console: Console | None = None) -> int:
    """Print every rule that applies to context files in ``directory``."""
    console = console or Console()
    rules = load_all_rules(config.rules_dir or directory, include_builtin=not config.no_builtin)

    table = Table(title=f"Rules ({len(rules)})")
    table.add_column("Code", style="cyan", no_wrap=True)
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Dimension")
    table.add_column("Scope")
    table.add_column("Description")

    for rule in rules:
        table.add_row(
            rule.code,
            rule.severity,
            rule.category or "-",
            resolve_dimension(rule),
            "primary" if rule.primary_only else "all",
            rule.description,
        )

    console.print(table)
    return 0


def run_rules_explain(directory: Path, config: LintConfig, code: str, console: Console | None = None) -> int:
    """Print one rule in full. Returns 1 if no rule has that code."""
    console = console or Console()
    rules = load_all_rules(config.rules_dir or directory, include_builtin=not config.no_builtin)
    matches: list[Rule] = [r for r in rules if r.code.lower() == code.strip().lower()]

    if not matches:
        console.print(f"Unknown rule: {code}", style="bold red", markup=False)
        return 1

    for rule in matches:
        console.print(f"{rule.code}: {rule.description}", style="bold", markup=False)
        console.print(f"  Severity:  {rule.severity}")
        console.print(f"  Category:  {rule.category or '-'}", markup=False)
        console.print(f"  Dimension: {resolve_dimension(rule)}")
        console.print(f"  Kind:      {rule.kind.value if rule.kind else '-'}")
        console.print(f"  Scope:     {'primary document only' if rule.primary_only else 'all documents'}")
        console.print(f"  Message:   {rule.error_message}", markup=False)
        if rule.suggestion:
            console.print(f"  Suggestion: {rule.suggestion}", markup=False)
        console.print("  Condition:")
        for line in _describe_spec(rule.match_spec, indent=2):
            console.print(line, markup=False, highlight=False)
        for link in rule.links:
            console.print(f"  See: {link}", markup=False)
        console.print()
    return 0
