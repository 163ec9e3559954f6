"""Check command implementation."""

import json
from collections import defaultdict
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..analysis import FileAnalysis, RepoSummary, analyze_file, analyze_repository
from ..config import LintConfig
from ..document.metrics import HAS_PROGRESSIVE_DISCLOSURE
from ..document.refs import ReferenceNode
from ..git import GitOracle, HistoryOracle, NoHistoryOracle
from ..rules.engine import FilterOptions, filter_results
from ..rules.load import load_all_rules, load_rules_file
from ..rules.schema import DIMENSIONS, Rule, RuleResult

RULE = "-" * 40
BANNER = "=" * 60

CATEGORY_ORDER = [
    "length",
    "instructions",
    "linter-abuse",
    "auto-generated",
    "progressive-disclosure",
    "referenced-docs",
    "cross-file-consistency",
]

CATEGORY_TITLES = {
    "length": "LENGTH ISSUES",
    "instructions": "INSTRUCTION COUNT ISSUES",
    "linter-abuse": "LINTER ABUSE DETECTED",
    "auto-generated": "AUTO-GENERATED CONTENT",
    "progressive-disclosure": "PROGRESSIVE DISCLOSURE",
    "referenced-docs": "REFERENCED DOCS",
    "cross-file-consistency": "CROSS-FILE CONSISTENCY",
}

# Categories that only make sense for the primary document.
PRIMARY_CATEGORIES = {"referenced-docs", "cross-file-consistency"}

# Instructions the assistant already carries before reading the file.
ASSISTANT_BASELINE_INSTRUCTIONS = 50

SEVERITY_ICONS = {"error": "✗", "warning": "⚠", "info": "ℹ"}
SEVERITY_STYLES = {"error": "bold red", "warning": "yellow", "info": "dim"}


def build_rules_loader(config: LintConfig, extra_rules_file: Path | None = None):
    """Return a function mapping a context file to the rules that apply to it.

    Raises RuleLoadError if the built-in set or ``extra_rules_file`` is broken.
    """
    extra: list[Rule] = load_rules_file(extra_rules_file).rules if extra_rules_file else []
    cache: dict[Path, list[Rule]] = {}

    def rules_for(path: Path) -> list[Rule]:
        rules_dir = config.rules_dir or path.parent
        if rules_dir not in cache:
            cache[rules_dir] = load_all_rules(rules_dir, include_builtin=not config.no_builtin) + extra
        return cache[rules_dir]

    return rules_for


def run_check(
    target: Path,
    config: LintConfig,
    *,
    show_all: bool = False,
    show_score: bool = True,
    output_json: bool = False,
    extra_rules_file: Path | None = None,
    oracle: HistoryOracle | None = None,
    now: datetime | None = None,
    console: Console | None = None,
) -> int:
    """Analyze a context file or every context file in a directory.

    Returns:
        Exit code (0 = report produced, 1 = nothing to analyze)
    """
    console = console or Console()
    if oracle is None:
        oracle = GitOracle() if config.use_git else NoHistoryOracle()
    rules_for = build_rules_loader(config, extra_rules_file)
    opts = FilterOptions(
        failures_only=not show_all,
        hide_good_practice=not show_all,
        severities=tuple(config.severities),
        categories=tuple(config.categories),
    )

    if target.is_dir():
        summary = analyze_repository(
            target,
            rules_for,
            stale_days=config.stale_threshold,
            context_filename=config.context_filename,
            use_git=config.use_git,
            oracle=oracle,
            now=now,
        )
        if not summary.analyses:
            console.print(f"No {config.context_filename} files found in {target}", style="bold red")
            return 1
        if output_json:
            print(json.dumps(_summary_to_dict(summary, opts), indent=2, default=str))
        else:
            print_repo_report(console, summary)
        return 0

    analysis = analyze_file(target, rules_for(target), stale_days=config.stale_threshold, oracle=oracle, now=now)
    if output_json:
        print(json.dumps(_analysis_to_dict(analysis, opts), indent=2, default=str))
    else:
        print_report(console, analysis, opts, show_all=show_all, show_score=show_score)
    return 0


def _header(console: Console, title: str) -> None:
    console.print(BANNER)
    console.print(f"  {title}", style="bold")
    console.print(BANNER)
    console.print()


def _section(console: Console, title: str) -> None:
    console.print(title, style="bold", markup=False)
    console.print(RULE)


def _level(value: int, moderate: int, high: int) -> str:
    if value > high:
        return "HIGH"
    if value > moderate:
        return "MODERATE"
    return "OK"


def _print_result(console: Console, result: RuleResult) -> None:
    rule = result.rule
    icon = SEVERITY_ICONS.get(rule.severity, " ")
    console.print(f"  {icon} [{rule.code}] {rule.error_message}", style=SEVERITY_STYLES.get(rule.severity), markup=False)
    if rule.suggestion:
        console.print(f"     → {rule.suggestion}", style="dim", markup=False)


def _grouped_problems(results: list[RuleResult]) -> dict[str, list[RuleResult]]:
    grouped: dict[str, list[RuleResult]] = defaultdict(list)
    for r in results:
        if r.matched and not r.rule.is_virtue:
            grouped[r.rule.category or "other"].append(r)
    return grouped


def _category_order(results: list[RuleResult]) -> list[str]:
    order = list(CATEGORY_ORDER)
    for r in results:
        category = r.rule.category
        if category and not r.rule.is_virtue and category not in order:
            order.append(category)
    order.append("other")
    return order


def _truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _reference_line(ref: ReferenceNode) -> tuple[str, str]:
    if not ref.exists:
        return f"✗ {ref.path} (file not found!)", "bold red"
    if ref.is_stale:
        return f"⚠ {ref.path} (last updated {ref.days_since_update} days ago, stale)", "yellow"
    return f"✓ {ref.path} (last updated {ref.days_since_update} days ago)", "green"


def print_report(
    console: Console,
    analysis: FileAnalysis,
    opts: FilterOptions,
    *,
    show_all: bool = False,
    show_score: bool = True,
) -> None:
    """Print the report for a single context file."""
    bag = analysis.metrics
    _header(console, "Context File Analysis Report")
    console.print(f"File: {analysis.path}\n", markup=False)

    _section(console, "METRICS")
    effective = bag.instruction_count + ASSISTANT_BASELINE_INSTRUCTIONS
    console.print(f"  Lines:        {bag.line_count} ({_level(bag.line_count, 100, 300)})")
    console.print(
        f"  Instructions: ~{bag.instruction_count} "
        f"(+{ASSISTANT_BASELINE_INSTRUCTIONS} assistant = ~{effective}) ({_level(effective, 100, 150)})"
    )
    disclosure = "YES" if bag.metrics.get(HAS_PROGRESSIVE_DISCLOSURE) else "NO"
    console.print(f"  Progressive Disclosure: {disclosure}")
    console.print()

    visible = filter_results(analysis.results, opts)
    grouped = _grouped_problems(visible)
    has_problems = False
    for category in _category_order(analysis.results):
        problems = grouped.get(category)
        if not problems:
            continue
        has_problems = True
        _section(console, CATEGORY_TITLES.get(category, category.upper()))
        for result in problems:
            _print_result(console, result)
        console.print()

    if show_all:
        virtues = [r for r in analysis.results if r.rule.is_virtue and r.matched]
        if virtues:
            _section(console, "GOOD PRACTICES DETECTED")
            for r in virtues:
                console.print(f"  ✓ [{r.rule.code}] {r.message}", style="green", markup=False)
            console.print()

    if analysis.references:
        _print_referenced_docs(console, analysis.references)
        _print_referenced_doc_issues(console, analysis, opts)
        _print_cross_file_analysis(console, analysis)

    if show_score:
        _print_dimensions(console, analysis)
        _section(console, "OVERALL SCORE")
        console.print(f"  {analysis.score}/100", style="bold")
        if not has_problems and analysis.score == 100:
            console.print("\n  ✓ Excellent! This context file follows best practices.", style="bold green")
        console.print()


def _print_referenced_docs(console: Console, references: list[ReferenceNode]) -> None:
    _section(console, "REFERENCED DOCS")
    for ref in references:
        text, style = _reference_line(ref)
        console.print(f"  {text}", style=style, markup=False)
    console.print()


def _print_referenced_doc_issues(console: Console, analysis: FileAnalysis, opts: FilterOptions) -> None:
    for resolved, results in analysis.reference_results.items():
        issues = [
            r
            for r in filter_results(results, opts)
            if r.matched and not r.rule.is_virtue and r.rule.category not in PRIMARY_CATEGORIES
        ]
        if not issues:
            continue
        _section(console, f"REFERENCED DOC ISSUES: {_relative(Path(resolved), analysis.path.parent)}")
        for result in issues:
            _print_result(console, result)
        console.print()


def _print_cross_file_analysis(console: Console, analysis: FileAnalysis) -> None:
    agg = analysis.aggregate
    _section(console, "CROSS-FILE ANALYSIS")
    console.print(f"  Total instructions across {agg.file_count} files: {agg.total_instruction_count}")
    console.print(f"  Total lines across {agg.file_count} files: {agg.total_line_count}")
    if agg.duplicates:
        console.print(f"  ⚠ {len(agg.duplicates)} duplicated instructions found across files", style="yellow")
        for dup in agg.duplicates:
            console.print(f'     → "{_truncate(dup.instruction, 60)}" in {", ".join(dup.files)}', markup=False)
    console.print()


def _print_dimensions(console: Console, analysis: FileAnalysis) -> None:
    table = Table(title="Dimension Scores", show_header=True)
    table.add_column("Dimension", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Violations", justify="right")
    table.add_column("Bonuses", justify="right")

    for dim in DIMENSIONS:
        entry = analysis.dimensions.scores[dim]
        table.add_row(dim, str(entry.score), str(entry.violations), str(entry.bonuses))
    table.add_row("overall", str(analysis.dimensions.overall), "", "", style="bold")

    console.print(table)
    if analysis.freshness_days < 0:
        console.print("  Freshness: no git history (assumed 75)", style="dim")
    else:
        console.print(f"  Freshness: last updated {analysis.freshness_days} days ago", style="dim")
    console.print()


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def print_repo_report(console: Console, summary: RepoSummary) -> None:
    """Print the repository-level report for a directory target."""
    _header(console, "Repository Context Report")

    if summary.has_multiple_roots:
        console.print("✗ [CD060] MULTIPLE CONTEXT FILES DETECTED", style="bold red", markup=False)
        console.print(RULE)
        console.print("  A repository should have exactly one context file at the root.")
        console.print("  Multiple files fragment context and confuse the assistant.")
        console.print("  Consolidate into the root file and use progressive")
        console.print("  disclosure to reference supporting docs.")
        console.print()
        for analysis in summary.analyses:
            console.print(f"  ✗ {_relative(analysis.path, summary.root)}", style="red", markup=False)
        console.print()

    _section(console, f"FILES ({len(summary.analyses)} found)")
    for analysis in summary.analyses:
        if analysis.errors:
            icon, style = "✗", "bold red"
        elif analysis.warnings:
            icon, style = "⚠", "yellow"
        else:
            icon, style = "✓", "green"
        console.print(f"  {icon} {_relative(analysis.path, summary.root)}", style=style, markup=False)
        console.print(
            f"      Score: {analysis.score}/100  Lines: {analysis.metrics.line_count}  "
            f"Instructions: ~{analysis.metrics.instruction_count}  "
            f"Errors: {analysis.errors}  Warnings: {analysis.warnings}",
            style="dim",
        )
        for ref in analysis.references:
            if not ref.exists:
                console.print(f"      ✗ ref: {ref.path} (not found!)", style="red", markup=False)
            elif ref.is_stale:
                console.print(f"      ⚠ ref: {ref.path} (stale, {ref.days_since_update} days)", style="yellow", markup=False)
            else:
                console.print(f"      ✓ ref: {ref.path} ({ref.days_since_update} days ago)", style="dim", markup=False)
    console.print()

    with_issues = [a for a in summary.analyses if a.errors or a.warnings]
    if with_issues:
        _section(console, "ISSUES")
        for analysis in with_issues:
            console.print(f"  {_relative(analysis.path, summary.root)}", markup=False)
            for r in analysis.problems:
                if r.rule.severity == "info":
                    continue
                icon = SEVERITY_ICONS.get(r.rule.severity, " ")
                console.print(
                    f"    {icon} [{r.rule.code}] {r.rule.error_message}",
                    style=SEVERITY_STYLES.get(r.rule.severity),
                    markup=False,
                )
        console.print()

    if summary.orphans:
        _section(console, "ORPHAN DOCS (not referenced by any context file)")
        for orphan in summary.orphans:
            console.print(f"  ? {orphan}", markup=False)
        console.print()

    table = Table(title="Repository Summary", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Files", str(len(summary.analyses)))
    table.add_row("Total lines", str(summary.total_lines))
    table.add_row("Total instructions", f"~{summary.total_instructions}")
    table.add_row("Errors", str(summary.total_errors))
    table.add_row("Warnings", str(summary.total_warnings))
    table.add_row("Average score", f"{summary.average_score}/100")
    console.print(table)


def _result_to_dict(result: RuleResult) -> dict:
    rule = result.rule
    return {
        "code": rule.code,
        "severity": rule.severity,
        "category": rule.category,
        "kind": rule.kind.value if rule.kind else None,
        "matched": result.matched,
        "message": result.message,
        "suggestion": rule.suggestion,
    }


def _reference_to_dict(ref: ReferenceNode) -> dict:
    return {
        "path": ref.path,
        "resolved_path": str(ref.resolved_path),
        "exists": ref.exists,
        "last_modified": ref.last_modified.isoformat() if ref.last_modified else None,
        "days_since_update": ref.days_since_update,
        "is_stale": ref.is_stale,
        "referenced_by": ref.referenced_by,
        "depth": ref.depth,
        "children": [_reference_to_dict(c) for c in ref.children],
    }


def _analysis_to_dict(analysis: FileAnalysis, opts: FilterOptions) -> dict:
    agg = analysis.aggregate
    return {
        "file": str(analysis.path),
        "metrics": {
            "lines": analysis.metrics.line_count,
            "instructions": analysis.metrics.instruction_count,
            "progressive_disclosure": bool(analysis.metrics.metrics.get(HAS_PROGRESSIVE_DISCLOSURE)),
        },
        "results": [_result_to_dict(r) for r in filter_results(analysis.results, opts)],
        "references": [_reference_to_dict(r) for r in analysis.references],
        "reference_results": {
            resolved: [_result_to_dict(r) for r in filter_results(results, opts)]
            for resolved, results in analysis.reference_results.items()
        },
        "aggregate": {
            "total_instruction_count": agg.total_instruction_count,
            "total_line_count": agg.total_line_count,
            "file_count": agg.file_count,
            "duplicates": [{"instruction": d.instruction, "files": d.files} for d in agg.duplicates],
        },
        "score": analysis.score,
        "dimensions": {
            dim: {"score": entry.score, "violations": entry.violations, "bonuses": entry.bonuses}
            for dim, entry in analysis.dimensions.scores.items()
        },
        "dimension_overall": analysis.dimensions.overall,
        "freshness": {"score": analysis.freshness_score, "days": analysis.freshness_days},
        "errors": analysis.errors,
        "warnings": analysis.warnings,
    }


def _summary_to_dict(summary: RepoSummary, opts: FilterOptions) -> dict:
    return {
        "root": str(summary.root),
        "files": [_analysis_to_dict(a, opts) for a in summary.analyses],
        "orphans": summary.orphans,
        "summary": {
            "files": len(summary.analyses),
            "multiple_context_files": summary.has_multiple_roots,
            "total_lines": summary.total_lines,
            "total_instructions": summary.total_instructions,
            "errors": summary.total_errors,
            "warnings": summary.total_warnings,
            "average_score": summary.average_score,
        },
    }
