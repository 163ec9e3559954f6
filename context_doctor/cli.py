"""CLI entrypoint for context-doctor."""

import sys
from pathlib import Path

import click

from . import __version__
from .config import ConfigError, LintConfig, load_config
from .logging import configure_logging
from .rules.load import RuleLoadError


def _split_csv(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


def _load_config(target: Path) -> LintConfig:
    config_root = target if target.is_dir() else target.parent
    try:
        return load_config(config_root)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(__version__, prog_name="context-doctor")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr")
def cli(verbose: bool) -> None:
    """context-doctor - Lint LLM context files (CLAUDE.md) and the docs they reference."""
    configure_logging(verbose=verbose)


@cli.command()
@click.argument("target", type=click.Path(exists=False, path_type=Path))
@click.option(
    "--rules-dir",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Directory containing custom rules (default: the context file's directory)",
)
@click.option(
    "--rules-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Additional rules file (YAML or JSON) applied to every context file",
)
@click.option("--no-builtin", is_flag=True, help="Disable built-in rules")
@click.option("--categories", default=None, metavar="LIST", help="Only report these categories (comma-separated)")
@click.option("--severities", default=None, metavar="LIST", help="Only report these severities (comma-separated: error,warning,info)")
@click.option("--stale-threshold", type=int, default=None, help="Days before a referenced doc is considered stale (default: 90)")
@click.option("--show-all", is_flag=True, help="Show passed checks and detected good practices")
@click.option("--no-score", is_flag=True, help="Hide the score sections")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.option("--no-git", is_flag=True, help="Do not query git for history or file lists")
def check(
    target: Path,
    rules_dir: Path | None,
    rules_file: Path | None,
    no_builtin: bool,
    categories: str | None,
    severities: str | None,
    stale_threshold: int | None,
    show_all: bool,
    no_score: bool,
    output_json: bool,
    no_git: bool,
) -> None:
    """Analyze a context file, or every context file under a directory.

    Examples:

        context-doctor check CLAUDE.md

        context-doctor check . --stale-threshold 30 --severities error,warning
    """
    from .commands.check import run_check

    if not target.exists():
        raise click.ClickException(f"Path '{target}' does not exist.")

    config = _load_config(target).merged(
        rules_dir=rules_dir,
        no_builtin=True if no_builtin else None,
        categories=_split_csv(categories),
        severities=_split_csv(severities),
        stale_threshold=stale_threshold,
        use_git=False if no_git else None,
    )

    try:
        exit_code = run_check(
            target,
            config,
            show_all=show_all,
            show_score=not no_score,
            output_json=output_json,
            extra_rules_file=rules_file,
        )
    except RuleLoadError as exc:
        raise click.ClickException(str(exc)) from exc
    except OSError as exc:
        raise click.ClickException(f"Cannot read {target}: {exc}") from exc
    sys.exit(exit_code)


@cli.command()
@click.argument("target", type=click.Path(exists=True, path_type=Path), default=".")
@click.option("--no-builtin", is_flag=True, help="Only list custom rules")
@click.option(
    "--explain",
    "explain_code",
    default=None,
    metavar="CODE",
    help="Explain a specific rule and exit (e.g., --explain CD040)",
)
def rules(target: Path, no_builtin: bool, explain_code: str | None) -> None:
    """List the rules that apply to context files under TARGET."""
    from .commands.rules_cmd import run_rules_explain, run_rules_list

    directory = target if target.is_dir() else target.parent
    config = _load_config(target).merged(no_builtin=True if no_builtin else None)

    try:
        if explain_code:
            exit_code = run_rules_explain(directory, config, explain_code)
        else:
            exit_code = run_rules_list(directory, config)
    except RuleLoadError as exc:
        raise click.ClickException(str(exc)) from exc
    sys.exit(exit_code)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
