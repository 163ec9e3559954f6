import json
from pathlib import Path

from click.testing import CliRunner

from conftest import write

from context_doctor.cli import cli

TEAM_RULES = """\
rules:
  - code: TEAM001
    severity: error
    category: team
    matchSpec:
      action: notContains
      value: deploy.sh
    errorMessage: Deploy script is not mentioned
"""


def test_check_single_file_report(tmp_path: Path) -> None:
    claude = write(tmp_path / "CLAUDE.md", "# Project\n\n## Testing\n\nRun `make test` before pushing.\n")

    result = CliRunner().invoke(cli, ["check", str(claude), "--no-git"])

    assert result.exit_code == 0, result.output
    assert "METRICS" in result.output
    assert "OVERALL SCORE" in result.output
    assert "Dimension Scores" in result.output


def test_check_json_output(tmp_path: Path) -> None:
    claude = write(tmp_path / "CLAUDE.md", "See docs/missing.md\n")

    result = CliRunner().invoke(cli, ["check", str(claude), "--no-git", "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["references"][0]["path"] == "docs/missing.md"
    assert data["references"][0]["exists"] is False
    assert "CD061" in {r["code"] for r in data["results"]}
    assert all(r["matched"] for r in data["results"])
    assert data["freshness"] == {"score": 75, "days": -1}


def test_check_severity_filter(tmp_path: Path) -> None:
    claude = write(tmp_path / "CLAUDE.md", "See docs/missing.md\n")

    result = CliRunner().invoke(cli, ["check", str(claude), "--no-git", "--json", "--severities", "error"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["results"]
    assert {r["severity"] for r in data["results"]} == {"error"}


def test_check_with_rules_file_only(tmp_path: Path) -> None:
    claude = write(tmp_path / "CLAUDE.md", "# Project\n")
    rules_file = write(tmp_path / "extra.yaml", TEAM_RULES)

    result = CliRunner().invoke(
        cli,
        ["check", str(claude), "--no-git", "--no-builtin", "--rules-file", str(rules_file), "--json"],
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert [r["code"] for r in data["results"]] == ["TEAM001"]
    assert data["score"] == 85


def test_check_directory_with_multiple_context_files(tmp_path: Path) -> None:
    write(tmp_path / "CLAUDE.md", "# Root\n")
    write(tmp_path / "api" / "CLAUDE.md", "# API\n")

    result = CliRunner().invoke(cli, ["check", str(tmp_path), "--no-git"])

    assert result.exit_code == 0, result.output
    assert "MULTIPLE CONTEXT FILES DETECTED" in result.output
    assert "Repository Summary" in result.output


def test_check_directory_json_summary(tmp_path: Path) -> None:
    write(tmp_path / "CLAUDE.md", "# Root\n")
    write(tmp_path / "api" / "CLAUDE.md", "# API\n")
    write(tmp_path / "notes" / "orphan.md", "lonely\n")

    result = CliRunner().invoke(cli, ["check", str(tmp_path), "--no-git", "--no-builtin", "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["summary"]["files"] == 2
    assert data["summary"]["multiple_context_files"] is True
    assert data["summary"]["average_score"] == 70
    assert data["orphans"] == ["notes/orphan.md"]


def test_check_directory_without_context_files(tmp_path: Path) -> None:
    write(tmp_path / "README.md", "# Readme\n")

    result = CliRunner().invoke(cli, ["check", str(tmp_path), "--no-git"])

    assert result.exit_code == 1


def test_check_missing_target(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["check", str(tmp_path / "nope.md")])

    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_check_uses_config_file(tmp_path: Path) -> None:
    write(tmp_path / ".context-doctor" / "config.yaml", "no_builtin: true\nuse_git: false\n")
    write(tmp_path / ".context-doctor" / "team_rules.yaml", TEAM_RULES)
    claude = write(tmp_path / "CLAUDE.md", "Run ./deploy.sh to ship.\n")

    result = CliRunner().invoke(cli, ["check", str(claude), "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["results"] == []
    assert data["score"] == 100


def test_rules_list(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["rules", str(tmp_path)], env={"COLUMNS": "200"})

    assert result.exit_code == 0, result.output
    assert "CD001" in result.output
    assert "GP001" in result.output


def test_rules_explain(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["rules", str(tmp_path), "--explain", "cd040"], env={"COLUMNS": "200"})

    assert result.exit_code == 0, result.output
    assert "CD040" in result.output
    assert "Condition:" in result.output
    assert "lineCount greaterThan 100" in result.output


def test_rules_explain_unknown_code(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["rules", str(tmp_path), "--explain", "NOPE1"])

    assert result.exit_code == 1
    assert "Unknown rule" in result.output


def test_check_json_reports_each_referenced_doc(tmp_path: Path) -> None:
    claude = write(tmp_path / "CLAUDE.md", "See x/guide.md\nSee notes.md\n")
    write(tmp_path / "x" / "guide.md", "See notes.md\n")
    write(tmp_path / "x" / "notes.md", "nested notes\n")
    write(tmp_path / "notes.md", "root notes\n")

    result = CliRunner().invoke(cli, ["check", str(claude), "--no-git", "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert sorted(data["reference_results"]) == sorted(
        [str(tmp_path / "x" / "guide.md"), str(tmp_path / "x" / "notes.md"), str(tmp_path / "notes.md")]
    )
