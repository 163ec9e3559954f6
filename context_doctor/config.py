"""Configuration loading for context-doctor (.context-doctor/config.yaml)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .discovery import DEFAULT_CONTEXT_FILENAME
from .rules.load import CUSTOM_RULES_DIRNAME

CONFIG_FILENAMES = ("config.yaml", "config.yml")
DEFAULT_STALE_THRESHOLD = 90


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(frozen=True)
class LintConfig:
    """Settings for a lint run. CLI flags override file values."""

    stale_threshold: int = DEFAULT_STALE_THRESHOLD
    rules_dir: Path | None = None
    no_builtin: bool = False
    categories: list[str] = field(default_factory=list)
    severities: list[str] = field(default_factory=list)
    context_filename: str = DEFAULT_CONTEXT_FILENAME
    use_git: bool = True

    def merged(self, **overrides: Any) -> "LintConfig":
        """Copy with every override that is not None applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _str_list(value: Any) -> list[str] | None:
    if isinstance(value, str):
        return [s.strip() for s in value.split(",") if s.strip()]
    if isinstance(value, list):
        return [str(s).strip() for s in value if str(s).strip()]
    return None


def find_config_file(start: Path) -> Path | None:
    config_dir = start / CUSTOM_RULES_DIRNAME
    for name in CONFIG_FILENAMES:
        candidate = config_dir / name
        if candidate.is_file():
            return candidate
    return None


def parse_config(data: Any, *, base_dir: Path) -> LintConfig:
    """Build a LintConfig from parsed YAML. Keys with the wrong type are ignored."""
    if not isinstance(data, dict):
        return LintConfig()

    overrides: dict[str, Any] = {}

    stale = data.get("stale_threshold")
    if isinstance(stale, int) and not isinstance(stale, bool):
        overrides["stale_threshold"] = stale

    rules_dir = data.get("rules_dir")
    if isinstance(rules_dir, str) and rules_dir.strip():
        overrides["rules_dir"] = (base_dir / rules_dir).resolve()

    for key in ("no_builtin", "use_git"):
        if isinstance(data.get(key), bool):
            overrides[key] = data[key]

    for key in ("categories", "severities"):
        values = _str_list(data.get(key))
        if values is not None:
            overrides[key] = values

    filename = data.get("context_filename")
    if isinstance(filename, str) and filename.strip():
        overrides["context_filename"] = filename.strip()

    return LintConfig().merged(**overrides)


def load_config(start: Path) -> LintConfig:
    """Load the config for a target directory, or defaults if there is none."""
    config_path = find_config_file(start)
    if config_path is None:
        return LintConfig()

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to parse {config_path}: {exc}") from exc

    return parse_config(data, base_dir=start)
