"""Technology stack detection from marker files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class StackMarker:
    name: str
    markers: tuple[str, ...]
    is_dir: bool = False


DEFAULT_STACK_MARKERS: tuple[StackMarker, ...] = (
    StackMarker("go", ("go.mod", "go.sum")),
    StackMarker("python", ("requirements.txt", "setup.py", "pyproject.toml", "Pipfile")),
    StackMarker("nodejs", ("package.json",)),
    StackMarker("typescript", ("tsconfig.json",)),
    StackMarker("rust", ("Cargo.toml",)),
    StackMarker("make", ("Makefile", "makefile", "GNUmakefile")),
    StackMarker("docker", ("Dockerfile", "docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml")),
    StackMarker("github-actions", (".github/workflows",), is_dir=True),
)


def detect_stacks(root: Path, markers: tuple[StackMarker, ...] = DEFAULT_STACK_MARKERS) -> list[str]:
    """Names of the stacks whose markers exist directly under ``root``."""
    stacks: list[str] = []
    for stack in markers:
        for marker in stack.markers:
            path = root / marker
            if (path.is_dir() if stack.is_dir else path.is_file()):
                stacks.append(stack.name)
                break
    return stacks
