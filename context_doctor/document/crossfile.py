"""Metrics that span a context file and every doc it references."""

from __future__ import annotations

from dataclasses import dataclass, field

from .metrics import MetricBag
from .parser import is_instruction_line
from .refs import ReferenceNode, flatten_references

# Shorter normalized instructions ("use gofmt") are too generic to count as duplicates.
MIN_DUPLICATE_LENGTH = 15


@dataclass(frozen=True)
class DuplicateInstruction:
    instruction: str
    files: list[str]


@dataclass
class AggregateMetrics:
    total_instruction_count: int
    total_line_count: int
    file_count: int
    duplicates: list[DuplicateInstruction] = field(default_factory=list)


def normalize_instruction(line: str) -> str | None:
    """Normalize an instruction line for comparison, or None if too short."""
    text = line.lower().strip()
    if text[:1] in ("-", "*"):
        text = text[1:].strip()
    if len(text) < MIN_DUPLICATE_LENGTH:
        return None
    return text


def _record(instruction_files: dict[str, list[str]], bag: MetricBag, file_id: str) -> None:
    for line in bag.lines:
        if not is_instruction_line(line):
            continue
        normalized = normalize_instruction(line)
        if normalized is None:
            continue
        files = instruction_files.setdefault(normalized, [])
        if file_id not in files:
            files.append(file_id)


def find_duplicate_instructions(primary: MetricBag, flat: list[ReferenceNode]) -> list[DuplicateInstruction]:
    """Instructions that appear in two or more distinct files.

    ``flat`` must already be flattened; only each file's own lines are scanned.
    """
    instruction_files: dict[str, list[str]] = {}
    _record(instruction_files, primary, primary.path)
    for node in flat:
        if node.exists and node.metrics is not None:
            _record(instruction_files, node.metrics, node.path)

    return [
        DuplicateInstruction(instruction=text, files=files)
        for text, files in instruction_files.items()
        if len(files) >= 2
    ]


def compute_aggregate_metrics(primary: MetricBag, references: list[ReferenceNode]) -> AggregateMetrics:
    """Combine the primary document with its whole reference tree."""
    flat = flatten_references(references)
    existing = [n for n in flat if n.exists and n.metrics is not None]

    return AggregateMetrics(
        total_instruction_count=primary.instruction_count + sum(n.metrics.instruction_count for n in existing),
        total_line_count=primary.line_count + sum(n.metrics.line_count for n in existing),
        file_count=1 + len(existing),
        duplicates=find_duplicate_instructions(primary, flat),
    )
