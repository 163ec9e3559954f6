"""Metric extraction for context documents: instructions and doc references."""

import re

from .metrics import (
    HAS_PROGRESSIVE_DISCLOSURE,
    PROGRESSIVE_DISCLOSURE_REFS,
    MetricBag,
)

# Lines that read like an instruction to the assistant.
IMPERATIVE_VERB_PATTERN = re.compile(
    r"^[-*]?\s*(always|never|do not|don't|must|should|ensure|make sure|use|avoid|prefer|"
    r"run|execute|check|verify|include|exclude|add|remove|create|delete|update|follow|implement)",
    re.IGNORECASE,
)

# Bulleted or numbered list items.
LIST_ITEM_PATTERN = re.compile(r"^(?:[-*]|\d+\.)")

LIST_MARKER_CHARS = "-*0123456789. "

DISCLOSURE_PATTERNS = [
    re.compile(r"see\s+[\w/.-]+\.md", re.IGNORECASE),
    re.compile(r"refer\s+to\s+[\w/.-]+\.md", re.IGNORECASE),
    re.compile(r"read\s+[\w/.-]+\.md", re.IGNORECASE),
    re.compile(r"docs?/[\w/.-]+\.md", re.IGNORECASE),
    re.compile(r"check\s+[\w/.-]+\.md", re.IGNORECASE),
]

# Each pattern captures the referenced path in group 1.
REFERENCE_PATTERNS = [
    re.compile(r"see\s+([\w/.-]+\.md)", re.IGNORECASE),
    re.compile(r"refer\s+to\s+([\w/.-]+\.md)", re.IGNORECASE),
    re.compile(r"read\s+([\w/.-]+\.md)", re.IGNORECASE),
    re.compile(r"((?:\.\./)*docs?/[\w/.-]+\.md)", re.IGNORECASE),
    re.compile(r"check\s+([\w/.-]+\.md)", re.IGNORECASE),
    re.compile(r"[-*]\s*`?([\w/.-]+\.md)`?\s*[-:]"),
]


def is_instruction_line(line: str) -> bool:
    """Return True if a single line looks like an instruction."""
    line = line.strip()
    if not line or line.startswith("#"):
        return False

    if IMPERATIVE_VERB_PATTERN.match(line):
        return True

    if LIST_ITEM_PATTERN.match(line):
        return len(line.lstrip(LIST_MARKER_CHARS)) > 10

    return False


def count_instructions(lines: list[str]) -> int:
    """Estimate the number of instructions in a document."""
    return sum(1 for line in lines if is_instruction_line(line))


def has_progressive_disclosure(content: str) -> bool:
    """Check whether the content points the reader at other docs."""
    return any(pattern.search(content) for pattern in DISCLOSURE_PATTERNS)


def find_progressive_disclosure_refs(content: str) -> list[str]:
    """Extract referenced doc paths, in pattern order, duplicates kept."""
    refs: list[str] = []
    for pattern in REFERENCE_PATTERNS:
        refs.extend(match.group(1) for match in pattern.finditer(content))
    return refs


def build_metrics(path: str, content: str) -> MetricBag:
    """Build the metric bag for a document."""
    lines = content.split("\n")
    bag = MetricBag(
        path=path,
        content=content,
        lines=lines,
        line_count=len(lines),
        instruction_count=count_instructions(lines),
    )
    bag.metrics[HAS_PROGRESSIVE_DISCLOSURE] = has_progressive_disclosure(content)
    bag.metrics[PROGRESSIVE_DISCLOSURE_REFS] = find_progressive_disclosure_refs(content)
    return bag
