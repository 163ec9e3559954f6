"""Per-document metric bag."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

MetricValue = Union[int, str, bool, list[str]]

LINE_COUNT = "lineCount"
INSTRUCTION_COUNT = "instructionCount"
CONTENT = "content"

HAS_PROGRESSIVE_DISCLOSURE = "hasProgressiveDisclosure"
PROGRESSIVE_DISCLOSURE_REFS = "progressiveDisclosureRefs"


@dataclass
class MetricBag:
    """Computed metrics for one context document.

    The typed fields are fixed once extraction finishes. Later pipeline
    stages only add entries to ``metrics``.
    """

    path: str
    content: str
    lines: list[str]
    line_count: int
    instruction_count: int
    metrics: dict[str, MetricValue] = field(default_factory=dict)

    def get(self, name: str | None) -> MetricValue | None:
        """Look up a metric by name. Unknown names return None."""
        if name == LINE_COUNT:
            return self.line_count
        if name == INSTRUCTION_COUNT:
            return self.instruction_count
        if name == CONTENT:
            return self.content
        if name is None:
            return None
        return self.metrics.get(name)

    @property
    def references(self) -> list[str]:
        refs = self.metrics.get(PROGRESSIVE_DISCLOSURE_REFS)
        return list(refs) if isinstance(refs, list) else []
