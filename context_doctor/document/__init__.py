"""Context document parsing, reference resolution, and cross-file metrics."""

from .crossfile import AggregateMetrics, DuplicateInstruction, compute_aggregate_metrics
from .metrics import MetricBag
from .parser import build_metrics, count_instructions
from .refs import ReferenceNode, enrich_with_reference_metrics, flatten_references, resolve_references

__all__ = [
    "AggregateMetrics",
    "DuplicateInstruction",
    "MetricBag",
    "ReferenceNode",
    "build_metrics",
    "compute_aggregate_metrics",
    "count_instructions",
    "enrich_with_reference_metrics",
    "flatten_references",
    "resolve_references",
]
