"""
Load-testing harness for search backends.

This package drives concurrent query workloads through pluggable search
adapters, merges the per-worker latency samples into a single dataset, and
reports histogram-based latency statistics alongside a chart of average
latency per query length.
"""

from .aggregator import Aggregator, MergedDataset
from .errors import (
    BenchmarkError,
    HistogramOverflow,
    NoSuccessfulSamples,
    PartialWorkerFailure,
    RenderError,
)
from .main import main
from .sampler import Accumulator, SampleSet

__all__ = [
    "Accumulator",
    "Aggregator",
    "BenchmarkError",
    "HistogramOverflow",
    "MergedDataset",
    "NoSuccessfulSamples",
    "PartialWorkerFailure",
    "RenderError",
    "SampleSet",
    "main",
]
