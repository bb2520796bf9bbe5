from __future__ import annotations


class BenchmarkError(Exception):
    """Base class for failures surfaced by the sampling and reporting pipeline."""


class PartialWorkerFailure(BenchmarkError):
    """A registered worker stopped without handing off its samples."""


class NoSuccessfulSamples(BenchmarkError):
    """No worker recorded a single successful request."""


class HistogramOverflow(BenchmarkError):
    """A latency sample is larger than the histogram can track."""

    def __init__(self, value_us: int, highest_trackable_us: int) -> None:
        super().__init__(
            f"latency of {value_us}us exceeds the highest trackable value "
            f"of {highest_trackable_us}us"
        )
        self.value_us = value_us
        self.highest_trackable_us = highest_trackable_us


class RenderError(BenchmarkError):
    """The latency chart could not be written."""


__all__ = [
    "BenchmarkError",
    "HistogramOverflow",
    "NoSuccessfulSamples",
    "PartialWorkerFailure",
    "RenderError",
]
