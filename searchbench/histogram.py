"""
Log-linear latency histogram.

Samples are recorded in microseconds into an HdrHistogram, which keeps the
relative error of every value under the configured number of significant
decimal digits across the whole trackable range without retaining the raw
samples.
"""

from __future__ import annotations

import types
from dataclasses import dataclass
from typing import Iterable, Mapping

from hdrh.histogram import HdrHistogram

from .errors import HistogramOverflow

LOWEST_DISCERNIBLE_US = 1
HIGHEST_TRACKABLE_US = 60 * 60 * 1000 * 1000
SIGNIFICANT_DIGITS = 2
REPORTED_PERCENTILES: tuple[float, ...] = (50.0, 90.0, 99.0, 99.9)


@dataclass(frozen=True)
class HistogramSummary:
    """Snapshot of the latency distribution, in microseconds."""

    count: int
    mean_us: float
    stdev_us: float
    min_us: int
    max_us: int
    percentiles_us: Mapping[float, int]

    def to_dict(self) -> dict[str, object]:
        return {
            "count": self.count,
            "mean_us": round(self.mean_us, 3),
            "stdev_us": round(self.stdev_us, 3),
            "min_us": self.min_us,
            "max_us": self.max_us,
            "percentiles_us": {f"p{p:g}": v for p, v in self.percentiles_us.items()},
        }


class LatencyHistogram:
    """Bounded latency histogram that refuses values it cannot track."""

    def __init__(
        self,
        lowest_discernible: int = LOWEST_DISCERNIBLE_US,
        highest_trackable: int = HIGHEST_TRACKABLE_US,
        significant_digits: int = SIGNIFICANT_DIGITS,
    ) -> None:
        self.lowest_discernible = lowest_discernible
        self.highest_trackable = highest_trackable
        self._histogram = HdrHistogram(lowest_discernible, highest_trackable, significant_digits)

    @property
    def total_count(self) -> int:
        return self._histogram.get_total_count()

    def record(self, value: int) -> None:
        if value < 0:
            raise ValueError("histogram values must be >= 0")
        if value > self.highest_trackable:
            raise HistogramOverflow(value, self.highest_trackable)
        if not self._histogram.record_value(value):
            raise HistogramOverflow(value, self.highest_trackable)

    def record_many(self, values: Iterable[int]) -> None:
        for value in values:
            self.record(value)

    def min(self) -> int:
        if self.total_count == 0:
            return 0
        return self._histogram.get_min_value()

    def max(self) -> int:
        if self.total_count == 0:
            return 0
        return self._histogram.get_max_value()

    def mean(self) -> float:
        if self.total_count == 0:
            return 0.0
        return float(self._histogram.get_mean_value())

    def stdev(self) -> float:
        if self.total_count == 0:
            return 0.0
        return float(self._histogram.get_stddev())

    def value_at_percentile(self, percentile: float) -> int:
        if self.total_count == 0:
            return 0
        return self._histogram.get_value_at_percentile(percentile)

    def lowest_equivalent(self, value: int) -> int:
        return self._histogram.get_lowest_equivalent_value(value)

    def highest_equivalent(self, value: int) -> int:
        return self._histogram.get_highest_equivalent_value(value)

    def summary(self, percentiles: Iterable[float] = REPORTED_PERCENTILES) -> HistogramSummary:
        return HistogramSummary(
            count=self.total_count,
            mean_us=self.mean(),
            stdev_us=self.stdev(),
            min_us=self.min(),
            max_us=self.max(),
            percentiles_us=types.MappingProxyType(
                {p: self.value_at_percentile(p) for p in percentiles}
            ),
        )


def to_micros(duration: float) -> int:
    """Whole microseconds in ``duration`` seconds, truncated."""
    return int(duration * 1_000_000)


def summarize_latencies(latencies: Iterable[float]) -> HistogramSummary:
    """Histogram summary of durations in seconds; sub-microsecond samples are skipped."""
    histogram = LatencyHistogram()
    histogram.record_many(us for us in map(to_micros, latencies) if us > 0)
    return histogram.summary()


def humanize_duration(micros: float) -> str:
    if micros < 1_000:
        return f"{micros:.0f}µs"
    if micros < 1_000_000:
        return f"{micros / 1_000:.2f}ms"
    return f"{micros / 1_000_000:.2f}s"


__all__ = [
    "HIGHEST_TRACKABLE_US",
    "HistogramSummary",
    "LatencyHistogram",
    "humanize_duration",
    "summarize_latencies",
    "to_micros",
]
