from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from .histogram import HistogramSummary, humanize_duration

LOGGER = logging.getLogger("searchbench.report")


@dataclass
class BenchmarkReport:
    total_requests: int
    average_requests_per_second: float
    summary: HistogramSummary
    errors: Mapping[int, int]
    length_profile: list[int] = field(default_factory=list)
    failed_workers: int = 0
    chart_path: Path | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "total_requests": self.total_requests,
            "average_requests_per_second": round(self.average_requests_per_second, 3),
            "latency": self.summary.to_dict(),
            "errors": {str(code): count for code, count in sorted(self.errors.items())},
            "length_profile_ms": list(self.length_profile),
            "failed_workers": self.failed_workers,
            "chart": str(self.chart_path) if self.chart_path else None,
        }


def emit_report(report: BenchmarkReport) -> None:
    """Log the aggregate statistics. Never raises."""
    try:
        summary = report.summary
        LOGGER.info("General benchmark results:")
        LOGGER.info("     Total Successful Requests Sent: %d", report.total_requests)
        LOGGER.info("     Average Requests/sec: %.2f", report.average_requests_per_second)
        LOGGER.info("     Average Latency: %s", humanize_duration(summary.mean_us))
        LOGGER.info("     Max Latency: %s", humanize_duration(summary.max_us))
        LOGGER.info("     Min Latency: %s", humanize_duration(summary.min_us))
        LOGGER.info("     Stdev Latency: %s", humanize_duration(summary.stdev_us))
        for percentile, value in summary.percentiles_us.items():
            LOGGER.info("     p%g Latency: %s", percentile, humanize_duration(value))

        if report.failed_workers:
            LOGGER.warning("     Workers without results: %d", report.failed_workers)
        for code, amount in sorted(report.errors.items()):
            LOGGER.warning("     Got status %d: %d", code, amount)
    except Exception:  # noqa: BLE001
        LOGGER.exception("failed to emit benchmark report")


__all__ = ["BenchmarkReport", "emit_report"]
