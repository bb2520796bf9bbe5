from __future__ import annotations

import collections
import logging
import math
from concurrent.futures import Future, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .charts import length_profile, render_length_chart
from .errors import NoSuccessfulSamples, PartialWorkerFailure
from .histogram import summarize_latencies
from .report import BenchmarkReport, emit_report
from .sampler import Accumulator, SampleSet, new_accumulator

LOGGER = logging.getLogger("searchbench.aggregator")


@dataclass(frozen=True)
class MergedDataset:
    """Union of every handed-off sample set."""

    latencies: tuple[float, ...]
    latencies_by_length: tuple[tuple[float, ...], ...]
    errors: Mapping[int, int]
    worker_rates: tuple[float, ...]
    failed_workers: int = 0

    @property
    def average_requests_per_second(self) -> float:
        # Unweighted mean of the per-worker rates, not total requests over total time.
        if not self.worker_rates:
            return 0.0
        return math.fsum(self.worker_rates) / len(self.worker_rates)


def merge_samples(samples: list[SampleSet], failed_workers: int = 0) -> MergedDataset:
    latencies: list[float] = []
    by_length: list[list[float]] = []
    errors: collections.Counter[int] = collections.Counter()
    rates: list[float] = []

    for sample in samples:
        rates.append(sample.requests_per_second)
        latencies.extend(sample.latencies)
        if len(sample.latencies_by_length) > len(by_length):
            by_length.extend(
                [] for _ in range(len(sample.latencies_by_length) - len(by_length))
            )
        for length, durations in enumerate(sample.latencies_by_length):
            by_length[length].extend(durations)
        errors.update(sample.errors)

    return MergedDataset(
        latencies=tuple(latencies),
        latencies_by_length=tuple(tuple(bucket) for bucket in by_length),
        errors=dict(errors),
        worker_rates=tuple(rates),
        failed_workers=failed_workers,
    )


class Aggregator:
    """Fans in the sample sets of every registered worker and drives reporting.

    Workers must be registered before they start. ``collect_and_report`` blocks
    until every registered accumulator has either finished or been abandoned;
    a worker that does neither blocks it forever, so callers that need a
    deadline have to enforce it on the worker side.

    ``register_worker`` returns only the accumulator: its hand-off future is
    the completion token and stays inside the aggregator. The output directory
    for the chart is fixed at construction rather than passed to
    ``collect_and_report``.
    """

    def __init__(self, output_dir: Path | str) -> None:
        self._output_dir = Path(output_dir)
        self._handoffs: list[Future] = []
        self._collected = False

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    @property
    def worker_count(self) -> int:
        return len(self._handoffs)

    def register_worker(self) -> Accumulator:
        if self._collected:
            raise RuntimeError("cannot register workers after results were collected")
        accumulator, handoff = new_accumulator(name=f"worker-{len(self._handoffs) + 1}")
        self._handoffs.append(handoff)
        return accumulator

    def merge(self) -> MergedDataset:
        if self._collected:
            raise RuntimeError("results have already been collected")
        self._collected = True

        samples: list[SampleSet] = []
        failed = 0
        for handoff in as_completed(self._handoffs):
            try:
                samples.append(handoff.result())
            except PartialWorkerFailure as exc:
                failed += 1
                LOGGER.warning("Skipping worker without results: %s", exc)

        LOGGER.info(
            "Collected results from %d of %d worker(s)", len(samples), len(self._handoffs)
        )
        return merge_samples(samples, failed_workers=failed)

    def collect_and_report(self) -> BenchmarkReport:
        merged = self.merge()
        if not merged.latencies:
            raise NoSuccessfulSamples(
                "unable to complete the benchmark: no worker recorded a successful request"
            )

        report = BenchmarkReport(
            total_requests=len(merged.latencies),
            average_requests_per_second=merged.average_requests_per_second,
            summary=summarize_latencies(merged.latencies),
            errors=merged.errors,
            failed_workers=merged.failed_workers,
        )
        emit_report(report)

        report.length_profile = length_profile(merged.latencies_by_length)
        report.chart_path = render_length_chart(report.length_profile, self._output_dir)
        return report


__all__ = ["Aggregator", "MergedDataset", "merge_samples"]
