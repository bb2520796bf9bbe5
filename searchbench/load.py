from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, Sequence

from .aggregator import Aggregator
from .config import BenchmarkConfig
from .report import BenchmarkReport
from .sampler import Accumulator

LOGGER = logging.getLogger("searchbench.load")

SearchFn = Callable[[str], int]


def is_success(status: int) -> bool:
    return 200 <= status < 300


class QueryWorkload:
    """Issues every term against a search adapter and records the outcome.

    In ``standard`` mode each term is sent once. In ``typing`` mode every
    prefix of the term is sent in turn, the way a search-as-you-type box
    would, so latency can be compared across query lengths.
    """

    def __init__(self, search: SearchFn, terms: Sequence[str], mode: str = "standard") -> None:
        if mode not in ("standard", "typing"):
            raise ValueError(f"unknown workload mode {mode!r}")
        self._search = search
        self._terms = list(terms)
        self._mode = mode
        self._stop_event = threading.Event()

    def run(self, accumulator: Accumulator) -> None:
        with accumulator:
            for query in self._queries():
                if self._stop_event.is_set():
                    break
                started = time.perf_counter()
                status = self._search(query)
                elapsed = time.perf_counter() - started

                if is_success(status):
                    accumulator.record_latency(elapsed)
                    accumulator.record_latency_for_length(len(query), elapsed)
                else:
                    accumulator.record_error(status)
            accumulator.finish()

    def stop(self) -> None:
        self._stop_event.set()

    def _queries(self) -> Iterator[str]:
        for term in self._terms:
            if not term:
                continue
            if self._mode == "typing":
                for end in range(1, len(term) + 1):
                    yield term[:end]
            else:
                yield term


def run_benchmark(
    config: BenchmarkConfig,
    search: SearchFn,
    terms: Sequence[str],
) -> BenchmarkReport:
    aggregator = Aggregator(config.output_dir)
    workload = QueryWorkload(search, terms, mode=config.mode)
    accumulators = [aggregator.register_worker() for _ in range(config.concurrency)]

    LOGGER.info(
        "Starting %d worker(s) in %s mode over %d term(s)",
        len(accumulators),
        config.mode,
        len(terms),
    )
    started_at = time.time()

    def worker_runner(accumulator: Accumulator) -> None:
        try:
            workload.run(accumulator)
        except Exception:  # noqa: BLE001
            LOGGER.exception("%s failed", accumulator.name)

    with ThreadPoolExecutor(max_workers=config.concurrency, thread_name_prefix="searchbench") as pool:
        for accumulator in accumulators:
            pool.submit(worker_runner, accumulator)
        try:
            return aggregator.collect_and_report()
        finally:
            LOGGER.info("Benchmark finished in %.2fs", time.time() - started_at)


__all__ = ["QueryWorkload", "SearchFn", "is_success", "run_benchmark"]
