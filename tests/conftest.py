"""
Shared fixtures for the sampling and reporting tests.
"""

from __future__ import annotations

from typing import Callable, Iterable

import pytest

from searchbench.aggregator import Aggregator
from searchbench.sampler import Accumulator


def ms(value: float) -> float:
    """Milliseconds to seconds."""
    return value / 1000.0


@pytest.fixture
def aggregator(tmp_path) -> Aggregator:
    return Aggregator(tmp_path)


@pytest.fixture
def fill_worker() -> Callable[..., Accumulator]:
    def fill(
        accumulator: Accumulator,
        latencies_ms: Iterable[float] = (),
        errors: Iterable[int] = (),
        by_length_ms: dict[int, Iterable[float]] | None = None,
    ) -> Accumulator:
        for value in latencies_ms:
            accumulator.record_latency(ms(value))
        for status in errors:
            accumulator.record_error(status)
        for length, values in (by_length_ms or {}).items():
            for value in values:
                accumulator.record_latency_for_length(length, ms(value))
        return accumulator

    return fill


def pytest_configure(config):
    config.addinivalue_line("markers", "render: Tests that rasterize a chart")
