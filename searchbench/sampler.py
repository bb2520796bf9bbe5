from __future__ import annotations

import collections
import math
import types
import weakref
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Mapping

from .errors import PartialWorkerFailure


@dataclass(frozen=True)
class SampleSet:
    """Frozen measurements of a single worker, handed to the aggregator once."""

    latencies: tuple[float, ...]
    latencies_by_length: tuple[tuple[float, ...], ...]
    errors: Mapping[int, int]
    requests_per_second: float = 0.0

    @property
    def request_count(self) -> int:
        return len(self.latencies)


def _abandon_future(future: Future, reason: str) -> None:
    if not future.done():
        future.set_exception(PartialWorkerFailure(reason))


class Accumulator:
    """Per-worker latency and error collector.

    Exactly one worker thread owns an accumulator, so nothing here is locked.
    ``finish()`` freezes the buffers into a :class:`SampleSet` and resolves
    the hand-off future; afterwards the accumulator holds no buffers and every
    mutator raises ``RuntimeError``.

    An accumulator that is left without calling ``finish()`` (the ``with``
    block exits or the object is garbage collected) resolves its future with
    :class:`PartialWorkerFailure` so the aggregator never waits on it.
    """

    def __init__(self, handoff: Future, name: str = "worker") -> None:
        self.name = name
        self._handoff = handoff
        self._latencies: list[float] | None = []
        self._by_length: list[list[float]] = [[]]
        self._errors: collections.Counter[int] = collections.Counter()
        self._finalizer = weakref.finalize(
            self, _abandon_future, handoff, f"{name} was dropped before finishing"
        )

    @property
    def finished(self) -> bool:
        return self._latencies is None

    def record_latency(self, duration: float) -> None:
        self._buffers()[0].append(duration)

    def record_latency_for_length(self, length: int, duration: float) -> None:
        if length < 0:
            raise ValueError(f"query length must be >= 0, got {length}")
        _, by_length, _ = self._buffers()
        if length >= len(by_length):
            by_length.extend([] for _ in range(length + 1 - len(by_length)))
        by_length[length].append(duration)

    def record_error(self, status_code: int) -> None:
        self._buffers()[2][status_code] += 1

    def finish(self) -> SampleSet:
        latencies, by_length, errors = self._buffers()

        sample = SampleSet(
            latencies=tuple(latencies),
            latencies_by_length=tuple(tuple(bucket) for bucket in by_length),
            errors=types.MappingProxyType(dict(errors)),
            requests_per_second=requests_per_second(latencies),
        )
        self._release()
        self._finalizer.detach()
        self._handoff.set_result(sample)
        return sample

    def abandon(self, reason: str | None = None) -> None:
        """Give up without handing off any samples."""
        if self.finished:
            return
        self._release()
        self._finalizer.detach()
        _abandon_future(self._handoff, reason or f"{self.name} did not finish")

    def __enter__(self) -> Accumulator:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.finished:
            return
        if exc is not None:
            self.abandon(f"{self.name} failed: {exc!r}")
        else:
            self.abandon(f"{self.name} exited without finishing")

    def _buffers(self) -> tuple[list[float], list[list[float]], collections.Counter[int]]:
        if self._latencies is None:
            raise RuntimeError(f"{self.name} has already handed off its samples")
        return self._latencies, self._by_length, self._errors

    def _release(self) -> None:
        self._latencies = None
        self._by_length = []
        self._errors = collections.Counter()


def requests_per_second(latencies: list[float] | tuple[float, ...]) -> float:
    """Requests completed per second of summed request time, 0.0 when undefined."""
    if not latencies:
        return 0.0
    total_elapsed = math.fsum(latencies)
    if total_elapsed <= 0:
        return 0.0
    return len(latencies) / total_elapsed


def new_accumulator(name: str = "worker") -> tuple[Accumulator, Future]:
    handoff: Future = Future()
    handoff.set_running_or_notify_cancel()
    return Accumulator(handoff, name=name), handoff


__all__ = ["Accumulator", "SampleSet", "new_accumulator", "requests_per_second"]
