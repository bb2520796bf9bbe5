from __future__ import annotations

import threading

import pytest

from searchbench.aggregator import Aggregator
from searchbench.config import BenchmarkConfig
from searchbench.errors import NoSuccessfulSamples
from searchbench.load import QueryWorkload, is_success, run_benchmark


class RecordingSearch:
    """Search adapter that answers from a fixed status table."""

    def __init__(self, statuses: dict[str, int] | None = None, default: int = 200) -> None:
        self.statuses = statuses or {}
        self.default = default
        self.queries: list[str] = []
        self._lock = threading.Lock()

    def __call__(self, query: str) -> int:
        with self._lock:
            self.queries.append(query)
        return self.statuses.get(query, self.default)


def make_config(tmp_path, **overrides) -> BenchmarkConfig:
    values = {
        "address": "http://search.test",
        "index": "movies",
        "backend": "tests.test_load:RecordingSearch",
        "concurrency": 3,
        "output_dir": tmp_path,
    }
    values.update(overrides)
    return BenchmarkConfig(**values)


@pytest.mark.parametrize("status, expected", [(200, True), (204, True), (404, False), (500, False)])
def test_is_success(status, expected):
    assert is_success(status) is expected


class TestQueryWorkload:
    def test_standard_mode_sends_each_term_once(self, tmp_path):
        search = RecordingSearch()
        aggregator = Aggregator(tmp_path)

        QueryWorkload(search, ["star", "", "wars"]).run(aggregator.register_worker())
        merged = aggregator.merge()

        assert search.queries == ["star", "wars"]
        assert len(merged.latencies) == 2
        assert len(merged.latencies_by_length[4]) == 2

    def test_typing_mode_sends_every_prefix(self, tmp_path):
        search = RecordingSearch()
        aggregator = Aggregator(tmp_path)

        QueryWorkload(search, ["dune"], mode="typing").run(aggregator.register_worker())
        merged = aggregator.merge()

        assert search.queries == ["d", "du", "dun", "dune"]
        assert [len(bucket) for bucket in merged.latencies_by_length] == [0, 1, 1, 1, 1]

    def test_failed_statuses_record_errors_only(self, tmp_path):
        search = RecordingSearch(statuses={"bad": 500, "gone": 404})
        aggregator = Aggregator(tmp_path)

        QueryWorkload(search, ["ok", "bad", "gone", "bad"]).run(aggregator.register_worker())
        merged = aggregator.merge()

        assert len(merged.latencies) == 1
        assert merged.errors == {500: 2, 404: 1}

    def test_adapter_exception_abandons_worker(self, tmp_path):
        def broken(query: str) -> int:
            raise ConnectionError("refused")

        aggregator = Aggregator(tmp_path)
        with pytest.raises(ConnectionError):
            QueryWorkload(broken, ["term"]).run(aggregator.register_worker())

        assert aggregator.merge().failed_workers == 1

    def test_stop_finishes_early(self, tmp_path):
        aggregator = Aggregator(tmp_path)
        workload = QueryWorkload(RecordingSearch(), ["a", "b"])
        workload.stop()

        workload.run(aggregator.register_worker())
        merged = aggregator.merge()

        assert merged.latencies == ()
        assert merged.failed_workers == 0

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            QueryWorkload(RecordingSearch(), [], mode="fuzzy")


class TestRunBenchmark:
    def test_runs_every_worker(self, tmp_path):
        search = RecordingSearch(statuses={"missing": 404})

        report = run_benchmark(make_config(tmp_path), search, ["alien", "missing", "heat"])

        assert report.total_requests == 6
        assert report.errors == {404: 3}
        assert len(search.queries) == 9
        assert report.chart_path is not None and report.chart_path.exists()

    def test_failing_backend_raises_no_samples(self, tmp_path):
        def broken(query: str) -> int:
            raise TimeoutError("no response")

        with pytest.raises(NoSuccessfulSamples):
            run_benchmark(make_config(tmp_path, concurrency=2), broken, ["alien"])


class TestBenchmarkConfig:
    def test_rejects_unknown_mode(self, tmp_path):
        with pytest.raises(ValueError):
            make_config(tmp_path, mode="fuzzy")

    def test_rejects_non_positive_concurrency(self, tmp_path):
        with pytest.raises(ValueError):
            make_config(tmp_path, concurrency=0)

    def test_output_dir_coerced_to_path(self, tmp_path):
        config = make_config(tmp_path, output_dir=str(tmp_path))
        assert config.output_dir == tmp_path
