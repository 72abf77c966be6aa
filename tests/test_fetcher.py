import threading
import time
from collections import Counter

import pytest
import requests

from gdl.errors import ConfigurationError
from gdl.fetcher import BoundedFetcher, TaskProgress, content_length, http_fetch
from gdl.progress import ProgressAggregator, ProgressEvent
from gdl.records import FetchTask

from conftest import FakeResponse, FakeSession


def make_plan(n, out_dir):
    return [
        FetchTask(f"ftp://host/all/GCF_{i}", f"ftp://host/all/GCF_{i}/GCF_{i}_genomic.fna.gz", f"GCF_{i}.fna.gz", out_dir)
        for i in range(1, n + 1)
    ]


class RecordingReporter:
    def __init__(self):
        self.events = []

    def started(self, key, label, total_bytes=None):
        self.events.append(("started", key, total_bytes))

    def advanced(self, key, n_bytes):
        self.events.append(("advanced", key, n_bytes))

    def finished(self, key):
        self.events.append(("finished", key))


def test_never_more_than_parallel_in_flight(tmp_path):
    lock = threading.Lock()
    state = {"in_flight": 0, "peak": 0}

    def fetch(task, progress):
        with lock:
            state["in_flight"] += 1
            state["peak"] = max(state["peak"], state["in_flight"])
        time.sleep(0.01)
        with lock:
            state["in_flight"] -= 1

    fetcher = BoundedFetcher(parallel=3, fetch=fetch, show_progress=False)
    outcomes = fetcher.run(make_plan(20, tmp_path))
    assert len(outcomes) == 20
    assert all(o.ok for o in outcomes)
    assert 1 <= state["peak"] <= 3


def test_failure_does_not_stop_batch(tmp_path):
    attempts = Counter()
    lock = threading.Lock()
    plan = make_plan(10, tmp_path)

    def fetch(task, progress):
        with lock:
            attempts[task.remote_path] += 1
        if task is plan[6]:
            raise requests.ConnectionError("connection reset")

    fetcher = BoundedFetcher(parallel=4, fetch=fetch, show_progress=False)
    outcomes = fetcher.run(plan)

    assert sum(o.ok for o in outcomes) == 9
    failed = [o for o in outcomes if not o.ok]
    assert [o.remote_path for o in failed] == [plan[6].remote_path]
    assert "connection reset" in failed[0].reason
    assert attempts == Counter({t.remote_path: 1 for t in plan})
    assert fetcher.completed == 10


def test_filesystem_error_is_a_failure(tmp_path):
    plan = make_plan(2, tmp_path / "missing_dir")
    session = FakeSession({t.url: FakeResponse(b"data") for t in plan})
    outcomes = BoundedFetcher(parallel=2, session=session, show_progress=False).run(plan)
    assert [o.ok for o in outcomes] == [False, False]
    assert all(o.reason.startswith("FileNotFoundError") for o in outcomes)


def test_http_errors(tmp_path):
    plan = make_plan(3, tmp_path)
    session = FakeSession({
        plan[0].url: FakeResponse(b">seq\nACGT\n"),
        plan[1].url: FakeResponse(b"not found", status=404),
    })
    outcomes = BoundedFetcher(parallel=2, session=session, show_progress=False).run(plan)
    assert [o.ok for o in outcomes] == [True, False, False]
    assert outcomes[1].reason.startswith("HTTPError")
    assert outcomes[2].reason.startswith("ConnectionError")
    assert (tmp_path / "GCF_1.fna.gz").read_bytes() == b">seq\nACGT\n"
    assert not (tmp_path / "GCF_2.fna.gz").exists()
    assert sorted(session.requested) == sorted(t.url for t in plan)


def test_unexpected_errors_propagate(tmp_path):
    def fetch(task, progress):
        raise ValueError("bug")

    with pytest.raises(ValueError):
        BoundedFetcher(fetch=fetch, show_progress=False).run(make_plan(1, tmp_path))


def test_http_fetch_reports_bytes(tmp_path):
    task = make_plan(1, tmp_path)[0]
    body = bytes(range(256)) * 1024
    session = FakeSession({task.url: FakeResponse(body)})
    reporter = RecordingReporter()

    http_fetch(session, task, TaskProgress(reporter, 0, task.filename))

    assert task.destination.read_bytes() == body
    assert reporter.events[0] == ("started", 0, len(body))
    assert sum(e[2] for e in reporter.events if e[0] == "advanced") == len(body)


def test_http_fetch_without_content_length(tmp_path):
    task = make_plan(1, tmp_path)[0]
    session = FakeSession({task.url: FakeResponse(b"abc", headers={})})
    reporter = RecordingReporter()
    http_fetch(session, task, TaskProgress(reporter, 0, task.filename))
    assert reporter.events[0] == ("started", 0, None)


@pytest.mark.parametrize("headers, expected", [
    ({"Content-Length": "12"}, 12),
    ({}, None),
    ({"Content-Length": "unknown"}, None),
])
def test_content_length(headers, expected):
    assert content_length(FakeResponse(headers=headers)) == expected


def test_empty_plan(tmp_path):
    assert BoundedFetcher(show_progress=False).run([]) == []


@pytest.mark.parametrize("parallel", [0, -2])
def test_parallel_must_be_positive(parallel):
    with pytest.raises(ConfigurationError):
        BoundedFetcher(parallel=parallel)


def test_aggregator_counts_every_finished_task():
    with ProgressAggregator(3, disable=True) as aggregator:
        reporter = aggregator.reporter
        reporter.started(0, "a", 10)
        reporter.advanced(0, 10)
        reporter.finished(0)
        reporter.finished(1)
        reporter.finished(2)
    assert aggregator.completed == 3


def test_aggregator_counter_is_monotonic():
    aggregator = ProgressAggregator(3, disable=True)
    seen = []
    inner = aggregator.handle

    def handle(event):
        inner(event)
        seen.append(aggregator.completed)

    aggregator.handle = handle
    with aggregator:
        reporter = aggregator.reporter
        for key in range(3):
            reporter.started(key, f"file{key}")
            reporter.finished(key)
    assert seen == sorted(seen)
    assert seen.count(3) == 1
    assert seen[-1] == 3


def test_progress_event_defaults():
    event = ProgressEvent("finished", 4)
    assert event.amount is None
    assert event.label == ""
