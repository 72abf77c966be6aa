"""
Download a fetch plan with at most `parallel` transfers in flight.

Each task is attempted once. A network or filesystem error fails that task
only; the rest of the batch keeps going and the failures are reported in the
summary.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import requests
from requests.adapters import HTTPAdapter

from gdl.config import CHUNK_SIZE, DEFAULT_PARALLEL, DEFAULT_TIMEOUT
from gdl.errors import ConfigurationError
from gdl.progress import ProgressAggregator
from gdl.records import FetchOutcome


class TaskProgress:
    """Byte progress of one task, forwarded to the aggregator."""

    def __init__(self, reporter, key, label):
        self._reporter = reporter
        self._key = key
        self._label = label
        self._started = False

    def start(self, total_bytes=None):
        if not self._started:
            self._started = True
            self._reporter.started(self._key, self._label, total_bytes)

    def advance(self, n_bytes):
        self.start()
        self._reporter.advanced(self._key, n_bytes)


def content_length(response):
    value = response.headers.get("Content-Length")
    if value is None or not value.isdigit():
        return None
    return int(value)


def make_session(parallel):
    """One Session for the whole batch, with a connection pool per worker."""
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=parallel, pool_maxsize=parallel)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def http_fetch(session, task, progress, timeout=DEFAULT_TIMEOUT):
    """GET task.url and stream the body into task.destination."""
    with session.get(task.url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        progress.start(content_length(response))
        with open(task.destination, "wb") as out:
            for chunk in response.iter_content(CHUNK_SIZE):
                if chunk:
                    out.write(chunk)
                    progress.advance(len(chunk))


class BoundedFetcher:
    """
    Runs fetch tasks on a pool of `parallel` threads.

    `fetch(task, progress)` does the transfer; it defaults to a streaming GET
    through one shared requests.Session. A slot from a bounded semaphore is
    held for the whole transfer and released whether it succeeds or not.
    """

    def __init__(self, parallel=DEFAULT_PARALLEL, fetch=None, session=None,
                 timeout=DEFAULT_TIMEOUT, show_progress=True, per_file_progress=True):
        if parallel < 1:
            raise ConfigurationError(f"--parallel must be at least 1, got {parallel}")
        self.parallel = parallel
        self.timeout = timeout
        self.show_progress = show_progress
        self.per_file_progress = per_file_progress
        self.session = session
        self._fetch = fetch
        self._slots = threading.BoundedSemaphore(parallel)
        self.completed = 0

    def fetch(self, task, progress):
        if self._fetch is not None:
            return self._fetch(task, progress)
        return http_fetch(self.session, task, progress, timeout=self.timeout)

    def _attempt(self, key, task, reporter):
        progress = TaskProgress(reporter, key, task.filename)
        with self._slots:
            try:
                self.fetch(task, progress)
            except (requests.RequestException, OSError) as e:
                return FetchOutcome.failure(task.remote_path, f"{type(e).__name__}: {e}")
            finally:
                reporter.finished(key)
        return FetchOutcome.success(task.remote_path)

    def run(self, tasks, desc=None):
        """Attempt every task once; returns outcomes in plan order."""
        tasks = list(tasks)
        if not tasks:
            return []
        owns_session = self._fetch is None and self.session is None
        if owns_session:
            self.session = make_session(self.parallel)
        desc = desc or f"Downloading {len(tasks)} assemblies"
        try:
            with ProgressAggregator(len(tasks), desc=desc, disable=not self.show_progress,
                                    per_file=self.per_file_progress) as aggregator:
                reporter = aggregator.reporter
                with ThreadPoolExecutor(max_workers=self.parallel) as pool:
                    futures = [pool.submit(self._attempt, key, task, reporter)
                               for key, task in enumerate(tasks)]
                    outcomes = [future.result() for future in futures]
            self.completed = aggregator.completed
            return outcomes
        finally:
            if owns_session:
                self.session.close()
                self.session = None
