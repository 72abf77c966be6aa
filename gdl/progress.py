"""
Progress display for a batch of downloads.

Workers never touch a progress bar. They post events on a queue and one
aggregator thread owns the bars and the completed-task counter.
"""

import queue
import threading
from dataclasses import dataclass
from typing import Optional

from tqdm import tqdm


@dataclass(frozen=True)
class ProgressEvent:
    kind: str  # "started", "advanced" or "finished"
    key: int
    amount: Optional[int] = None
    label: str = ""


class ProgressReporter:
    """Handle given to workers; every call is a non-blocking queue put."""

    def __init__(self, events):
        self._events = events

    def started(self, key, label, total_bytes=None):
        self._events.put(ProgressEvent("started", key, total_bytes, label))

    def advanced(self, key, n_bytes):
        self._events.put(ProgressEvent("advanced", key, n_bytes))

    def finished(self, key):
        self._events.put(ProgressEvent("finished", key))


class ProgressAggregator:
    """
    Context manager running the thread that renders progress.

    `completed` only ever goes up and equals `total` once every task has
    reported "finished".
    """

    _STOP = object()

    def __init__(self, total, desc="Downloading", disable=False, per_file=True):
        self.total = total
        self.desc = desc
        self.disable = disable
        self.per_file = per_file
        self.completed = 0
        self._events = queue.Queue()
        self._thread = threading.Thread(target=self._run, name="gdl-progress", daemon=True)
        self._bars = {}
        self._overall = None

    @property
    def reporter(self):
        return ProgressReporter(self._events)

    def __enter__(self):
        self._thread.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self._events.put(self._STOP)
        self._thread.join()
        return False

    def _file_bar(self, event):
        if not self.per_file or self.disable:
            return None
        return tqdm(
            total=event.amount,
            desc=event.label,
            unit="B",
            unit_scale=True,
            leave=False,
        )

    def handle(self, event):
        if event.kind == "started":
            self._bars[event.key] = self._file_bar(event)
        elif event.kind == "advanced":
            bar = self._bars.get(event.key)
            if bar is not None:
                bar.update(event.amount)
        elif event.kind == "finished":
            bar = self._bars.pop(event.key, None)
            if bar is not None:
                bar.close()
            self.completed += 1
            self._overall.update(1)

    def _run(self):
        self._overall = tqdm(total=self.total, desc=self.desc, unit="file", disable=self.disable)
        try:
            while True:
                event = self._events.get()
                if event is self._STOP:
                    break
                self.handle(event)
        finally:
            for bar in self._bars.values():
                if bar is not None:
                    bar.close()
            self._overall.close()
