"""
Plain data passed between the filter, the fetch plan and the fetcher.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class CatalogRecord:
    """One retained row of assembly_summary.txt."""
    taxid: str
    ftp_path: str
    assembly_level: str


@dataclass(frozen=True)
class FetchTask:
    remote_path: str
    url: str
    filename: str
    out_dir: Path

    @property
    def destination(self) -> Path:
        return Path(self.out_dir) / self.filename


@dataclass(frozen=True)
class FetchOutcome:
    remote_path: str
    ok: bool
    reason: Optional[str] = None

    @classmethod
    def success(cls, remote_path):
        return cls(remote_path, True)

    @classmethod
    def failure(cls, remote_path, reason):
        return cls(remote_path, False, reason)


@dataclass
class BatchSummary:
    records_considered: int = 0
    records_matched_filter: int = 0
    fetch_attempted: int = 0
    fetch_succeeded: int = 0
    fetch_failed: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)

    def add(self, outcome: FetchOutcome):
        if outcome.ok:
            self.fetch_succeeded += 1
        else:
            self.fetch_failed += 1
            self.failures.append((outcome.remote_path, outcome.reason))
