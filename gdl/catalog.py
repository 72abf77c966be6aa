"""
Streaming filter over NCBI assembly_summary.txt.

The file starts with a free-text banner line, then a tab separated header
(first column prefixed with "#"), then one assembly per line. Rows are kept
when their taxid is in the wanted set and, if levels are given, their
assembly_level is one of them. Comparisons are plain string equality.
"""

import csv
import os
import sys

from tqdm import tqdm

from gdl.config import ASSEMBLY_LEVEL_COLUMN, FTP_PATH_COLUMN, TAXID_COLUMN
from gdl.errors import CatalogParseError
from gdl.records import CatalogRecord

REQUIRED_COLUMNS = (TAXID_COLUMN, FTP_PATH_COLUMN, ASSEMBLY_LEVEL_COLUMN)

csv.field_size_limit(sys.maxsize)


def parse_header(fields):
    names = list(fields)
    if names:
        names[0] = names[0].lstrip("#").strip()
    return names


class CatalogFilter:
    """
    Single pass iterator of CatalogRecord for the rows that pass the filter.

    Iterating reads the file once, top to bottom. `considered` and `matched`
    count data rows seen and rows yielded so far.
    """

    def __init__(self, path, tax_ids, assembly_levels=None, on_bytes=None):
        self.path = path
        self.tax_ids = tax_ids
        self.assembly_levels = set(assembly_levels) if assembly_levels else None
        self.on_bytes = on_bytes
        self.considered = 0
        self.matched = 0
        self.line_number = 0
        self._started = False

    def keep(self, taxid, assembly_level):
        if taxid not in self.tax_ids:
            return False
        return self.assembly_levels is None or assembly_level in self.assembly_levels

    def _lines(self, handle):
        for line_number, raw in enumerate(handle, 1):
            self.line_number = line_number
            if self.on_bytes is not None:
                self.on_bytes(len(raw))
            try:
                line = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise CatalogParseError(self.path, self.line_number, f"undecodable bytes ({e.reason})") from e
            yield line.rstrip("\r\n")

    def __iter__(self):
        if self._started:
            raise RuntimeError("CatalogFilter can only be iterated once")
        self._started = True

        with open(self.path, "rb") as handle:
            lines = self._lines(handle)
            # banner line, not part of the table
            if next(lines, None) is None:
                raise CatalogParseError(self.path, 1, "empty catalog")
            reader = csv.reader(lines, delimiter="\t", quoting=csv.QUOTE_NONE)
            header = next(reader, None)
            if header is None:
                raise CatalogParseError(self.path, 2, "missing column header")
            columns = parse_header(header)
            missing = [c for c in REQUIRED_COLUMNS if c not in columns]
            if missing:
                raise CatalogParseError(self.path, 2, f"missing columns: {', '.join(missing)}")
            taxid_i, ftp_i, level_i = (columns.index(c) for c in REQUIRED_COLUMNS)

            for fields in reader:
                if not fields:
                    continue
                if len(fields) != len(columns):
                    raise CatalogParseError(
                        self.path, self.line_number,
                        f"expected {len(columns)} fields, found {len(fields)}",
                    )
                self.considered += 1
                if self.keep(fields[taxid_i], fields[level_i]):
                    self.matched += 1
                    yield CatalogRecord(fields[taxid_i], fields[ftp_i], fields[level_i])


def filter_assemblies(assembly_summary_path, tax_ids, assembly_levels=None, show_progress=True):
    """
    Return (records, n_considered) for the assemblies under tax_ids.

    Only the kept records are held in memory.
    """
    with tqdm(
        total=os.path.getsize(assembly_summary_path),
        unit="B",
        unit_scale=True,
        desc=f"Filtering {assembly_summary_path}",
        disable=not show_progress,
    ) as bar:
        catalog = CatalogFilter(assembly_summary_path, tax_ids, assembly_levels, on_bytes=bar.update)
        records = list(catalog)
        bar.set_postfix_str(f"kept {len(records)} assemblies")
    return records, catalog.considered
