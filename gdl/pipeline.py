"""
The whole run: resolve the taxon, filter the catalog, plan and download.

    config = RunConfig(tax_name="Escherichia", assembly_levels=["Complete Genome"], parallel=8)
    summary = run_pipeline(config)
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from gdl.cache import ensure_assembly_summary, ensure_taxdump
from gdl.catalog import filter_assemblies
from gdl.config import DEFAULT_PARALLEL, DEFAULT_TAXDUMP_PATH, DEFAULT_TIMEOUT, AssemblyFormat
from gdl.errors import ConfigurationError
from gdl.fetch_plan import build_fetch_plan
from gdl.fetcher import BoundedFetcher
from gdl.records import BatchSummary
from gdl.taxonomy import TaxDump, descendant_set, resolve_tax_id


@dataclass
class RunConfig:
    tax_id: Optional[str] = None
    tax_name: Optional[str] = None
    include_descendants: bool = True
    assembly_levels: List[str] = field(default_factory=list)
    format: AssemblyFormat = AssemblyFormat.FNA
    source: Optional[str] = None
    assembly_summary_path: Optional[str] = None
    taxdump_path: str = DEFAULT_TAXDUMP_PATH
    out_dir: str = "."
    parallel: int = DEFAULT_PARALLEL
    timeout: int = DEFAULT_TIMEOUT
    dry_run: bool = False
    no_cache: bool = False
    report: Optional[str] = None
    show_progress: bool = True

    def validate(self):
        if (self.tax_id is None) == (self.tax_name is None):
            raise ConfigurationError("Either --tax_id or --tax_name must be provided, but not both")
        if self.parallel < 1:
            raise ConfigurationError(f"--parallel must be at least 1, got {self.parallel}")
        self.format = AssemblyFormat(self.format)

    @property
    def needs_taxonomy(self):
        return self.tax_name is not None or self.include_descendants


def load_taxonomy(taxdump_path):
    print(f"Loading taxonomy from {taxdump_path}")
    taxonomy = TaxDump.load(taxdump_path)
    print(f"Loaded {len(taxonomy)} taxa")
    return taxonomy


def summarize(considered, matched, rejected, outcomes):
    summary = BatchSummary(
        records_considered=considered,
        records_matched_filter=matched,
        fetch_attempted=len(outcomes),
    )
    for outcome in list(rejected) + list(outcomes):
        summary.add(outcome)
    return summary


def write_failure_report(summary, path):
    df = pd.DataFrame(summary.failures, columns=["ftp_path", "reason"])
    df.to_csv(path, sep="\t", index=False)


def print_summary(summary):
    print(f"Considered: {summary.records_considered}")
    print(f"Matched:    {summary.records_matched_filter}")
    print(f"Attempted:  {summary.fetch_attempted}")
    print(f"Succeeded:  {summary.fetch_succeeded}")
    print(f"Failed:     {summary.fetch_failed}")
    for remote_path, reason in summary.failures:
        print(f"  FAILED {remote_path}: {reason}")


def run_pipeline(config, taxonomy=None, fetcher=None):
    """
    Run one download batch and return its BatchSummary.

    Resolution, configuration and catalog errors propagate. Individual
    download failures only show up in the summary.
    """
    config.validate()

    catalog_path = ensure_assembly_summary(
        config.source, config.assembly_summary_path, no_cache=config.no_cache
    )
    if taxonomy is None and config.needs_taxonomy:
        ensure_taxdump(config.taxdump_path, no_cache=config.no_cache)
        taxonomy = load_taxonomy(config.taxdump_path)

    root = resolve_tax_id(taxonomy, tax_id=config.tax_id, tax_name=config.tax_name)
    tax_ids = descendant_set(taxonomy, root, config.include_descendants)
    name = taxonomy.name(root) if taxonomy is not None else None
    print(f"Selected tax ID {root}" + (f" ({name})" if name else "") + f", {len(tax_ids)} taxa")

    records, considered = filter_assemblies(
        catalog_path, tax_ids, config.assembly_levels, show_progress=config.show_progress
    )
    print(f"Kept {len(records)} assemblies")

    tasks, rejected = build_fetch_plan(records, config.format, config.out_dir)

    if config.dry_run:
        print(f"Dry run: would download {len(tasks)} assemblies in {config.format.value} format")
        summary = summarize(considered, len(records), rejected, [])
    else:
        os.makedirs(config.out_dir, exist_ok=True)
        if fetcher is None:
            fetcher = BoundedFetcher(config.parallel, timeout=config.timeout,
                                     show_progress=config.show_progress)
        outcomes = fetcher.run(
            tasks, desc=f"Downloading {len(tasks)} assemblies in {config.format.value} format"
        )
        summary = summarize(considered, len(records), rejected, outcomes)
        print(f"Saved {summary.fetch_succeeded} assemblies to {config.out_dir}")

    if config.report is not None:
        write_failure_report(summary, config.report)
    return summary
