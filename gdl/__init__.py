"""
gdl: download the NCBI genome assemblies under a taxon.

resolve_tax_id / descendant_set - the tax IDs to keep
CatalogFilter / filter_assemblies - matching rows of assembly_summary.txt
build_fetch_plan - one download per assembly
BoundedFetcher - downloads with a fixed number of parallel transfers
run_pipeline - all of the above
"""

from .config import AssemblyFormat, AssemblySource
from .taxonomy import TaxDump, resolve_tax_id, descendant_set
from .catalog import CatalogFilter, filter_assemblies
from .fetch_plan import build_fetch_plan
from .fetcher import BoundedFetcher
from .pipeline import RunConfig, run_pipeline

__all__ = [
    'AssemblyFormat', 'AssemblySource', 'TaxDump', 'resolve_tax_id', 'descendant_set',
    'CatalogFilter', 'filter_assemblies', 'build_fetch_plan', 'BoundedFetcher',
    'RunConfig', 'run_pipeline',
]
