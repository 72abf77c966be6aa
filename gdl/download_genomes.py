"""
Downloads every NCBI genome assembly under a taxon.

usage:
gdl --tax_name Escherichia --assembly_level "Complete Genome" --parallel 8 --out_dir genomes
gdl --tax_id 562 --no-children --format gbff --dry_run

The RefSeq (or GenBank) assembly_summary.txt and the NCBI taxdump are cached in
the working directory; pass --no_cache to fetch fresh copies.
"""

import argparse
import os
import sys

from gdl.config import DEFAULT_PARALLEL, DEFAULT_TAXDUMP_PATH, DEFAULT_TIMEOUT, AssemblyFormat, AssemblySource
from gdl.errors import GdlError
from gdl.pipeline import RunConfig, print_summary, run_pipeline


def positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(description="download NCBI genome assemblies for a taxon and its descendants.")

    taxon = parser.add_mutually_exclusive_group(required=True)
    taxon.add_argument('-t', '--tax_id', type=str, help='tax ID to download assemblies for (includes descendants unless --no-children)')
    taxon.add_argument('-n', '--tax_name', type=str, help='scientific name to download assemblies for (must match exactly one taxon)')
    parser.add_argument('-c', '--children', action=argparse.BooleanOptionalAction, default=True, help='include assemblies of descendant tax IDs')
    parser.add_argument('-l', '--assembly_level', action='append', default=[], help='keep assemblies with this assembly_level (repeatable, default: all levels)')

    parser.add_argument('-f', '--format', type=AssemblyFormat, choices=list(AssemblyFormat), default=AssemblyFormat.FNA, help='file type to download')
    parser.add_argument('-o', '--out_dir', type=os.path.abspath, default='.', help='directory to download assemblies to')
    parser.add_argument('-p', '--parallel', type=positive_int, default=DEFAULT_PARALLEL, help='number of simultaneous downloads')
    parser.add_argument('--timeout', type=positive_int, default=DEFAULT_TIMEOUT, help='seconds to wait on a stalled connection')

    parser.add_argument('-s', '--source', type=AssemblySource, choices=list(AssemblySource), default=None, help='assembly catalog to use (default: refseq)')
    parser.add_argument('-a', '--assembly_summary_path', type=os.path.abspath, default=None, help='use this assembly_summary.txt instead of downloading one (with --source none)')
    parser.add_argument('--taxdump_path', type=os.path.abspath, default=DEFAULT_TAXDUMP_PATH, help='path to extracted taxdump.tar.gz')
    parser.add_argument('--no_cache', action='store_true', help='re-fetch assembly_summary.txt and taxdump')
    parser.add_argument('--dry_run', action='store_true', help='do not actually download anything')
    parser.add_argument('-r', '--report', type=os.path.abspath, default=None, help='write failed downloads to this TSV')
    parser.add_argument('-q', '--quiet', action='store_true', help='hide progress bars')
    return parser


def config_from_args(args):
    return RunConfig(
        tax_id=args.tax_id,
        tax_name=args.tax_name,
        include_descendants=args.children,
        assembly_levels=args.assembly_level,
        format=args.format,
        source=args.source,
        assembly_summary_path=args.assembly_summary_path,
        taxdump_path=args.taxdump_path,
        out_dir=args.out_dir,
        parallel=args.parallel,
        timeout=args.timeout,
        dry_run=args.dry_run,
        no_cache=args.no_cache,
        report=args.report,
        show_progress=not args.quiet,
    )


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        summary = run_pipeline(config_from_args(args))
    except GdlError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    print_summary(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
