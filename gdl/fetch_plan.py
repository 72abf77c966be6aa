"""
Turn filtered catalog records into download tasks.

An NCBI ftp_path such as
    https://ftp.ncbi.nlm.nih.gov/genomes/all/GCF/000/005/845/GCF_000005845.2_ASM584v2
holds files named after its last path segment, e.g.
    GCF_000005845.2_ASM584v2_genomic.fna.gz
which is saved locally as GCF_000005845.2_ASM584v2.fna.gz.
"""

from pathlib import Path

from gdl.config import AssemblyFormat
from gdl.errors import MalformedRemotePath
from gdl.records import FetchOutcome, FetchTask


def assembly_basename(ftp_path):
    stripped = ftp_path.rstrip("/")
    if "/" not in stripped:
        raise MalformedRemotePath(ftp_path)
    basename = stripped.rsplit("/", 1)[1]
    if not basename:
        raise MalformedRemotePath(ftp_path)
    return stripped, basename


def assembly_urls(ftp_path, fmt=AssemblyFormat.FNA):
    """Return (download url, local filename) for one assembly."""
    fmt = AssemblyFormat(fmt)
    base_path, basename = assembly_basename(ftp_path)
    url = f"{base_path}/{basename}_genomic.{fmt.extension}.gz"
    return url, f"{basename}.{fmt.extension}.gz"


def build_fetch_plan(records, fmt=AssemblyFormat.FNA, out_dir="."):
    """
    Returns (tasks, rejected). A record whose ftp_path has no "/" cannot be
    named and is returned as a failed outcome instead of a task.
    """
    out_dir = Path(out_dir)
    tasks, rejected = [], []
    for record in records:
        try:
            url, filename = assembly_urls(record.ftp_path, fmt)
        except MalformedRemotePath as e:
            rejected.append(FetchOutcome.failure(record.ftp_path, f"MalformedRemotePath: {e}"))
            continue
        tasks.append(FetchTask(record.ftp_path, url, filename, out_dir))
    return tasks, rejected
