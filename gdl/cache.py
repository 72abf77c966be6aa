"""
Local copies of the NCBI assembly catalog and taxonomy dump.

Both are downloaded once into the working directory and reused on later runs
unless they are missing or a refresh is requested.
"""

import os
import shutil
import tarfile

import requests
from tqdm import tqdm

from gdl.config import CHUNK_SIZE, DEFAULT_TIMEOUT, TAXDUMP_ARCHIVE, TAXDUMP_URL, AssemblySource
from gdl.errors import CacheError, ConfigurationError
from gdl.fetcher import content_length


def download_file(url, destination, desc=None, timeout=DEFAULT_TIMEOUT, session=None):
    """
    Stream url to destination with a byte progress bar.

    The body goes to `destination.part` first, so destination only ever
    holds a complete download.
    """
    getter = session or requests
    partial = f"{destination}.part"
    try:
        with getter.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            total = content_length(response)
            with open(partial, "wb") as out, tqdm(
                total=total, unit="B", unit_scale=True, desc=desc or os.path.basename(destination)
            ) as bar:
                for chunk in response.iter_content(CHUNK_SIZE):
                    out.write(chunk)
                    bar.update(len(chunk))
        os.replace(partial, destination)
    except (requests.RequestException, OSError) as e:
        if os.path.exists(partial):
            os.remove(partial)
        raise CacheError(f"Unable to fetch {url}: {e}") from e
    return destination


def ensure_assembly_summary(source=AssemblySource.REFSEQ, assembly_summary_path=None,
                            no_cache=False, session=None):
    """
    Return the path of the catalog to filter.

    An explicit path is used as is and only combines with source "none";
    otherwise assembly_summary_{source}.txt is fetched when missing or when
    no_cache is set.
    """
    if assembly_summary_path is not None:
        if source is not None and AssemblySource(source) is not AssemblySource.NONE:
            raise ConfigurationError("--source and --assembly_summary_path are mutually exclusive")
        if not os.path.exists(assembly_summary_path):
            raise CacheError(f"Unable to open assembly summary path {assembly_summary_path}")
        return assembly_summary_path

    source = AssemblySource(source or AssemblySource.REFSEQ)
    if source is AssemblySource.NONE:
        raise ConfigurationError("--source none requires --assembly_summary_path")
    path = source.summary_filename
    if no_cache or not os.path.exists(path):
        download_file(source.url, path, session=session)
    return path


def extract_taxdump(archive, taxdump_path):
    """Unpack into a sibling directory and move it into place once complete."""
    taxdump_path = os.path.normpath(taxdump_path)
    staging = f"{taxdump_path}.part"
    shutil.rmtree(staging, ignore_errors=True)
    try:
        os.makedirs(staging)
        with tarfile.open(archive, "r:gz") as tar:
            # extraction filters only exist on newer patch releases
            if hasattr(tarfile, "data_filter"):
                tar.extractall(staging, filter="data")
            else:
                tar.extractall(staging)
        if os.path.exists(taxdump_path):
            shutil.rmtree(taxdump_path)
        os.replace(staging, taxdump_path)
    except (tarfile.TarError, OSError) as e:
        shutil.rmtree(staging, ignore_errors=True)
        raise CacheError(f"Unable to extract {archive}: {e}") from e


def ensure_taxdump(taxdump_path, no_cache=False, session=None):
    if not no_cache and os.path.exists(taxdump_path):
        return taxdump_path
    try:
        download_file(TAXDUMP_URL, TAXDUMP_ARCHIVE, session=session)
        print(f"Extracting taxonomy to {taxdump_path}")
        extract_taxdump(TAXDUMP_ARCHIVE, taxdump_path)
    finally:
        if os.path.exists(TAXDUMP_ARCHIVE):
            os.remove(TAXDUMP_ARCHIVE)
    return taxdump_path
