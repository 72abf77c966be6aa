"""Shared fixtures: a tiny taxdump directory, assembly_summary writer and a fake HTTP session."""

import pytest
import requests

from gdl.taxonomy import TaxDump

BANNER = "#   See ftp://ftp.ncbi.nlm.nih.gov/genomes/README_assembly_summary.txt for a description of the columns in this file.\n"
COLUMNS = ["assembly_accession", "bioproject", "taxid", "species_taxid", "organism_name", "assembly_level", "ftp_path"]

# tax_id, parent, scientific name
NODES = [
    ("1", "1", "root"),
    ("2", "1", "Bacteria"),
    ("10", "2", "Escherichia"),
    ("11", "10", "Escherichia coli"),
    ("12", "11", "Escherichia coli K-12"),
    ("20", "2", "Salmonella"),
    ("30", "10", "Clone"),
    ("31", "20", "Clone"),
    ("2157", "1", "Archaea"),
]


def write_taxdump(directory, nodes=NODES, synonyms=()):
    directory.mkdir(parents=True, exist_ok=True)
    with open(directory / "nodes.dmp", "w") as f:
        for tax_id, parent, _ in nodes:
            f.write(f"{tax_id}\t|\t{parent}\t|\tno rank\t|\t\t|\n")
    with open(directory / "names.dmp", "w") as f:
        for tax_id, _, name in nodes:
            f.write(f"{tax_id}\t|\t{name}\t|\t\t|\tscientific name\t|\n")
        for tax_id, name in synonyms:
            f.write(f"{tax_id}\t|\t{name}\t|\t\t|\tsynonym\t|\n")
    return directory


def assembly_row(accession, taxid, level, ftp_path=None, organism="Escherichia coli"):
    if ftp_path is None:
        ftp_path = f"https://ftp.ncbi.nlm.nih.gov/genomes/all/GCF/000/000/000/{accession}_ASM1v1"
    return [accession, "PRJNA1", taxid, taxid, organism, level, ftp_path]


def write_catalog(path, rows, columns=COLUMNS, banner=BANNER, header_prefix="#"):
    with open(path, "w") as f:
        f.write(banner)
        f.write(header_prefix + "\t".join(columns) + "\n")
        for row in rows:
            f.write("\t".join(row) + "\n")
    return path


@pytest.fixture
def taxdump_dir(tmp_path):
    return write_taxdump(tmp_path / "taxdump", synonyms=[("2", "Eubacteria")])


@pytest.fixture
def taxonomy(taxdump_dir):
    return TaxDump.load(taxdump_dir)


@pytest.fixture
def catalog_rows():
    return [
        assembly_row("GCF_000000001.1", "11", "Complete Genome"),
        assembly_row("GCF_000000002.1", "11", "Contig"),
        assembly_row("GCF_000000003.1", "12", "Scaffold"),
        assembly_row("GCF_000000004.1", "20", "Complete Genome", organism="Salmonella enterica"),
        assembly_row("GCF_000000005.1", "10", "Chromosome"),
        assembly_row("GCF_000000006.1", "2157", "Complete Genome", organism="Archaeon"),
    ]


@pytest.fixture
def catalog(tmp_path, catalog_rows):
    return write_catalog(tmp_path / "assembly_summary.txt", catalog_rows)


class FakeResponse:
    def __init__(self, body=b"", status=200, headers=None):
        self.body = body
        self.status_code = status
        self.headers = headers if headers is not None else {"Content-Length": str(len(body))}

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def iter_content(self, chunk_size):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i:i + chunk_size]


class FakeSession:
    def __init__(self, responses):
        self.responses = responses
        self.requested = []

    def get(self, url, stream=False, timeout=None):
        self.requested.append(url)
        response = self.responses.get(url)
        if response is None:
            raise requests.ConnectionError(f"cannot reach {url}")
        return response
