"""
Default locations and constants for gdl.

NCBI publishes one assembly catalog per source and a single taxonomy dump;
both are cached in the working directory between runs.
"""

from enum import Enum

TAXDUMP_URL = "https://ftp.ncbi.nih.gov/pub/taxonomy/taxdump.tar.gz"
TAXDUMP_ARCHIVE = "taxdump.tar.gz"
DEFAULT_TAXDUMP_PATH = "taxdump"

# assembly_summary columns this package reads
TAXID_COLUMN = "taxid"
FTP_PATH_COLUMN = "ftp_path"
ASSEMBLY_LEVEL_COLUMN = "assembly_level"

DEFAULT_PARALLEL = 1
DEFAULT_TIMEOUT = 60
CHUNK_SIZE = 1 << 16


class AssemblyFormat(str, Enum):
    FNA = "fna"
    FAA = "faa"
    GBFF = "gbff"
    GFF = "gff"

    def __str__(self):
        return self.value

    @property
    def extension(self):
        return self.value


class AssemblySource(str, Enum):
    REFSEQ = "refseq"
    GENBANK = "genbank"
    NONE = "none"

    def __str__(self):
        return self.value

    @property
    def url(self):
        if self is AssemblySource.NONE:
            raise ValueError("source 'none' has no download URL")
        return f"https://ftp.ncbi.nlm.nih.gov/genomes/ASSEMBLY_REPORTS/assembly_summary_{self.value}.txt"

    @property
    def summary_filename(self):
        return f"assembly_summary_{self.value}.txt"
