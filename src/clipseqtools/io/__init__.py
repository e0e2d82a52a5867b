"""Input/output handlers for clipseqtools.

- BED and SAM/BAM reads (``clipseqtools.io.bed``, ``clipseqtools.io.bam``)
- Typed read filters
- GTF transcript annotation
- Chromosome sizes
- TSV output tables

Example:
    >>> from clipseqtools.io import read_bed, read_transcripts
    >>> reads = read_bed("library.bed")
    >>> transcripts = read_transcripts("genes.gtf")
"""

from clipseqtools.io.annotation import (
    Gene,
    GTFParser,
    Transcript,
    genes_from_transcripts,
    read_transcripts,
)
from clipseqtools.io.bed import read_bed
from clipseqtools.io.filters import ColumnCondition, ReadFilter, parse_filter_expression
from clipseqtools.io.reads import IntervalReadsCollection, Read, ReadsCollection
from clipseqtools.io.sizes import read_rname_sizes
from clipseqtools.io.tables import write_table

__all__: list[str] = [
    # Reads
    "Read",
    "ReadsCollection",
    "IntervalReadsCollection",
    "read_bed",
    # Filters
    "ColumnCondition",
    "ReadFilter",
    "parse_filter_expression",
    # Annotation
    "Gene",
    "GTFParser",
    "Transcript",
    "genes_from_transcripts",
    "read_transcripts",
    # Sizes and tables
    "read_rname_sizes",
    "write_table",
]
