"""Pytest configuration and shared fixtures for clipseqtools tests.

This module contains fixtures that are shared across multiple test modules.
Fixtures are organized by category:

- Synthetic file fixtures: BED, GTF and sizes files written to tmp_path
- Data fixtures: Reads collections and transcripts built in memory
"""

from pathlib import Path

import pytest

from clipseqtools.io.annotation import read_transcripts
from clipseqtools.io.reads import IntervalReadsCollection, Read
from clipseqtools.utils.intervals import MINUS, PLUS


# =============================================================================
# Synthetic File Fixtures
# =============================================================================


@pytest.fixture
def sizes_file(tmp_path: Path) -> Path:
    """Sizes file for a two-chromosome genome.

    - chr1: 1000 bp
    - chr2: 500 bp
    """
    path = tmp_path / "genome.sizes"
    path.write_text("chr1\t1000\nchr2\t500\n")
    return path


@pytest.fixture
def bed_file(tmp_path: Path) -> Path:
    """BED file with reads on both chromosomes and strands.

    Coordinates are half-open; stored reads are:
    - chr1:100-199:+ (copy number 1)
    - chr1:300-349:- (copy number 4)
    - chr2:10-29:+ (copy number 2)
    """
    path = tmp_path / "reads.bed"
    path.write_text(
        "track name=reads\n"
        "chr1\t100\t200\tr1\t1\t+\n"
        "chr1\t300\t350\tr2\t4\t-\n"
        "chr2\t10\t30\tr3\t2\t+\n"
    )
    return path


@pytest.fixture
def reference_bed_file(tmp_path: Path) -> Path:
    """Reference library overlapping the first read of bed_file on the same strand."""
    path = tmp_path / "reference.bed"
    path.write_text("chr1\t150\t160\tq1\t1\t+\nchr1\t600\t610\tq2\t1\t-\n")
    return path


@pytest.fixture
def gtf_file(tmp_path: Path) -> Path:
    """GTF with one coding plus-strand, one coding minus-strand and one non-coding transcript.

    TX1 (GENE1, chr1, +): exons 101-300 and 401-700 (1-based),
        CDS 201-300 and 401-600, stop_codon 601-603.
    TX2 (GENE2, chr1, -): single exon 801-900, CDS 831-870.
    NC1 (GENE3, chr2, +): exons 1-100 and 201-300, no CDS.
    """
    path = tmp_path / "genes.gtf"
    rows = [
        ("chr1", "exon", 101, 300, "+", "GENE1", "TX1"),
        ("chr1", "exon", 401, 700, "+", "GENE1", "TX1"),
        ("chr1", "CDS", 201, 300, "+", "GENE1", "TX1"),
        ("chr1", "CDS", 401, 600, "+", "GENE1", "TX1"),
        ("chr1", "stop_codon", 601, 603, "+", "GENE1", "TX1"),
        ("chr1", "exon", 801, 900, "-", "GENE2", "TX2"),
        ("chr1", "CDS", 831, 870, "-", "GENE2", "TX2"),
        ("chr2", "exon", 1, 100, "+", "GENE3", "NC1"),
        ("chr2", "exon", 201, 300, "+", "GENE3", "NC1"),
    ]
    lines = ["#!genome-build test"]
    for rname, feature, start, end, strand, gene, tx in rows:
        attributes = f'gene_id "{gene}"; transcript_id "{tx}"; gene_name "{gene}";'
        lines.append(f"{rname}\ttest\t{feature}\t{start}\t{end}\t.\t{strand}\t.\t{attributes}")
    path.write_text("\n".join(lines) + "\n")
    return path


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def transcripts(gtf_file: Path):
    """Transcripts parsed from gtf_file."""
    return read_transcripts(gtf_file)


@pytest.fixture
def small_reads() -> IntervalReadsCollection:
    """Reads on chr1 placed inside TX1 and TX2 of gtf_file."""
    return IntervalReadsCollection.from_reads(
        [
            Read("chr1", 110, 129, PLUS, copy_number=2),  # TX1 5'UTR
            Read("chr1", 250, 269, PLUS, copy_number=1),  # TX1 CDS, exon 1
            Read("chr1", 330, 349, PLUS, copy_number=5),  # TX1 intron
            Read("chr1", 650, 669, PLUS, copy_number=3),  # TX1 3'UTR
            Read("chr1", 850, 859, MINUS, copy_number=1),  # TX2 CDS
            Read("chr1", 250, 269, MINUS, copy_number=7),  # antisense to TX1
        ]
    )
