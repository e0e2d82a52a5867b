"""Read counts per genic element.

Counts the copy number of reads lying fully inside each gene, transcript,
exon and intron.

- A transcript's exonic count is the sum of its exon counts and its
  intronic count the sum of its intron counts.
- A gene's exonic count is measured on the union of the exons of its
  transcripts.

Per-nucleotide values divide a count by the element length; an empty
intronic length gives ``NA``.

Example:
    >>> from clipseqtools.analysis.counts import count_tags_per_genic_element
    >>> counts = count_tags_per_genic_element(reads, transcripts)
    >>> counts.transcript_rows[0][:5]
    ['NM_001', 'chr1:999-1998:+', 1000, 'GENE1', 12]
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import attrs

from clipseqtools.io.annotation import genes_from_transcripts
from clipseqtools.io.tables import output_path, write_table

if TYPE_CHECKING:
    from clipseqtools.io.annotation import Transcript
    from clipseqtools.io.reads import ReadsCollection
    from clipseqtools.utils.intervals import GenomicInterval

logger = logging.getLogger(__name__)

GENE_HEADER = [
    "gene_name",
    "gene_location",
    "gene_length",
    "gene_count",
    "gene_count_per_nt",
    "gene_exonic_count",
    "gene_exonic_length",
    "gene_exonic_count_per_nt",
]

TRANSCRIPT_HEADER = [
    "transcript_id",
    "transcript_location",
    "transcript_length",
    "gene_name",
    "transcript_count",
    "transcript_count_per_nt",
    "transcript_exonic_count",
    "transcript_exonic_length",
    "transcript_exonic_count_per_nt",
    "transcript_intronic_count",
    "transcript_intronic_length",
    "transcript_intronic_count_per_nt",
]

EXON_HEADER = [
    "transcript_id",
    "exon_location",
    "exon_length",
    "gene_name",
    "exon_count",
    "exon_count_per_nt",
]

INTRON_HEADER = [
    "transcript_id",
    "intron_location",
    "intron_length",
    "gene_name",
    "intron_count",
    "intron_count_per_nt",
]


def _per_nt(count: int, length: int) -> float | None:
    return count / length if length > 0 else None


def _contained(reads: ReadsCollection, region: GenomicInterval) -> int:
    return reads.total_copy_number_contained_in(
        region.strand, region.rname, region.start, region.stop
    )


@attrs.define(slots=True)
class GenicElementCounts:
    """Rows of the four count tables."""

    gene_rows: list[list] = attrs.Factory(list)
    transcript_rows: list[list] = attrs.Factory(list)
    exon_rows: list[list] = attrs.Factory(list)
    intron_rows: list[list] = attrs.Factory(list)


def count_tags_per_genic_element(
    reads: ReadsCollection,
    transcripts: list[Transcript],
) -> GenicElementCounts:
    """Copy number of reads contained in every gene, transcript, exon and intron.

    Args:
        reads: Library reads.
        transcripts: Annotated transcripts (coding and non-coding).

    Returns:
        GenicElementCounts with one row per element.
    """
    counts = GenicElementCounts()

    for transcript in transcripts:
        gene_name = transcript.gene_name or transcript.gene_id

        exonic_count = 0
        for exon in transcript.exons:
            exon_count = _contained(reads, exon)
            exonic_count += exon_count
            counts.exon_rows.append(
                [
                    transcript.transcript_id,
                    exon.location,
                    exon.length,
                    gene_name,
                    exon_count,
                    _per_nt(exon_count, exon.length),
                ]
            )

        intronic_count = 0
        for intron in transcript.introns:
            intron_count = _contained(reads, intron)
            intronic_count += intron_count
            counts.intron_rows.append(
                [
                    transcript.transcript_id,
                    intron.location,
                    intron.length,
                    gene_name,
                    intron_count,
                    _per_nt(intron_count, intron.length),
                ]
            )

        transcript_count = _contained(reads, transcript.span)
        counts.transcript_rows.append(
            [
                transcript.transcript_id,
                transcript.location,
                transcript.length,
                gene_name,
                transcript_count,
                _per_nt(transcript_count, transcript.length),
                exonic_count,
                transcript.exonic_length,
                _per_nt(exonic_count, transcript.exonic_length),
                intronic_count,
                transcript.intronic_length,
                _per_nt(intronic_count, transcript.intronic_length),
            ]
        )

    for gene in genes_from_transcripts(transcripts):
        gene_count = reads.total_copy_number_contained_in(
            gene.strand, gene.rname, gene.start, gene.stop
        )
        exonic_regions = gene.exonic_regions
        exonic_count = sum(_contained(reads, region) for region in exonic_regions)
        exonic_length = sum(region.length for region in exonic_regions)
        counts.gene_rows.append(
            [
                gene.name,
                gene.location,
                gene.length,
                gene_count,
                _per_nt(gene_count, gene.length),
                exonic_count,
                exonic_length,
                _per_nt(exonic_count, exonic_length),
            ]
        )

    logger.info(
        f"Counted reads on {len(counts.gene_rows)} genes and "
        f"{len(counts.transcript_rows)} transcripts"
    )
    return counts


def write_genic_element_counts(counts: GenicElementCounts, o_prefix: Path | str) -> list[Path]:
    """Write ``counts.{gene,transcript,exon,intron}.tab`` under a prefix.

    Returns:
        Paths written.
    """
    tables = [
        ("counts.gene.tab", GENE_HEADER, counts.gene_rows),
        ("counts.transcript.tab", TRANSCRIPT_HEADER, counts.transcript_rows),
        ("counts.exon.tab", EXON_HEADER, counts.exon_rows),
        ("counts.intron.tab", INTRON_HEADER, counts.intron_rows),
    ]
    paths = []
    for name, header, rows in tables:
        path = output_path(o_prefix, name)
        write_table(path, header, rows)
        paths.append(path)
    return paths
