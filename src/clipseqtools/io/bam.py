"""SAM/BAM reads reader.

Loads aligned CLIP-Seq reads from a SAM or BAM file through pysam.

Features:
    - Copy number taken from the ``XC:i`` tag when present
    - Number of mappings from the ``NH:i`` tag
    - Mismatch string from the ``MD:Z`` tag (kept as the ``mdz`` annotation)
    - Unmapped, secondary and supplementary records are skipped

Example:
    >>> from clipseqtools.io.bam import read_alignments
    >>> reads = read_alignments("library.bam")
    >>> reads.distinct_reference_names()
    ['chr1', 'chr2']
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pysam

from clipseqtools.io.filters import ReadFilter
from clipseqtools.io.reads import IntervalReadsCollection, Read
from clipseqtools.utils.intervals import MINUS, PLUS

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

COPY_NUMBER_TAG = "XC"
MAPPINGS_TAG = "NH"
MISMATCH_TAG = "MD"


def alignment_to_read(segment: pysam.AlignedSegment) -> Read:
    """Convert a mapped pysam segment into a Read.

    Args:
        segment: Mapped alignment.

    Returns:
        Read with closed 0-based coordinates.
    """
    copy_number = 1
    if segment.has_tag(COPY_NUMBER_TAG):
        copy_number = int(segment.get_tag(COPY_NUMBER_TAG))

    number_of_mappings = None
    if segment.has_tag(MAPPINGS_TAG):
        number_of_mappings = int(segment.get_tag(MAPPINGS_TAG))

    annotations = {}
    if segment.has_tag(MISMATCH_TAG):
        annotations["mdz"] = segment.get_tag(MISMATCH_TAG)

    start = segment.reference_start
    stop = segment.reference_end - 1

    return Read(
        segment.reference_name,
        start,
        stop,
        MINUS if segment.is_reverse else PLUS,
        copy_number=copy_number,
        sequence=segment.query_sequence,
        cigar=segment.cigarstring,
        query_length=segment.query_length,
        alignment_length=stop - start + 1,
        number_of_mappings=number_of_mappings,
        annotations=annotations,
    )


def iter_alignments(path: Path | str) -> Iterator[Read]:
    """Stream mapped primary alignments from a SAM/BAM file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Alignment file not found: {path}")

    skipped = 0
    with pysam.AlignmentFile(str(path), "r") as alignments:
        for segment in alignments.fetch(until_eof=True):
            if segment.is_unmapped or segment.is_secondary or segment.is_supplementary:
                skipped += 1
                continue
            yield alignment_to_read(segment)

    if skipped:
        logger.debug(f"Skipped {skipped} unmapped/secondary/supplementary records")


def read_alignments(
    path: Path | str,
    read_filter: ReadFilter | None = None,
    keep_details: bool = True,
) -> IntervalReadsCollection:
    """Load a SAM/BAM file into a reads collection.

    Args:
        path: SAM or BAM file.
        read_filter: Optional typed filter.
        keep_details: Keep sequence, CIGAR and tag columns.

    Returns:
        IntervalReadsCollection.
    """
    logger.info(f"Reading alignments from {path}")
    return IntervalReadsCollection.from_reads(iter_alignments(path), read_filter, keep_details)
