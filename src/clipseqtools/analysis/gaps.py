"""Size distribution of long alignment gaps.

Spliced or deletion-spanning alignments carry ``N`` operations in their
CIGAR string. Each gap contributes the read's copy number to its size;
reads without any ``N`` count under size 0.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING

from clipseqtools.io.tables import write_table

if TYPE_CHECKING:
    from clipseqtools.io.reads import ReadsCollection

logger = logging.getLogger(__name__)

GAPS_HEADER = ["gap_size", "count"]

_SKIPPED_REGION = re.compile(r"(\d+)N")


def gap_sizes(cigar: str | None) -> list[int]:
    """Sizes of the ``N`` operations of a CIGAR string ([0] if there are none)."""
    if not cigar:
        return [0]
    sizes = [int(size) for size in _SKIPPED_REGION.findall(cigar)]
    return sizes or [0]


def reads_long_gaps_size_distribution(reads: ReadsCollection) -> list[tuple[int, int]]:
    """Copy-number-weighted count of gap sizes.

    Args:
        reads: Library reads; reads without a CIGAR count as ungapped.

    Returns:
        (gap_size, count) pairs in ascending gap size.
    """
    distribution: Counter[int] = Counter()
    missing_cigar = 0
    for read in reads.iter_reads():
        if read.cigar is None:
            missing_cigar += 1
        for size in gap_sizes(read.cigar):
            distribution[size] += read.copy_number

    if missing_cigar:
        logger.warning(f"{missing_cigar} reads have no CIGAR string; counted as ungapped")
    return sorted(distribution.items())


def write_gaps_distribution(rows: list[tuple[int, int]], output_path: Path | str) -> None:
    """Write ``gap_size, count`` rows."""
    write_table(output_path, GAPS_HEADER, rows)
