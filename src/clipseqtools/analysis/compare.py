"""Comparison of a primary library with a reference library.

Two measures are provided:

- Overlap stats: how many primary reads (and how much copy number)
  overlap at least one reference read on the same strand.
- Relative density: the profile of primary reads in a window of
  ``2 * span + 1`` positions around the midpoint of every reference
  read, split into sense/antisense and weighted/unweighted counts.

Both work one chromosome at a time: occupancy maps for a chromosome are
built, reduced into a small partial result and released. Partial
results merge by summation, so chromosomes can run in any order.

Example:
    >>> from clipseqtools.analysis.compare import libraries_overlap_stats
    >>> stats = libraries_overlap_stats(primary, reference, sizes)
    >>> stats.overlapping_records_percent
    42.5
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import attrs
import numpy as np

from clipseqtools.core.occupancy import ChromosomeOccupancyMap, CounterWidth
from clipseqtools.io.sizes import require_sizes
from clipseqtools.io.tables import write_table
from clipseqtools.parallel.executor import ParallelExecutor
from clipseqtools.utils.intervals import MINUS, PLUS

if TYPE_CHECKING:
    from clipseqtools.io.reads import ReadsCollection

logger = logging.getLogger(__name__)

OVERLAP_HEADER = [
    "total_records",
    "total_copy_number",
    "overlapping_records",
    "overlapping_copy_number",
    "overlapping_records_percent",
    "overlapping_copy_number_percent",
]

DENSITY_HEADER = [
    "relative_position",
    "counts_with_copy_number_sense",
    "counts_no_copy_number_sense",
    "counts_with_copy_number_antisense",
    "counts_no_copy_number_antisense",
]


def _percent(part: int, whole: int) -> float:
    return part / whole * 100 if whole else float("nan")


# =============================================================================
# Overlap Stats
# =============================================================================


@attrs.define(slots=True)
class OverlapStats:
    """Primary-read totals and the share overlapping the reference."""

    total_records: int = 0
    total_copy_number: int = 0
    overlapping_records: int = 0
    overlapping_copy_number: int = 0

    def merge(self, other: OverlapStats) -> OverlapStats:
        """Fold another partial result into this one and return self."""
        self.total_records += other.total_records
        self.total_copy_number += other.total_copy_number
        self.overlapping_records += other.overlapping_records
        self.overlapping_copy_number += other.overlapping_copy_number
        return self

    @property
    def overlapping_records_percent(self) -> float:
        return _percent(self.overlapping_records, self.total_records)

    @property
    def overlapping_copy_number_percent(self) -> float:
        return _percent(self.overlapping_copy_number, self.total_copy_number)

    def row(self) -> list:
        return [
            self.total_records,
            self.total_copy_number,
            self.overlapping_records,
            self.overlapping_copy_number,
            self.overlapping_records_percent,
            self.overlapping_copy_number_percent,
        ]


def rname_overlap_stats(
    task: tuple[str, int, ReadsCollection, ReadsCollection],
) -> OverlapStats:
    """Overlap stats for one reference sequence.

    Args:
        task: (rname, size, primary reads, reference reads) tuple.
    """
    rname, size, primary, reference = task
    maps = {
        PLUS: ChromosomeOccupancyMap.create(size, CounterWidth.BOOLEAN),
        MINUS: ChromosomeOccupancyMap.create(size, CounterWidth.BOOLEAN),
    }
    for read in reference.iter_reads_on(rname):
        maps[read.strand].mark_range(read.start, read.stop)

    stats = OverlapStats()
    for read in primary.iter_reads_on(rname):
        stats.total_records += 1
        stats.total_copy_number += read.copy_number
        if maps[read.strand].sum_range(read.start, read.stop) > 0:
            stats.overlapping_records += 1
            stats.overlapping_copy_number += read.copy_number

    logger.debug(
        f"{rname}: {stats.overlapping_records}/{stats.total_records} primary reads overlap"
    )
    return stats


def libraries_overlap_stats(
    primary: ReadsCollection,
    reference: ReadsCollection,
    rname_sizes: dict[str, int],
    executor: ParallelExecutor | None = None,
) -> OverlapStats:
    """Share of primary reads overlapping reference reads on the same strand.

    Args:
        primary: Primary library.
        reference: Reference library.
        rname_sizes: Reference sequence lengths.
        executor: Runs one chromosome per task (serial by default).

    Returns:
        Totals over every reference sequence carrying primary reads.

    Raises:
        ConfigurationError: If a reference sequence with primary reads
            has no size.
    """
    rnames = primary.distinct_reference_names()
    require_sizes(rname_sizes, rnames)

    executor = executor or ParallelExecutor()
    tasks = [
        (rname, rname_sizes[rname], primary.subset([rname]), reference.subset([rname]))
        for rname in rnames
    ]
    results = executor.map_items(rname_overlap_stats, tasks, item_ids=rnames)

    stats = OverlapStats()
    for result in results:
        stats.merge(result.result)
    logger.info(
        f"{stats.overlapping_records}/{stats.total_records} primary reads overlap the reference"
    )
    return stats


def write_overlap_stats(stats: OverlapStats, output_path: Path | str) -> None:
    """Write the single-row overlap table."""
    write_table(output_path, OVERLAP_HEADER, [stats.row()])


# =============================================================================
# Relative Density
# =============================================================================


@attrs.define(slots=True)
class DensityProfile:
    """Histograms of primary reads around reference read midpoints.

    Index ``i`` of each histogram holds relative position ``i - span``,
    oriented 5'->3' with respect to the reference read.
    """

    span: int
    with_copy_number_sense: np.ndarray = attrs.field(init=False)
    no_copy_number_sense: np.ndarray = attrs.field(init=False)
    with_copy_number_antisense: np.ndarray = attrs.field(init=False)
    no_copy_number_antisense: np.ndarray = attrs.field(init=False)

    def __attrs_post_init__(self) -> None:
        width = 2 * self.span + 1
        self.with_copy_number_sense = np.zeros(width, dtype=np.int64)
        self.no_copy_number_sense = np.zeros(width, dtype=np.int64)
        self.with_copy_number_antisense = np.zeros(width, dtype=np.int64)
        self.no_copy_number_antisense = np.zeros(width, dtype=np.int64)

    def merge(self, other: DensityProfile) -> DensityProfile:
        """Fold another partial profile into this one and return self."""
        if other.span != self.span:
            raise ValueError(f"Cannot merge span {other.span} into span {self.span}")
        self.with_copy_number_sense += other.with_copy_number_sense
        self.no_copy_number_sense += other.no_copy_number_sense
        self.with_copy_number_antisense += other.with_copy_number_antisense
        self.no_copy_number_antisense += other.no_copy_number_antisense
        return self

    def rows(self) -> list[list[int]]:
        return [
            [
                i - self.span,
                int(self.with_copy_number_sense[i]),
                int(self.no_copy_number_sense[i]),
                int(self.with_copy_number_antisense[i]),
                int(self.no_copy_number_antisense[i]),
            ]
            for i in range(2 * self.span + 1)
        ]


def rname_relative_density(
    task: tuple[str, int, int, ReadsCollection, ReadsCollection],
) -> DensityProfile:
    """Relative density profile for one reference sequence.

    Args:
        task: (rname, size, span, primary reads, reference reads) tuple.
    """
    rname, size, span, primary, reference = task
    weighted = {
        PLUS: ChromosomeOccupancyMap.create(size, CounterWidth.WIDE),
        MINUS: ChromosomeOccupancyMap.create(size, CounterWidth.WIDE),
    }
    unweighted = {
        PLUS: ChromosomeOccupancyMap.create(size, CounterWidth.WIDE),
        MINUS: ChromosomeOccupancyMap.create(size, CounterWidth.WIDE),
    }
    for read in primary.iter_reads_on(rname):
        weighted[read.strand].mark_range(read.start, read.stop, weight=read.copy_number)
        unweighted[read.strand].mark_range(read.start, read.stop)

    profile = DensityProfile(span)
    skipped = 0
    for read in reference.iter_reads_on(rname):
        position = read.midpoint()
        begin = position - span
        end = position + span
        # Windows crossing a chromosome end are dropped, not clipped
        if begin < 0 or end >= size:
            skipped += 1
            continue

        sense = read.strand
        antisense = -read.strand
        reverse = read.strand == MINUS
        profile.with_copy_number_sense += (
            weighted[sense].window(begin, end, reverse) * read.copy_number
        )
        profile.no_copy_number_sense += unweighted[sense].window(begin, end, reverse)
        profile.with_copy_number_antisense += (
            weighted[antisense].window(begin, end, reverse) * read.copy_number
        )
        profile.no_copy_number_antisense += unweighted[antisense].window(begin, end, reverse)

    if skipped:
        logger.debug(f"{rname}: skipped {skipped} reference reads near chromosome ends")
    return profile


def libraries_relative_read_density(
    primary: ReadsCollection,
    reference: ReadsCollection,
    rname_sizes: dict[str, int],
    span: int = 25,
    executor: ParallelExecutor | None = None,
) -> DensityProfile:
    """Density of primary reads around the midpoints of reference reads.

    Args:
        primary: Library whose density is measured.
        reference: Library whose read midpoints anchor the windows.
        rname_sizes: Reference sequence lengths.
        span: Window radius.
        executor: Runs one chromosome per task (serial by default).

    Returns:
        Profile summed over every reference sequence carrying primary reads.

    Raises:
        ConfigurationError: If a reference sequence with primary reads
            has no size.
    """
    if span < 0:
        raise ValueError(f"span must be non-negative, got {span}")
    rnames = primary.distinct_reference_names()
    require_sizes(rname_sizes, rnames)

    executor = executor or ParallelExecutor()
    tasks = [
        (
            rname,
            rname_sizes[rname],
            span,
            primary.subset([rname]),
            reference.subset([rname]),
        )
        for rname in rnames
    ]
    results = executor.map_items(rname_relative_density, tasks, item_ids=rnames)

    profile = DensityProfile(span)
    for result in results:
        profile.merge(result.result)
    return profile


def write_relative_density(profile: DensityProfile, output_path: Path | str) -> None:
    """Write one row per relative position."""
    write_table(output_path, DENSITY_HEADER, profile.rows())
