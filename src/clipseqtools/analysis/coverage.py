"""Genome coverage.

Measures the fraction of each reference sequence covered by at least one
read, whatever the strand. One BOOLEAN occupancy map is built per
chromosome and released before the next.

Example:
    >>> from clipseqtools.analysis.coverage import genome_coverage
    >>> rows = genome_coverage(reads, {"chr1": 1000})
    >>> rows[0]
    CoverageRow(rname='chr1', covered_area=100, size=1000, percent_covered=10.0)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

from clipseqtools.core.occupancy import ChromosomeOccupancyMap, CounterWidth
from clipseqtools.io.sizes import require_sizes
from clipseqtools.io.tables import write_table
from clipseqtools.parallel.executor import ParallelExecutor

if TYPE_CHECKING:
    from clipseqtools.io.reads import ReadsCollection

logger = logging.getLogger(__name__)

COVERAGE_HEADER = ["rname", "covered_area", "size", "percent_covered"]
TOTAL_RNAME = "Total"


class CoverageRow(NamedTuple):
    """Coverage of one reference sequence (or of the whole genome)."""

    rname: str
    covered_area: int
    size: int
    percent_covered: float


def rname_coverage(task: tuple[str, int, ReadsCollection]) -> CoverageRow:
    """Coverage of one reference sequence.

    Args:
        task: (rname, size, reads) tuple.

    Raises:
        OutOfRangeError: If a read extends past the reference size.
    """
    rname, size, reads = task
    occupancy = ChromosomeOccupancyMap.create(size, CounterWidth.BOOLEAN)
    for read in reads.iter_reads_on(rname):
        occupancy.mark_range(read.start, read.stop)

    covered = occupancy.covered_positions()
    logger.debug(f"{rname}: {covered}/{size} positions covered")
    return CoverageRow(rname, covered, size, covered / size * 100)


def genome_coverage(
    reads: ReadsCollection,
    rname_sizes: dict[str, int],
    executor: ParallelExecutor | None = None,
) -> list[CoverageRow]:
    """Coverage per reference sequence carrying reads, plus a Total row.

    Args:
        reads: Library reads.
        rname_sizes: Reference sequence lengths.
        executor: Runs one chromosome per task (serial by default).

    Returns:
        One row per reference sequence in name order, then the Total row.

    Raises:
        ConfigurationError: If a reference sequence with reads has no size.
    """
    rnames = reads.distinct_reference_names()
    require_sizes(rname_sizes, rnames)

    executor = executor or ParallelExecutor()
    tasks = [(rname, rname_sizes[rname], reads.subset([rname])) for rname in rnames]
    results = executor.map_items(rname_coverage, tasks, item_ids=rnames)
    rows = [result.result for result in results]

    total_covered = sum(row.covered_area for row in rows)
    total_size = sum(row.size for row in rows)
    total_percent = total_covered / total_size * 100 if total_size else float("nan")
    rows.append(CoverageRow(TOTAL_RNAME, total_covered, total_size, total_percent))
    return rows


def write_genome_coverage(rows: list[CoverageRow], output_path: Path | str) -> None:
    """Write coverage rows as TSV."""
    write_table(output_path, COVERAGE_HEADER, rows)
