"""Tests for genome coverage and library comparison analyses."""

import math
from pathlib import Path

import numpy as np
import pytest

from clipseqtools.analysis.compare import (
    DENSITY_HEADER,
    DensityProfile,
    OverlapStats,
    libraries_overlap_stats,
    libraries_relative_read_density,
    write_overlap_stats,
    write_relative_density,
)
from clipseqtools.analysis.coverage import (
    TOTAL_RNAME,
    CoverageRow,
    genome_coverage,
    write_genome_coverage,
)
from clipseqtools.config import ConfigurationError
from clipseqtools.core.occupancy import OutOfRangeError
from clipseqtools.io.reads import IntervalReadsCollection, Read
from clipseqtools.io.tables import read_table
from clipseqtools.parallel.executor import ParallelExecutor
from clipseqtools.utils.intervals import MINUS, PLUS


def _reads(*reads: Read) -> IntervalReadsCollection:
    return IntervalReadsCollection.from_reads(reads)


# =============================================================================
# Genome Coverage
# =============================================================================


class TestGenomeCoverage:
    """Tests for genome_coverage."""

    def test_single_read(self):
        rows = genome_coverage(_reads(Read("chr1", 100, 199, PLUS)), {"chr1": 1000})
        assert rows[0] == CoverageRow("chr1", 100, 1000, 10.0)
        assert rows[-1].rname == TOTAL_RNAME

    def test_strands_and_overlaps_counted_once(self):
        reads = _reads(
            Read("chr1", 0, 49, PLUS, copy_number=10),
            Read("chr1", 25, 74, MINUS),
            Read("chr2", 0, 9, PLUS),
        )
        rows = genome_coverage(reads, {"chr1": 100, "chr2": 10, "chr3": 50})
        assert [(r.rname, r.covered_area) for r in rows] == [
            ("chr1", 75),
            ("chr2", 10),
            (TOTAL_RNAME, 85),
        ]
        assert rows[-1].size == 110

    def test_threads_match_serial(self):
        reads = _reads(Read("chr1", 0, 9, PLUS), Read("chr2", 5, 9, MINUS))
        sizes = {"chr1": 20, "chr2": 20}
        serial = genome_coverage(reads, sizes)
        threaded = genome_coverage(reads, sizes, ParallelExecutor(2, backend="threads"))
        assert serial == threaded

    def test_missing_size(self):
        with pytest.raises(ConfigurationError, match="chr2"):
            genome_coverage(_reads(Read("chr2", 0, 9, PLUS)), {"chr1": 100})

    def test_read_past_chromosome_end(self):
        with pytest.raises(OutOfRangeError):
            genome_coverage(_reads(Read("chr1", 95, 104, PLUS)), {"chr1": 100})

    def test_empty_library(self):
        rows = genome_coverage(_reads(), {"chr1": 100})
        assert len(rows) == 1
        assert math.isnan(rows[0].percent_covered)

    def test_write(self, tmp_path: Path):
        path = tmp_path / "genome_coverage.tab"
        write_genome_coverage([CoverageRow("chr1", 100, 1000, 10.0)], path)
        assert read_table(path) == [
            {"rname": "chr1", "covered_area": "100", "size": "1000", "percent_covered": "10.0"}
        ]


# =============================================================================
# Overlap Stats
# =============================================================================


class TestLibrariesOverlapStats:
    """Tests for libraries_overlap_stats."""

    def test_same_strand_overlap(self):
        stats = libraries_overlap_stats(
            _reads(Read("chr1", 50, 60, PLUS)),
            _reads(Read("chr1", 55, 65, PLUS)),
            {"chr1": 100},
        )
        assert stats.total_records == 1
        assert stats.overlapping_records == 1
        assert stats.overlapping_records_percent == 100.0

    def test_opposite_strand_not_overlapping(self):
        stats = libraries_overlap_stats(
            _reads(Read("chr1", 50, 60, PLUS)),
            _reads(Read("chr1", 55, 65, MINUS)),
            {"chr1": 100},
        )
        assert stats.total_records == 1
        assert stats.overlapping_records == 0
        assert stats.overlapping_records_percent == 0.0

    def test_copy_number_weighting(self):
        primary = _reads(
            Read("chr1", 0, 9, PLUS, copy_number=3),
            Read("chr1", 50, 59, PLUS, copy_number=1),
            Read("chr2", 0, 9, MINUS, copy_number=4),
        )
        reference = _reads(Read("chr1", 5, 6, PLUS), Read("chr2", 9, 12, MINUS))
        stats = libraries_overlap_stats(primary, reference, {"chr1": 100, "chr2": 100})
        assert stats.row() == [3, 8, 2, 7, pytest.approx(200 / 3), pytest.approx(87.5)]

    def test_empty_primary_percent_is_nan(self):
        assert math.isnan(OverlapStats().overlapping_records_percent)

    def test_merge(self):
        merged = OverlapStats(2, 5, 1, 3).merge(OverlapStats(1, 1, 1, 1))
        assert merged.row()[:4] == [3, 6, 2, 4]

    def test_write(self, tmp_path: Path):
        path = tmp_path / "overlap.tab"
        write_overlap_stats(OverlapStats(), path)
        row = read_table(path)[0]
        assert row["total_records"] == "0"
        assert row["overlapping_records_percent"] == "NA"


# =============================================================================
# Relative Density
# =============================================================================


class TestRelativeReadDensity:
    """Tests for libraries_relative_read_density."""

    def test_sense_profile(self):
        primary = _reads(Read("chr1", 100, 109, PLUS, copy_number=2))
        reference = _reads(Read("chr1", 104, 106, PLUS))
        profile = libraries_relative_read_density(primary, reference, {"chr1": 1000}, span=5)
        assert profile.with_copy_number_sense.tolist() == [2] * 10 + [0]
        assert profile.no_copy_number_sense.tolist() == [1] * 10 + [0]
        assert profile.with_copy_number_antisense.sum() == 0

    def test_minus_strand_reference_is_reversed(self):
        primary = _reads(Read("chr1", 100, 109, PLUS, copy_number=2))
        reference = _reads(Read("chr1", 104, 106, MINUS, copy_number=3))
        profile = libraries_relative_read_density(primary, reference, {"chr1": 1000}, span=5)
        assert profile.with_copy_number_antisense.tolist() == [0] + [6] * 10
        assert profile.no_copy_number_antisense.tolist() == [0] + [1] * 10
        assert profile.with_copy_number_sense.sum() == 0

    def test_windows_at_chromosome_ends_skipped(self):
        primary = _reads(Read("chr1", 0, 9, PLUS))
        reference = _reads(Read("chr1", 0, 2, PLUS), Read("chr1", 96, 99, PLUS))
        profile = libraries_relative_read_density(primary, reference, {"chr1": 100}, span=5)
        assert profile.no_copy_number_sense.sum() == 0

    def test_negative_span(self):
        with pytest.raises(ValueError):
            libraries_relative_read_density(_reads(), _reads(), {}, span=-1)

    def test_merge_requires_same_span(self):
        with pytest.raises(ValueError):
            DensityProfile(2).merge(DensityProfile(3))

    def test_rows_and_write(self, tmp_path: Path):
        profile = DensityProfile(1)
        profile.with_copy_number_sense = np.array([1, 2, 3])
        rows = profile.rows()
        assert [row[0] for row in rows] == [-1, 0, 1]
        assert rows[2][1] == 3

        path = tmp_path / "density.tab"
        write_relative_density(profile, path)
        table = read_table(path)
        assert list(table[0]) == DENSITY_HEADER
        assert len(table) == 3
