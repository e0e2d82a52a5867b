"""Tests for clipseqtools.core.binning module."""

import numpy as np
import pytest

from clipseqtools.core.binning import RPKM_SCALE, BinAccumulator, PositionalBinner, bin_index
from clipseqtools.core.features import SplicedFeature
from clipseqtools.io.reads import IntervalReadsCollection, Read
from clipseqtools.utils.intervals import MINUS, PLUS, GenomicInterval


def _reads(*reads: Read) -> IntervalReadsCollection:
    return IntervalReadsCollection.from_reads(reads)


# =============================================================================
# bin_index
# =============================================================================


class TestBinIndex:
    """Tests for bin_index."""

    def test_proportional(self):
        assert bin_index(0, 100, 10) == 0
        assert bin_index(55, 100, 10) == 5
        assert bin_index(99, 100, 10) == 9

    def test_clamped_at_span(self):
        assert bin_index(100, 100, 10) == 9

    def test_clamped_below_zero(self):
        assert bin_index(-3, 100, 10) == 0


# =============================================================================
# PositionalBinner
# =============================================================================


class TestCountLinear:
    """Tests for single-interval binning."""

    def test_single_read_lands_in_one_bin(self):
        # Midpoint 155 is 55 bases from the head of a 100 bp exon
        reads = _reads(Read("chr1", 150, 160, PLUS, copy_number=3))
        exon = GenomicInterval("chr1", 100, 199, PLUS)
        counts = PositionalBinner(reads, bins=10).count_linear(exon)
        assert counts.tolist() == [0, 0, 0, 0, 0, 3, 0, 0, 0, 0]

    def test_minus_strand_measured_from_stop(self):
        reads = _reads(Read("chr1", 150, 160, MINUS, copy_number=3))
        exon = GenomicInterval("chr1", 100, 199, MINUS)
        counts = PositionalBinner(reads, bins=10).count_linear(exon)
        assert counts[4] == 3
        assert counts.sum() == 3

    def test_other_strand_ignored(self):
        reads = _reads(Read("chr1", 150, 160, MINUS))
        exon = GenomicInterval("chr1", 100, 199, PLUS)
        assert PositionalBinner(reads, bins=10).count_linear(exon).sum() == 0

    def test_non_overlapping_reads_skipped(self):
        reads = _reads(Read("chr1", 300, 320, PLUS))
        exon = GenomicInterval("chr1", 100, 199, PLUS)
        assert PositionalBinner(reads, bins=10).count_linear(exon).sum() == 0

    def test_read_sticking_out_uses_clamped_bin(self):
        # Midpoint 205 is past the stop; the read still overlaps the exon
        reads = _reads(Read("chr1", 190, 220, PLUS, copy_number=2))
        exon = GenomicInterval("chr1", 100, 199, PLUS)
        counts = PositionalBinner(reads, bins=10).count_linear(exon)
        assert counts[9] == 2


class TestCountSpliced:
    """Tests for spliced-feature binning."""

    def test_no_reads_lost_across_bins(self):
        feature = SplicedFeature.from_parts("chr1", PLUS, [(100, 149), (300, 349)])
        reads = _reads(
            Read("chr1", 100, 110, PLUS, copy_number=2),
            Read("chr1", 140, 146, PLUS, copy_number=1),
            Read("chr1", 300, 305, PLUS, copy_number=4),
            Read("chr1", 340, 349, PLUS, copy_number=5),
        )
        counts = PositionalBinner(reads, bins=7).count_spliced(feature)
        assert counts.sum() == 12

    def test_intronic_midpoint_not_counted(self):
        feature = SplicedFeature.from_parts("chr1", PLUS, [(100, 149), (300, 349)])
        reads = _reads(Read("chr1", 200, 210, PLUS, copy_number=9))
        assert PositionalBinner(reads, bins=10).count_spliced(feature).sum() == 0

    def test_junction_collapses_intron(self):
        feature = SplicedFeature.from_parts("chr1", PLUS, [(100, 149), (300, 349)])
        # First base of the second part has exonic offset 50 of 100
        reads = _reads(Read("chr1", 300, 300, PLUS))
        counts = PositionalBinner(reads, bins=10).count_spliced(feature)
        assert counts[5] == 1

    @pytest.mark.parametrize("midpoint", [100, 103, 110, 120, 127, 148, 149, 300, 312, 336, 340, 349])
    def test_strand_mirror(self, midpoint):
        parts = [(100, 149), (300, 349)]
        plus = SplicedFeature.from_parts("chr1", PLUS, parts)
        minus = SplicedFeature.from_parts("chr1", MINUS, parts)
        plus_counts = PositionalBinner(
            _reads(Read("chr1", midpoint, midpoint, PLUS)), bins=10
        ).count_spliced(plus)
        minus_counts = PositionalBinner(
            _reads(Read("chr1", midpoint, midpoint, MINUS)), bins=10
        ).count_spliced(minus)
        assert minus_counts.tolist() == plus_counts[::-1].tolist()

    @pytest.mark.parametrize(
        "midpoint, plus_bin, minus_bin",
        [(110, 1, 8), (120, 2, 7), (149, 4, 5), (300, 5, 4)],
    )
    def test_bin_edges_on_both_strands(self, midpoint, plus_bin, minus_bin):
        parts = [(100, 149), (300, 349)]
        for strand, expected in ((PLUS, plus_bin), (MINUS, minus_bin)):
            feature = SplicedFeature.from_parts("chr1", strand, parts)
            reads = _reads(Read("chr1", midpoint, midpoint, strand))
            counts = PositionalBinner(reads, bins=10).count_spliced(feature)
            assert int(np.argmax(counts)) == expected

    def test_margin_defaults_to_half_longest_read(self):
        reads = _reads(Read("chr1", 0, 99, PLUS), Read("chr1", 500, 509, PLUS))
        assert PositionalBinner(reads, bins=5).margin == 50
        assert PositionalBinner(reads, bins=5, margin=7).margin == 7

    def test_invalid_bins(self):
        with pytest.raises(ValueError):
            PositionalBinner(_reads(), bins=0)


# =============================================================================
# BinAccumulator
# =============================================================================


class TestBinAccumulator:
    """Tests for BinAccumulator averaging."""

    def test_means_over_features(self):
        accumulator = BinAccumulator(2)
        accumulator.add(np.array([4, 0]), 100)
        accumulator.add(np.array([2, 2]), 50)
        assert accumulator.n_features == 2
        np.testing.assert_allclose(accumulator.mean_counts(), [3.0, 1.0])
        np.testing.assert_allclose(accumulator.mean_counts_per_nt(), [0.04, 0.02])

    def test_rpkm_arithmetic(self):
        accumulator = BinAccumulator(1)
        accumulator.add(np.array([10]), 100)
        np.testing.assert_allclose(accumulator.mean_rpkm(1000), [0.1 / 1000 * RPKM_SCALE])

    def test_no_features_is_nan(self):
        accumulator = BinAccumulator(3)
        assert np.isnan(accumulator.mean_counts()).all()
        assert np.isnan(accumulator.mean_rpkm(100)).all()

    def test_zero_total_is_nan(self):
        accumulator = BinAccumulator(1)
        accumulator.add(np.array([1]), 10)
        assert np.isnan(accumulator.mean_rpkm(0)).all()

    def test_rejects_bad_input(self):
        accumulator = BinAccumulator(2)
        with pytest.raises(ValueError):
            accumulator.add(np.array([1, 2, 3]), 10)
        with pytest.raises(ValueError):
            accumulator.add(np.array([1, 2]), 0)

    def test_merge_is_summation(self):
        first = BinAccumulator(2)
        first.add(np.array([1, 1]), 10)
        second = BinAccumulator(2)
        second.add(np.array([3, 5]), 10)
        merged = first.merge(second)
        assert merged is first
        assert merged.n_features == 2
        np.testing.assert_allclose(merged.counts, [4, 6])

    def test_rows(self):
        accumulator = BinAccumulator(2)
        accumulator.add(np.array([2, 0]), 2)
        rows = accumulator.rows("cds", total_copy_number=10**9)
        assert [row[:2] for row in rows] == [[0, "cds"], [1, "cds"]]
        assert rows[0][2:] == pytest.approx([2.0, 1.0, 1.0])
        assert rows[1][2:] == pytest.approx([0.0, 0.0, 0.0])
