"""Positional binning of reads along features.

A feature (a spliced 5'UTR/CDS/3'UTR or a single exon/intron) is split
into B equal-width bins of its relative coordinate. Each read falling on
the feature adds its copy number to the bin that holds its midpoint.

Per-feature bin counts are folded into a BinAccumulator, which averages
them over the number of features counted and derives per-nucleotide
and RPKM-style values.

Example:
    >>> from clipseqtools.core.binning import BinAccumulator, PositionalBinner
    >>> binner = PositionalBinner(reads, bins=10)
    >>> accumulator = BinAccumulator(10)
    >>> for feature in utr5s:
    ...     accumulator.add(binner.count_spliced(feature), feature.exonic_length)
    >>> accumulator.mean_counts()
    array([...])
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import attrs
import numpy as np

if TYPE_CHECKING:
    from clipseqtools.core.features import SplicedFeature
    from clipseqtools.io.reads import ReadsCollection
    from clipseqtools.utils.intervals import GenomicInterval

logger = logging.getLogger(__name__)

RPKM_SCALE = 10**9


def bin_index(position: int, span: int, bins: int) -> int:
    """Bin holding ``position`` on a feature of length ``span``.

    Positions at or past ``span`` land in the last bin.
    """
    index = int(bins * position / span)
    return min(max(index, 0), bins - 1)


# =============================================================================
# Binner
# =============================================================================


class PositionalBinner:
    """Count copy numbers in bins of relative position along features.

    The read query window around each feature is widened by half the
    longest read, so reads whose midpoint lies on the feature are always
    visited even when their body sticks out.

    Attributes:
        reads: Source of reads.
        bins: Number of bins per feature.
        margin: Window widening on both sides.
    """

    def __init__(
        self,
        reads: ReadsCollection,
        bins: int,
        margin: int | None = None,
    ) -> None:
        """Initialize the binner.

        Args:
            reads: Source of reads.
            bins: Number of bins per feature.
            margin: Window widening; defaults to half the longest read of
                ``reads``. Pass the value of the whole library when
                ``reads`` holds a single chromosome.
        """
        if bins < 1:
            raise ValueError(f"bins must be at least 1, got {bins}")
        self.reads = reads
        self.bins = bins
        self.margin = reads.longest_read_length() // 2 if margin is None else margin

    def count_spliced(self, feature: SplicedFeature) -> np.ndarray:
        """Bin reads along the exonic coordinate of a spliced feature.

        Reads whose midpoint falls in an intronic gap or outside the
        feature do not contribute.

        Args:
            feature: Feature to bin along.

        Returns:
            int64 array of length ``bins`` with copy-number sums.
        """
        counts = np.zeros(self.bins, dtype=np.int64)
        span = feature.exonic_length
        if span == 0:
            return counts

        for read in self.reads.iter_reads_on(
            feature.rname,
            strand=feature.strand,
            start=feature.start - self.margin,
            stop=feature.stop + self.margin,
        ):
            position = feature.relative_exonic_position(read.midpoint())
            if position is None:
                continue
            counts[bin_index(position, span, self.bins)] += read.copy_number

        return counts

    def count_linear(self, interval: GenomicInterval) -> np.ndarray:
        """Bin reads along a single contiguous interval.

        Reads that do not overlap the interval are skipped; the position
        of a read is the distance of its midpoint from the interval head.

        Args:
            interval: Exon or intron.

        Returns:
            int64 array of length ``bins`` with copy-number sums.
        """
        counts = np.zeros(self.bins, dtype=np.int64)
        span = interval.length

        for read in self.reads.iter_reads_on(
            interval.rname,
            strand=interval.strand,
            start=interval.start - self.margin,
            stop=interval.stop + self.margin,
        ):
            if not interval.overlaps(read):
                continue
            position = abs(interval.head_mid_distance_from(read))
            counts[bin_index(position, span, self.bins)] += read.copy_number

        return counts


# =============================================================================
# Accumulator
# =============================================================================


@attrs.define(slots=True)
class BinAccumulator:
    """Running sums of per-feature bin counts for one element category.

    Attributes:
        bins: Number of bins.
        counts: Sum of bin counts over the features added.
        counts_per_nt: Sum of bin counts divided by feature length.
        n_features: Number of features added.
    """

    bins: int
    counts: np.ndarray = attrs.field(init=False)
    counts_per_nt: np.ndarray = attrs.field(init=False)
    n_features: int = 0

    def __attrs_post_init__(self) -> None:
        self.counts = np.zeros(self.bins, dtype=np.float64)
        self.counts_per_nt = np.zeros(self.bins, dtype=np.float64)

    def add(self, counts: np.ndarray, length: int) -> None:
        """Add the bin counts of one feature of the given length.

        Raises:
            ValueError: If the counts don't have ``bins`` entries or the
                length is not positive.
        """
        if len(counts) != self.bins:
            raise ValueError(f"Expected {self.bins} bin counts, got {len(counts)}")
        if length <= 0:
            raise ValueError(f"Feature length must be positive, got {length}")
        self.counts += counts
        self.counts_per_nt += np.asarray(counts, dtype=np.float64) / length
        self.n_features += 1

    def merge(self, other: BinAccumulator) -> BinAccumulator:
        """Fold another accumulator into this one and return self."""
        if other.bins != self.bins:
            raise ValueError(f"Cannot merge {other.bins} bins into {self.bins} bins")
        self.counts += other.counts
        self.counts_per_nt += other.counts_per_nt
        self.n_features += other.n_features
        return self

    def _mean(self, sums: np.ndarray) -> np.ndarray:
        if self.n_features == 0:
            return np.full(self.bins, np.nan)
        return sums / self.n_features

    def mean_counts(self) -> np.ndarray:
        """Average copy number per bin (NaN when no feature was counted)."""
        return self._mean(self.counts)

    def mean_counts_per_nt(self) -> np.ndarray:
        """Average per-nucleotide copy number per bin."""
        return self._mean(self.counts_per_nt)

    def mean_rpkm(self, total_copy_number: int) -> np.ndarray:
        """Per-nucleotide averages scaled by library size.

        ``mean_counts_per_nt / total_copy_number * 10**9``; NaN when the
        library is empty.
        """
        if total_copy_number <= 0:
            return np.full(self.bins, np.nan)
        return self.mean_counts_per_nt() / total_copy_number * RPKM_SCALE

    def rows(self, element: str, total_copy_number: int) -> list[list]:
        """Table rows ``[bin, element, avg_counts, avg_counts_per_nt, avg_rpkm]``."""
        mean_counts = self.mean_counts()
        mean_per_nt = self.mean_counts_per_nt()
        mean_rpkm = self.mean_rpkm(total_copy_number)
        return [
            [b, element, float(mean_counts[b]), float(mean_per_nt[b]), float(mean_rpkm[b])]
            for b in range(self.bins)
        ]
