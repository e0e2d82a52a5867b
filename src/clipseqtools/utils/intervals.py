"""Genomic interval value type.

This module provides the stranded interval used throughout clipseqtools
to describe reads, exons, introns and chromosome windows.

Coordinate conventions:
    - Internal storage: 0-based, closed (start and stop are both inclusive)
    - BED files: 0-based half-open (stop = end - 1 on reading)
    - GTF files: 1-based inclusive (start - 1, end - 1 on reading)

Example:
    >>> from clipseqtools.utils.intervals import GenomicInterval
    >>> read = GenomicInterval("chr1", 100, 199, 1)
    >>> read.length
    100
    >>> read.midpoint()
    149
"""

from __future__ import annotations

import attrs

# =============================================================================
# Constants
# =============================================================================

PLUS = 1
MINUS = -1
VALID_STRANDS = (PLUS, MINUS)

_STRAND_SYMBOLS = {"+": PLUS, "-": MINUS, "1": PLUS, "-1": MINUS}


# =============================================================================
# Errors
# =============================================================================


class InvalidIntervalError(ValueError):
    """Raised when an interval violates start <= stop or has a bad strand."""


# =============================================================================
# Helpers
# =============================================================================


def strand_from_symbol(symbol: str | int) -> int:
    """Convert '+', '-', '1', '-1' (or an int) to +1/-1.

    Args:
        symbol: Strand symbol.

    Returns:
        +1 or -1.

    Raises:
        InvalidIntervalError: If the symbol is not a recognized strand.
    """
    if isinstance(symbol, int):
        if symbol in VALID_STRANDS:
            return symbol
        raise InvalidIntervalError(f"Invalid strand: {symbol}")

    try:
        return _STRAND_SYMBOLS[symbol.strip()]
    except KeyError:
        raise InvalidIntervalError(f"Invalid strand: {symbol!r}") from None


def strand_symbol(strand: int) -> str:
    """Convert +1/-1 to '+'/'-'."""
    return "+" if strand == PLUS else "-"


def _check_strand(instance: GenomicInterval, attribute: attrs.Attribute, value: int) -> None:
    if value not in VALID_STRANDS:
        raise InvalidIntervalError(f"Strand must be +1 or -1, got {value!r}")


# =============================================================================
# Data Structures
# =============================================================================


@attrs.define(frozen=True, slots=True)
class GenomicInterval:
    """A closed, stranded range on a named reference sequence.

    Attributes:
        rname: Reference sequence (chromosome) name.
        start: Start position (0-based, inclusive).
        stop: Stop position (0-based, inclusive).
        strand: +1 or -1.
    """

    rname: str
    start: int
    stop: int
    strand: int = attrs.field(default=PLUS, validator=_check_strand)

    def __attrs_post_init__(self) -> None:
        if self.start > self.stop:
            raise InvalidIntervalError(
                f"Interval start ({self.start}) is greater than stop ({self.stop}) "
                f"on {self.rname}"
            )

    def __str__(self) -> str:
        """Return location string, e.g. chr1:100-199:+."""
        return f"{self.rname}:{self.start}-{self.stop}:{strand_symbol(self.strand)}"

    @property
    def length(self) -> int:
        """Number of bases covered by the interval."""
        return self.stop - self.start + 1

    @property
    def head(self) -> int:
        """The 5' end position with respect to strand."""
        return self.start if self.strand == PLUS else self.stop

    @property
    def location(self) -> str:
        """Location string used in output tables."""
        return str(self)

    def midpoint(self) -> int:
        """Floor of the mean of start and stop."""
        return (self.start + self.stop) // 2

    def contains_position(self, position: int) -> bool:
        """Check if a position lies within [start, stop]."""
        return self.start <= position <= self.stop

    def overlaps(self, other: GenomicInterval, strand_aware: bool = False) -> bool:
        """Check if two intervals share at least one position.

        Args:
            other: Another interval.
            strand_aware: If True, intervals on different strands never overlap.

        Returns:
            True if the intervals intersect.
        """
        if self.rname != other.rname:
            return False
        if strand_aware and self.strand != other.strand:
            return False
        return self.start <= other.stop and other.start <= self.stop

    def head_mid_distance_from(self, other: GenomicInterval) -> int:
        """Signed distance from this interval's head to the other's midpoint.

        Positive values point downstream (3') with respect to this
        interval's strand.
        """
        distance = other.midpoint() - self.head
        return distance if self.strand == PLUS else -distance


# =============================================================================
# Interval Operations
# =============================================================================


def merge_intervals(intervals: list[GenomicInterval]) -> list[GenomicInterval]:
    """Merge overlapping or abutting intervals on the same rname and strand.

    Args:
        intervals: Intervals to merge.

    Returns:
        Merged intervals sorted by (rname, strand, start).
    """
    if not intervals:
        return []

    sorted_intervals = sorted(intervals, key=lambda x: (x.rname, x.strand, x.start))

    merged = [sorted_intervals[0]]
    for current in sorted_intervals[1:]:
        last = merged[-1]
        if (
            current.rname == last.rname
            and current.strand == last.strand
            and current.start <= last.stop + 1
        ):
            merged[-1] = GenomicInterval(
                last.rname, last.start, max(last.stop, current.stop), last.strand
            )
        else:
            merged.append(current)

    return merged


def interval_gaps(intervals: list[GenomicInterval]) -> list[GenomicInterval]:
    """Return the gaps between consecutive, sorted, same-strand intervals.

    Used to derive introns from the exons of a transcript.

    Args:
        intervals: Non-overlapping intervals on one rname and strand.

    Returns:
        Gap intervals in ascending genomic order.
    """
    ordered = sorted(intervals, key=lambda x: x.start)
    gaps = []
    for left, right in zip(ordered, ordered[1:]):
        if right.start - left.stop > 1:
            gaps.append(
                GenomicInterval(left.rname, left.stop + 1, right.start - 1, left.strand)
            )
    return gaps
