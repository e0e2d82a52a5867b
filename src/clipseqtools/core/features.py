"""Spliced genomic features.

A SplicedFeature is an ordered set of exonic parts on one strand, such
as the 5'UTR, CDS or 3'UTR of a transcript. It converts an absolute
genomic position into an offset along the concatenated exonic sequence,
so distributions along "idealized" elements ignore introns.

The offset, ``relative_exonic_position``, counts exonic bases upstream of
the position in 5'->3' transcript order. Positional binning uses it on
both strands, so bins of a minus-strand feature mirror those of a
plus-strand feature with the same parts.

Example:
    >>> from clipseqtools.core.features import SplicedFeature
    >>> feature = SplicedFeature.from_parts("chr1", 1, [(100, 109), (200, 209)])
    >>> feature.exonic_length
    20
    >>> feature.relative_exonic_position(200)
    10
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import cached_property
from typing import Final

from clipseqtools.utils.intervals import (
    PLUS,
    GenomicInterval,
    InvalidIntervalError,
)

NOT_CONTAINED: Final = None


class SplicedFeature:
    """Composite of non-overlapping exonic parts on one rname and strand.

    Parts are stored in ascending genomic order; ``parts_5p_to_3p`` gives
    them in transcript order.

    Attributes:
        rname: Reference sequence name.
        strand: +1 or -1.
        parts: Exonic parts sorted by start.
    """

    def __init__(self, parts: Iterable[GenomicInterval]) -> None:
        ordered = tuple(sorted(parts, key=lambda p: p.start))
        if not ordered:
            raise InvalidIntervalError("A spliced feature needs at least one part")

        first = ordered[0]
        for part in ordered:
            if part.rname != first.rname or part.strand != first.strand:
                raise InvalidIntervalError(
                    f"Part {part} does not share rname/strand with {first}"
                )
        for left, right in zip(ordered, ordered[1:]):
            if right.start <= left.stop:
                raise InvalidIntervalError(f"Overlapping parts {left} and {right}")

        self.rname = first.rname
        self.strand = first.strand
        self.parts = ordered

    @classmethod
    def from_parts(
        cls,
        rname: str,
        strand: int,
        coordinates: Iterable[tuple[int, int]],
    ) -> SplicedFeature:
        """Build a feature from (start, stop) pairs."""
        return cls(GenomicInterval(rname, start, stop, strand) for start, stop in coordinates)

    def __repr__(self) -> str:
        coords = ",".join(f"{p.start}-{p.stop}" for p in self.parts)
        return f"SplicedFeature({self.rname}:{coords}:{'+' if self.strand == PLUS else '-'})"

    def __len__(self) -> int:
        return len(self.parts)

    @property
    def start(self) -> int:
        """Leftmost genomic position."""
        return self.parts[0].start

    @property
    def stop(self) -> int:
        """Rightmost genomic position."""
        return self.parts[-1].stop

    @property
    def span(self) -> GenomicInterval:
        """Genomic span including intronic gaps."""
        return GenomicInterval(self.rname, self.start, self.stop, self.strand)

    @property
    def location(self) -> str:
        return self.span.location

    @property
    def parts_5p_to_3p(self) -> tuple[GenomicInterval, ...]:
        """Parts in transcript order."""
        return self.parts if self.strand == PLUS else self.parts[::-1]

    @cached_property
    def exonic_length(self) -> int:
        """Sum of part lengths."""
        return sum(part.length for part in self.parts)

    def relative_exonic_position(self, position: int) -> int | None:
        """Exonic offset of a position counted from the 5' end.

        Parts are walked 5'->3'; the offset is the length of the parts
        already walked plus the distance from the 5' edge of the part
        that holds the position.

        Returns:
            Offset in [0, exonic_length), or None if the position is not exonic.
        """
        consumed = 0
        for part in self.parts_5p_to_3p:
            if part.contains_position(position):
                return consumed + abs(position - part.head)
            consumed += part.length
        return NOT_CONTAINED

