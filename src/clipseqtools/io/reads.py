"""Reads collections.

This module defines the Read record and the ReadsCollection interface
that every analysis consumes:

- iterate reads overlapping (or contained in) a strand/rname window,
  with early termination from a callback
- distinct reference names carrying reads
- total copy number and longest read length

IntervalReadsCollection stores each reference sequence as sorted numpy
columns (start, stop, strand, copy number), so window queries are two
binary searches and Read objects are only built while iterating.

Example:
    >>> from clipseqtools.io.reads import IntervalReadsCollection, Read
    >>> reads = IntervalReadsCollection.from_reads([
    ...     Read("chr1", 100, 199, 1, copy_number=3),
    ...     Read("chr1", 150, 249, -1),
    ... ])
    >>> reads.total_copy_number()
    4
    >>> [r.start for r in reads.iter_reads_on("chr1", strand=1, start=0, stop=120)]
    [100]
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator
from typing import Any

import attrs
import numpy as np

from clipseqtools.io.filters import ReadFilter
from clipseqtools.utils.intervals import GenomicInterval, InvalidIntervalError

logger = logging.getLogger(__name__)

# Read attributes reachable by name from filters
READ_COLUMNS = frozenset(
    {
        "rname",
        "start",
        "stop",
        "strand",
        "copy_number",
        "sequence",
        "cigar",
        "query_length",
        "alignment_length",
        "number_of_mappings",
        "length",
    }
)


# =============================================================================
# Data Structures
# =============================================================================


def _check_copy_number(instance: Read, attribute: attrs.Attribute, value: int) -> None:
    if value < 1:
        raise InvalidIntervalError(f"copy_number must be >= 1, got {value}")


@attrs.define(frozen=True, slots=True)
class Read(GenomicInterval):
    """An aligned read collapsed with its identical copies.

    Attributes:
        copy_number: Number of identical source reads behind this record.
        sequence: Read sequence, if known.
        cigar: CIGAR string, if known.
        query_length: Length of the read sequence.
        alignment_length: Number of reference bases covered.
        number_of_mappings: Number of loci the read maps to.
        annotations: Extra columns (e.g. rmsk, deletion, transcript).
    """

    copy_number: int = attrs.field(default=1, validator=_check_copy_number)
    sequence: str | None = None
    cigar: str | None = None
    query_length: int | None = None
    alignment_length: int | None = None
    number_of_mappings: int | None = None
    annotations: dict[str, Any] = attrs.field(factory=dict, eq=False, hash=False)

    def column(self, name: str) -> Any:
        """Value of a named column; annotations are looked up last."""
        if name in READ_COLUMNS:
            return getattr(self, name)
        return self.annotations.get(name)


@attrs.define(slots=True)
class ReadColumns:
    """Reads of one reference sequence, sorted by start.

    Attributes:
        starts: Start positions (0-based, inclusive).
        stops: Stop positions (0-based, inclusive).
        strands: +1/-1.
        copy_numbers: Copy number per read.
        details: Per-read (sequence, cigar, query_length, alignment_length,
            number_of_mappings, annotations), or None when not kept.
        max_length: Longest read on this reference sequence.
    """

    starts: np.ndarray
    stops: np.ndarray
    strands: np.ndarray
    copy_numbers: np.ndarray
    details: list[tuple] | None = None
    max_length: int = attrs.field(init=False)

    def __attrs_post_init__(self) -> None:
        if len(self.starts):
            self.max_length = int((self.stops - self.starts + 1).max())
        else:
            self.max_length = 0

    def __len__(self) -> int:
        return len(self.starts)

    def indices(
        self,
        strand: int | None = None,
        start: int | None = None,
        stop: int | None = None,
        contained: bool = False,
    ) -> np.ndarray:
        """Row indices of reads in a window.

        Args:
            strand: Keep only this strand (None for both).
            start: Window start (None for the beginning).
            stop: Window stop, inclusive (None for the end).
            contained: Require reads to lie fully inside the window
                instead of overlapping it.

        Returns:
            Sorted row indices.
        """
        lo = 0
        hi = len(self.starts)
        if start is not None:
            lo = int(np.searchsorted(self.starts, start - self.max_length + 1, side="left"))
        if stop is not None:
            hi = int(np.searchsorted(self.starts, stop, side="right"))

        idx = np.arange(lo, hi)
        if len(idx) == 0:
            return idx

        mask = np.ones(len(idx), dtype=bool)
        if start is not None:
            if contained:
                mask &= self.starts[idx] >= start
            else:
                mask &= self.stops[idx] >= start
        if stop is not None and contained:
            mask &= self.stops[idx] <= stop
        if strand is not None:
            mask &= self.strands[idx] == strand
        return idx[mask]


# =============================================================================
# Collection Interface
# =============================================================================


class ReadsCollection(ABC):
    """Read-only source of reads for the analyses."""

    @abstractmethod
    def iter_reads_on(
        self,
        rname: str,
        strand: int | None = None,
        start: int | None = None,
        stop: int | None = None,
        contained: bool = False,
    ) -> Iterator[Read]:
        """Yield reads on ``rname`` overlapping (or contained in) a window."""

    @abstractmethod
    def distinct_reference_names(self) -> list[str]:
        """Reference sequences that carry at least one read."""

    @abstractmethod
    def total_copy_number(self) -> int:
        """Sum of copy numbers over all reads."""

    @abstractmethod
    def longest_read_length(self) -> int:
        """Length of the longest read (0 for an empty collection)."""

    @abstractmethod
    def record_count(self) -> int:
        """Number of records (not weighted by copy number)."""

    def foreach_read_on(
        self,
        rname: str,
        callback: Callable[[Read], Any],
        strand: int | None = None,
        start: int | None = None,
        stop: int | None = None,
        contained: bool = False,
    ) -> int:
        """Invoke ``callback`` for each matching read.

        A truthy return value from the callback stops the iteration.

        Returns:
            Number of reads passed to the callback.
        """
        visited = 0
        for read in self.iter_reads_on(rname, strand, start, stop, contained):
            visited += 1
            if callback(read):
                break
        return visited

    def iter_reads(self) -> Iterator[Read]:
        """Yield every read, one reference sequence at a time."""
        for rname in self.distinct_reference_names():
            yield from self.iter_reads_on(rname)

    def total_copy_number_contained_in(
        self,
        strand: int | None,
        rname: str,
        start: int,
        stop: int,
    ) -> int:
        """Copy number of reads lying fully inside [start, stop]."""
        return sum(
            read.copy_number
            for read in self.iter_reads_on(rname, strand, start, stop, contained=True)
        )

    def subset(self, rnames: Iterable[str]) -> ReadsCollection:
        """Collection restricted to some reference sequences.

        Used to hand one chromosome to a worker; the default copies the
        reads into an IntervalReadsCollection.
        """
        reads = (read for rname in rnames for read in self.iter_reads_on(rname))
        return IntervalReadsCollection.from_reads(reads)


# =============================================================================
# Columnar Collection
# =============================================================================


class IntervalReadsCollection(ReadsCollection):
    """Reads held as sorted numpy columns per reference sequence.

    Attributes:
        columns: rname -> ReadColumns.
    """

    def __init__(self, columns: dict[str, ReadColumns]) -> None:
        self.columns = {rname: cols for rname, cols in columns.items() if len(cols)}
        self._total_copy_number: int | None = None

    @classmethod
    def from_reads(
        cls,
        reads: Iterable[Read],
        read_filter: ReadFilter | None = None,
        keep_details: bool = True,
    ) -> IntervalReadsCollection:
        """Build a collection from a stream of reads.

        Args:
            reads: Reads in any order.
            read_filter: Reads failing the filter are dropped.
            keep_details: Keep sequence, CIGAR and annotation columns.

        Returns:
            New collection.
        """
        starts: dict[str, list[int]] = defaultdict(list)
        stops: dict[str, list[int]] = defaultdict(list)
        strands: dict[str, list[int]] = defaultdict(list)
        copy_numbers: dict[str, list[int]] = defaultdict(list)
        details: dict[str, list[tuple]] = defaultdict(list)

        kept = 0
        dropped = 0
        for read in reads:
            if read_filter and not read_filter.matches(read):
                dropped += 1
                continue
            starts[read.rname].append(read.start)
            stops[read.rname].append(read.stop)
            strands[read.rname].append(read.strand)
            copy_numbers[read.rname].append(read.copy_number)
            if keep_details:
                details[read.rname].append(
                    (
                        read.sequence,
                        read.cigar,
                        read.query_length,
                        read.alignment_length,
                        read.number_of_mappings,
                        read.annotations,
                    )
                )
            kept += 1

        columns = {}
        for rname in starts:
            start_arr = np.asarray(starts[rname], dtype=np.int64)
            order = np.argsort(start_arr, kind="stable")
            rname_details = None
            if keep_details:
                rname_details = [details[rname][i] for i in order]
            columns[rname] = ReadColumns(
                starts=start_arr[order],
                stops=np.asarray(stops[rname], dtype=np.int64)[order],
                strands=np.asarray(strands[rname], dtype=np.int8)[order],
                copy_numbers=np.asarray(copy_numbers[rname], dtype=np.int64)[order],
                details=rname_details,
            )

        logger.info(f"Loaded {kept} reads on {len(columns)} reference sequences")
        if dropped:
            logger.info(f"Filtered out {dropped} reads")
        return cls(columns)

    def subset(self, rnames: Iterable[str]) -> IntervalReadsCollection:
        """Collection restricted to some reference sequences (shares arrays)."""
        return IntervalReadsCollection(
            {rname: self.columns[rname] for rname in rnames if rname in self.columns}
        )

    def _build_read(self, rname: str, cols: ReadColumns, i: int) -> Read:
        extra: dict[str, Any] = {}
        if cols.details is not None:
            sequence, cigar, query_length, alignment_length, n_mappings, annotations = (
                cols.details[i]
            )
            extra = {
                "sequence": sequence,
                "cigar": cigar,
                "query_length": query_length,
                "alignment_length": alignment_length,
                "number_of_mappings": n_mappings,
                "annotations": annotations,
            }
        return Read(
            rname,
            int(cols.starts[i]),
            int(cols.stops[i]),
            int(cols.strands[i]),
            copy_number=int(cols.copy_numbers[i]),
            **extra,
        )

    def iter_reads_on(
        self,
        rname: str,
        strand: int | None = None,
        start: int | None = None,
        stop: int | None = None,
        contained: bool = False,
    ) -> Iterator[Read]:
        cols = self.columns.get(rname)
        if cols is None:
            return
        for i in cols.indices(strand, start, stop, contained):
            yield self._build_read(rname, cols, int(i))

    def distinct_reference_names(self) -> list[str]:
        return sorted(self.columns)

    def total_copy_number(self) -> int:
        if self._total_copy_number is None:
            self._total_copy_number = sum(
                int(cols.copy_numbers.sum()) for cols in self.columns.values()
            )
        return self._total_copy_number

    def longest_read_length(self) -> int:
        return max((cols.max_length for cols in self.columns.values()), default=0)

    def record_count(self) -> int:
        return sum(len(cols) for cols in self.columns.values())

    def total_copy_number_contained_in(
        self,
        strand: int | None,
        rname: str,
        start: int,
        stop: int,
    ) -> int:
        cols = self.columns.get(rname)
        if cols is None:
            return 0
        idx = cols.indices(strand, start, stop, contained=True)
        return int(cols.copy_numbers[idx].sum())
