"""Utility functions for clipseqtools.

- Stranded genomic intervals (overlap, containment, midpoint, merging)
- Logging configuration

Example:
    >>> from clipseqtools.utils import GenomicInterval
    >>> GenomicInterval("chr1", 10, 20, -1).head
    20
"""

from clipseqtools.utils.intervals import (
    MINUS,
    PLUS,
    GenomicInterval,
    InvalidIntervalError,
    interval_gaps,
    merge_intervals,
    strand_from_symbol,
    strand_symbol,
)

__all__ = [
    "PLUS",
    "MINUS",
    "GenomicInterval",
    "InvalidIntervalError",
    "interval_gaps",
    "merge_intervals",
    "strand_from_symbol",
    "strand_symbol",
]
