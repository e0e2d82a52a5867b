"""BED reads reader.

Reads a BED file of aligned reads into an IntervalReadsCollection.

Columns used:
    1. chrom
    2. chromStart (0-based)
    3. chromEnd (0-based, exclusive; stored as stop = chromEnd - 1)
    4. name (kept as the ``name`` annotation)
    5. score (copy number; missing or "." means 1)
    6. strand ("+" or "-"; missing or "." means +)

Example:
    >>> from clipseqtools.io.bed import read_bed
    >>> reads = read_bed("library.bed")
    >>> reads.total_copy_number()
    125034
"""

from __future__ import annotations

import gzip
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import IO

from clipseqtools.io.filters import ReadFilter
from clipseqtools.io.reads import IntervalReadsCollection, Read
from clipseqtools.utils.intervals import PLUS, InvalidIntervalError, strand_from_symbol

logger = logging.getLogger(__name__)

# BED column indices
COL_CHROM = 0
COL_START = 1
COL_END = 2
COL_NAME = 3
COL_SCORE = 4
COL_STRAND = 5

_HEADER_PREFIXES = ("#", "track", "browser")


def _open_text(path: Path) -> IO[str]:
    if path.suffix == ".gz":
        return gzip.open(path, "rt")
    return open(path)


def parse_bed_line(line: str, line_number: int = 0) -> Read | None:
    """Parse one BED line into a Read.

    Args:
        line: Raw line.
        line_number: Line number for error messages.

    Returns:
        Read, or None for headers and blank lines.

    Raises:
        InvalidIntervalError: If the line is malformed.
    """
    line = line.rstrip("\n\r")
    if not line.strip() or line.startswith(_HEADER_PREFIXES):
        return None

    parts = line.split("\t")
    if len(parts) < 3:
        raise InvalidIntervalError(
            f"Malformed BED line {line_number} (expected >= 3 columns): {line[:50]}"
        )

    try:
        start = int(parts[COL_START])
        end = int(parts[COL_END])
        copy_number = 1
        if len(parts) > COL_SCORE and parts[COL_SCORE] not in ("", "."):
            copy_number = int(float(parts[COL_SCORE]))
    except ValueError as e:
        raise InvalidIntervalError(f"Malformed BED line {line_number}: {e}") from e

    strand = PLUS
    if len(parts) > COL_STRAND and parts[COL_STRAND] not in ("", "."):
        strand = strand_from_symbol(parts[COL_STRAND])

    annotations = {}
    if len(parts) > COL_NAME and parts[COL_NAME] not in ("", "."):
        annotations["name"] = parts[COL_NAME]

    length = end - start
    return Read(
        parts[COL_CHROM],
        start,
        end - 1,
        strand,
        copy_number=copy_number,
        query_length=length,
        alignment_length=length,
        annotations=annotations,
    )


def iter_bed(path: Path | str) -> Iterator[Read]:
    """Stream reads from a BED file (plain or gzipped).

    Raises:
        FileNotFoundError: If the file doesn't exist.
        InvalidIntervalError: On malformed lines.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"BED file not found: {path}")

    with _open_text(path) as f:
        for line_number, line in enumerate(f, start=1):
            read = parse_bed_line(line, line_number)
            if read is not None:
                yield read


def read_bed(
    path: Path | str,
    read_filter: ReadFilter | None = None,
    keep_details: bool = True,
) -> IntervalReadsCollection:
    """Load a BED file into a reads collection.

    Args:
        path: BED file.
        read_filter: Optional typed filter.
        keep_details: Keep per-read annotation columns.

    Returns:
        IntervalReadsCollection.
    """
    logger.info(f"Reading BED reads from {path}")
    return IntervalReadsCollection.from_reads(iter_bed(path), read_filter, keep_details)
