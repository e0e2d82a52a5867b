"""Tab-delimited output tables.

Every analysis writes a header row followed by data rows. Undefined
aggregates (None or NaN) are written as ``NA``.

Example:
    >>> from clipseqtools.io.tables import write_table
    >>> write_table("out/genome_coverage.tab", ["rname", "covered_area"], [["chr1", 100]])
"""

from __future__ import annotations

import csv
import logging
import math
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import numpy as np

logger = logging.getLogger(__name__)

NA = "NA"


def format_value(value: Any) -> Any:
    """Render one cell; None and NaN become ``NA``."""
    if value is None:
        return NA
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, (float, np.floating)):
        value = float(value)
        if math.isnan(value):
            return NA
    return value


def write_table(
    output_path: Path | str,
    header: Sequence[str],
    rows: Iterable[Sequence[Any]],
) -> int:
    """Write a TSV table, creating parent directories.

    Args:
        output_path: Output file path.
        header: Column names.
        rows: Data rows, one value per column.

    Returns:
        Number of data rows written.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    n_rows = 0
    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f, delimiter="\t", lineterminator="\n")
        writer.writerow(header)
        for row in rows:
            if len(row) != len(header):
                raise ValueError(
                    f"Row has {len(row)} values but the header has {len(header)} columns"
                )
            writer.writerow([format_value(value) for value in row])
            n_rows += 1

    logger.info(f"Wrote {n_rows} rows to {output_path}")
    return n_rows


def read_table(path: Path | str) -> list[dict[str, str]]:
    """Read a TSV table written by :func:`write_table` into dict rows."""
    with open(path, newline="") as f:
        return list(csv.DictReader(f, delimiter="\t"))


def output_path(o_prefix: Path | str, name: str) -> Path:
    """Output file for an analysis: ``o_prefix`` followed by ``name``.

    A prefix ending in a path separator (or naming an existing directory)
    places the file inside that directory.
    """
    prefix = str(o_prefix)
    if prefix.endswith(("/", "\\")) or Path(prefix).is_dir():
        return Path(prefix) / name
    return Path(prefix + name)
