"""Reference sequence sizes.

Occupancy maps are sized from a tab-delimited file listing one
reference sequence per line::

    chr1	248956422
    chr2	242193529

Example:
    >>> from clipseqtools.io.sizes import read_rname_sizes
    >>> sizes = read_rname_sizes("hg38.chrom.sizes")
    >>> sizes["chr1"]
    248956422
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from clipseqtools.config import ConfigurationError

logger = logging.getLogger(__name__)


def read_rname_sizes(path: Path | str) -> dict[str, int]:
    """Read ``name<TAB>size`` lines.

    Args:
        path: Sizes file.

    Returns:
        Mapping of reference name to length, in file order.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ConfigurationError: If the file is empty or malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Sizes file not found: {path}")

    sizes: dict[str, int] = {}
    with open(path) as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            parts = line.split("\t")
            if len(parts) < 2:
                raise ConfigurationError(
                    f"Malformed sizes line {line_number} in {path}: {line[:50]}"
                )
            try:
                size = int(parts[1])
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid size on line {line_number} in {path}: {parts[1]!r}"
                ) from e
            if size <= 0:
                raise ConfigurationError(
                    f"Non-positive size for {parts[0]} on line {line_number} in {path}"
                )
            sizes[parts[0]] = size

    if not sizes:
        raise ConfigurationError(f"Sizes file is empty: {path}")

    logger.info(f"Read sizes for {len(sizes)} reference sequences")
    return sizes


def require_sizes(sizes: dict[str, int], rnames: Iterable[str]) -> None:
    """Check that every reference sequence carrying reads has a size.

    Raises:
        ConfigurationError: Listing the missing names.
    """
    missing = [rname for rname in rnames if rname not in sizes]
    if missing:
        shown = ", ".join(missing[:5])
        suffix = "..." if len(missing) > 5 else ""
        raise ConfigurationError(f"No size given for reference sequences: {shown}{suffix}")
