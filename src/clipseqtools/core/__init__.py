"""Core positional engine for clipseqtools.

- Per-chromosome occupancy maps
- Spliced features and relative exonic positions
- Positional binning and bin accumulators

Example:
    >>> from clipseqtools.core import ChromosomeOccupancyMap, CounterWidth
    >>> occupancy = ChromosomeOccupancyMap.create(1000, CounterWidth.BOOLEAN)
"""

from clipseqtools.core.binning import BinAccumulator, PositionalBinner, bin_index
from clipseqtools.core.features import NOT_CONTAINED, SplicedFeature
from clipseqtools.core.occupancy import (
    ChromosomeOccupancyMap,
    CounterWidth,
    OutOfRangeError,
)

__all__: list[str] = [
    # Occupancy
    "ChromosomeOccupancyMap",
    "CounterWidth",
    "OutOfRangeError",
    # Features
    "NOT_CONTAINED",
    "SplicedFeature",
    # Binning
    "BinAccumulator",
    "PositionalBinner",
    "bin_index",
]
