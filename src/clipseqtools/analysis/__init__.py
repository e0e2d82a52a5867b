"""Analyses of CLIP-Seq libraries.

- Genome coverage
- Distribution along 5'UTR/CDS/3'UTR and along exons/introns
- Overlap and relative read density between two libraries
- Read counts per gene, transcript, exon and intron
- Size distribution of long alignment gaps

Example:
    >>> from clipseqtools.analysis import genome_coverage
    >>> rows = genome_coverage(reads, sizes)
"""

from clipseqtools.analysis.compare import (
    DensityProfile,
    OverlapStats,
    libraries_overlap_stats,
    libraries_relative_read_density,
)
from clipseqtools.analysis.counts import GenicElementCounts, count_tags_per_genic_element
from clipseqtools.analysis.coverage import CoverageRow, genome_coverage
from clipseqtools.analysis.distribution import (
    ElementDistribution,
    GenicElementsDistribution,
    distribution_on_genic_elements,
    distribution_on_introns_exons,
)
from clipseqtools.analysis.gaps import reads_long_gaps_size_distribution

__all__: list[str] = [
    # Coverage
    "CoverageRow",
    "genome_coverage",
    # Distributions
    "ElementDistribution",
    "GenicElementsDistribution",
    "distribution_on_genic_elements",
    "distribution_on_introns_exons",
    # Library comparison
    "DensityProfile",
    "OverlapStats",
    "libraries_overlap_stats",
    "libraries_relative_read_density",
    # Counts
    "GenicElementCounts",
    "count_tags_per_genic_element",
    "reads_long_gaps_size_distribution",
]
