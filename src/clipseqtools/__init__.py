"""clipseqtools: positional statistics for CLIP-Seq libraries.

clipseqtools measures where the reads of a CLIP-Seq library fall on the
genome and on the transcriptome: genome coverage, distribution along
5'UTR/CDS/3'UTR and exon/intron elements, overlap between libraries,
and relative read density around the reads of a reference library.

Example:
    >>> import clipseqtools
    >>> clipseqtools.__version__
    '0.3.0'

Modules:
    io: Readers for reads (BED, SAM/BAM), GTF annotation and chromosome sizes
    core: Occupancy maps, spliced features and positional binning
    analysis: Analyses built on the core (coverage, distributions, comparisons)
    parallel: Per-chromosome execution utilities
    utils: Genomic intervals and logging
"""

__version__ = "0.3.0"
__author__ = "clipseqtools developers"

__all__ = [
    "__version__",
    "__author__",
]
