"""Read distributions along idealized genic elements.

Two analyses bin the reads of a library along the elements of coding
transcripts:

- ``distribution_on_genic_elements``: 5'UTR, CDS and 3'UTR, each taken
  as its spliced exonic sequence. Elements with exonic length not greater
  than ``length_thres`` are left out.
- ``distribution_on_introns_exons``: every exon and intron of every
  coding transcript, each binned linearly from its 5' end.

Transcripts are grouped by chromosome and the per-chromosome partial
accumulators are merged afterwards.

Example:
    >>> from clipseqtools.analysis.distribution import distribution_on_genic_elements
    >>> result = distribution_on_genic_elements(reads, transcripts, bins=10)
    >>> result.accumulators["utr5"].n_features
    1520
"""

from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING

import attrs
import numpy as np

from clipseqtools.core.binning import BinAccumulator, PositionalBinner
from clipseqtools.io.tables import write_table
from clipseqtools.parallel.executor import ParallelExecutor
from clipseqtools.utils.logging import ChromosomeProgress

if TYPE_CHECKING:
    from clipseqtools.io.annotation import Transcript
    from clipseqtools.io.reads import ReadsCollection

logger = logging.getLogger(__name__)

GENIC_ELEMENTS = ("utr5", "cds", "utr3")
INTRON_EXON_ELEMENTS = ("exon", "intron")
DISTRIBUTION_HEADER = ["bin", "element", "avg_counts", "avg_counts_per_nt", "avg_rpkm"]


def _coding_by_rname(transcripts: list[Transcript]) -> dict[str, list[tuple[int, Transcript]]]:
    """Coding transcripts grouped by chromosome, with their input index."""
    grouped: dict[str, list[tuple[int, Transcript]]] = defaultdict(list)
    for index, transcript in enumerate(transcripts):
        if transcript.is_coding:
            grouped[transcript.rname].append((index, transcript))
    return grouped


def _progress(indexed_transcripts: list[tuple[int, Transcript]]) -> ChromosomeProgress:
    rname = indexed_transcripts[0][1].rname if indexed_transcripts else "-"
    return ChromosomeProgress(logger, rname, total=len(indexed_transcripts))


# =============================================================================
# Result Containers
# =============================================================================


@attrs.define(slots=True)
class ElementDistribution:
    """Bin accumulators for a set of element categories.

    Attributes:
        bins: Number of bins.
        elements: Category names in output order.
        accumulators: Category -> accumulator.
        total_copy_number: Library size used for RPKM.
    """

    bins: int
    elements: tuple[str, ...]
    accumulators: dict[str, BinAccumulator] = attrs.field(init=False)
    total_copy_number: int = 0

    def __attrs_post_init__(self) -> None:
        self.accumulators = {element: BinAccumulator(self.bins) for element in self.elements}

    def merge(self, other: ElementDistribution) -> ElementDistribution:
        """Fold another partial distribution into this one and return self."""
        for element in self.elements:
            self.accumulators[element].merge(other.accumulators[element])
        return self

    def rows(self) -> list[list]:
        """Averaged table rows, category by category."""
        rows = []
        for element in self.elements:
            rows.extend(self.accumulators[element].rows(element, self.total_copy_number))
        return rows


@attrs.define(slots=True)
class GenicElementsDistribution(ElementDistribution):
    """5'UTR/CDS/3'UTR distribution with per-transcript bin counts.

    Attributes:
        per_transcript: (transcript_id, element -> counts or None) in the
            order of the input transcripts.
    """

    per_transcript: list[tuple[str, dict[str, np.ndarray | None]]] = attrs.Factory(list)

    def per_transcript_header(self) -> list[str]:
        return ["transcript_id"] + [
            f"{element}_bin_{b}" for element in self.elements for b in range(self.bins)
        ]

    def per_transcript_rows(self) -> list[list]:
        """One row per coding transcript; uncounted elements are None."""
        rows = []
        for transcript_id, counts in self.per_transcript:
            row: list = [transcript_id]
            for element in self.elements:
                element_counts = counts.get(element)
                if element_counts is None:
                    row.extend([None] * self.bins)
                else:
                    row.extend(int(c) for c in element_counts)
            rows.append(row)
        return rows


# =============================================================================
# 5'UTR / CDS / 3'UTR
# =============================================================================


def rname_genic_elements(
    task: tuple[list[tuple[int, Transcript]], ReadsCollection, int, int, int],
) -> tuple[GenicElementsDistribution, list[tuple[int, str, dict[str, np.ndarray | None]]]]:
    """Bin reads along the UTRs and CDS of the coding transcripts of one chromosome.

    Args:
        task: (indexed transcripts, reads, bins, length_thres, margin).

    Returns:
        Partial distribution and indexed per-transcript counts.
    """
    indexed_transcripts, reads, bins, length_thres, margin = task
    binner = PositionalBinner(reads, bins, margin=margin)
    partial = GenicElementsDistribution(bins, GENIC_ELEMENTS)
    per_transcript = []
    progress = _progress(indexed_transcripts)

    for index, transcript in indexed_transcripts:
        counts: dict[str, np.ndarray | None] = {}
        for element in GENIC_ELEMENTS:
            feature = getattr(transcript, element)
            if feature is None or feature.exonic_length <= length_thres:
                counts[element] = None
                continue
            element_counts = binner.count_spliced(feature)
            partial.accumulators[element].add(element_counts, feature.exonic_length)
            counts[element] = element_counts
        per_transcript.append((index, transcript.transcript_id, counts))
        progress.update()
    progress.finish()

    return partial, per_transcript


def distribution_on_genic_elements(
    reads: ReadsCollection,
    transcripts: list[Transcript],
    bins: int = 10,
    length_thres: int = 300,
    executor: ParallelExecutor | None = None,
) -> GenicElementsDistribution:
    """Distribution of reads along the 5'UTR, CDS and 3'UTR of coding transcripts.

    Args:
        reads: Library reads.
        transcripts: Annotated transcripts; non-coding ones are ignored.
        bins: Number of bins per element.
        length_thres: Elements with exonic length not greater than this
            are not counted.
        executor: Runs one chromosome per task (serial by default).

    Returns:
        Averaged accumulators and per-transcript counts.
    """
    grouped = _coding_by_rname(transcripts)
    rnames = sorted(grouped)
    margin = reads.longest_read_length() // 2

    executor = executor or ParallelExecutor()
    tasks = [
        (grouped[rname], reads.subset([rname]), bins, length_thres, margin)
        for rname in rnames
    ]
    results = executor.map_items(rname_genic_elements, tasks, item_ids=rnames)

    distribution = GenicElementsDistribution(
        bins, GENIC_ELEMENTS, total_copy_number=reads.total_copy_number()
    )
    indexed = []
    for result in results:
        partial, per_transcript = result.result
        distribution.merge(partial)
        indexed.extend(per_transcript)
    indexed.sort(key=lambda entry: entry[0])
    distribution.per_transcript = [(tid, counts) for _, tid, counts in indexed]

    for element in GENIC_ELEMENTS:
        logger.info(f"Counted {element}: {distribution.accumulators[element].n_features}")
    return distribution


# =============================================================================
# Exons / Introns
# =============================================================================


def rname_introns_exons(
    task: tuple[list[tuple[int, Transcript]], ReadsCollection, int, int],
) -> ElementDistribution:
    """Bin reads along the exons and introns of the coding transcripts of one chromosome.

    Args:
        task: (indexed transcripts, reads, bins, margin).
    """
    indexed_transcripts, reads, bins, margin = task
    binner = PositionalBinner(reads, bins, margin=margin)
    partial = ElementDistribution(bins, INTRON_EXON_ELEMENTS)
    progress = _progress(indexed_transcripts)

    for _, transcript in indexed_transcripts:
        for exon in transcript.exons:
            partial.accumulators["exon"].add(binner.count_linear(exon), exon.length)
        for intron in transcript.introns:
            partial.accumulators["intron"].add(binner.count_linear(intron), intron.length)
        progress.update()
    progress.finish()

    return partial


def distribution_on_introns_exons(
    reads: ReadsCollection,
    transcripts: list[Transcript],
    bins: int = 10,
    executor: ParallelExecutor | None = None,
) -> ElementDistribution:
    """Distribution of reads along the exons and introns of coding transcripts.

    Every exon and intron is counted, whatever its length.

    Args:
        reads: Library reads.
        transcripts: Annotated transcripts; non-coding ones are ignored.
        bins: Number of bins per element.
        executor: Runs one chromosome per task (serial by default).

    Returns:
        Averaged exon and intron accumulators.
    """
    grouped = _coding_by_rname(transcripts)
    rnames = sorted(grouped)
    margin = reads.longest_read_length() // 2

    executor = executor or ParallelExecutor()
    tasks = [(grouped[rname], reads.subset([rname]), bins, margin) for rname in rnames]
    results = executor.map_items(rname_introns_exons, tasks, item_ids=rnames)

    distribution = ElementDistribution(
        bins, INTRON_EXON_ELEMENTS, total_copy_number=reads.total_copy_number()
    )
    for result in results:
        distribution.merge(result.result)

    for element in INTRON_EXON_ELEMENTS:
        logger.info(f"Counted {element}s: {distribution.accumulators[element].n_features}")
    return distribution


# =============================================================================
# Writers
# =============================================================================


def write_distribution(distribution: ElementDistribution, output_path: Path | str) -> None:
    """Write the averaged ``bin, element, avg_*`` table."""
    write_table(output_path, DISTRIBUTION_HEADER, distribution.rows())


def write_per_transcript_distribution(
    distribution: GenicElementsDistribution,
    output_path: Path | str,
) -> None:
    """Write per-transcript bin counts (``NA`` for uncounted elements)."""
    write_table(
        output_path,
        distribution.per_transcript_header(),
        distribution.per_transcript_rows(),
    )
