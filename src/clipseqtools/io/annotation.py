"""GTF annotation handling.

This module parses a GTF file into transcript and gene records whose
exon, intron, 5'UTR, CDS and 3'UTR substructure is resolved up front.
Records are read-only once built.

Features:
    - ``exon``, ``CDS``, ``start_codon`` and ``stop_codon`` features
    - Coding region = span of CDS plus start/stop codons
    - UTRs derived from exonic sequence outside the coding region
    - Genes assembled from transcripts sharing a gene_id

Example:
    >>> from clipseqtools.io.annotation import GTFParser
    >>> parser = GTFParser("genes.gtf")
    >>> coding = [t for t in parser.iter_transcripts() if t.is_coding]
    >>> coding[0].utr5.exonic_length
    154
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import attrs

from clipseqtools.core.features import SplicedFeature
from clipseqtools.utils.intervals import (
    PLUS,
    GenomicInterval,
    InvalidIntervalError,
    interval_gaps,
    merge_intervals,
    strand_from_symbol,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# GTF column indices
COL_SEQNAME = 0
COL_SOURCE = 1
COL_FEATURE = 2
COL_START = 3
COL_END = 4
COL_SCORE = 5
COL_STRAND = 6
COL_FRAME = 7
COL_ATTRIBUTES = 8

FEATURE_EXON = "exon"
FEATURE_CDS = "CDS"
FEATURE_START_CODON = "start_codon"
FEATURE_STOP_CODON = "stop_codon"
CODING_FEATURES = {FEATURE_CDS, FEATURE_START_CODON, FEATURE_STOP_CODON}

_ATTRIBUTE = re.compile(r'\s*([^\s;]+)\s+"?([^";]*)"?\s*')


# =============================================================================
# Data Models
# =============================================================================


def _within(
    exons: tuple[GenomicInterval, ...], lo: int, hi: int
) -> SplicedFeature | None:
    """Exonic parts clipped to [lo, hi], or None if nothing is left."""
    if lo > hi:
        return None
    parts = [
        GenomicInterval(e.rname, max(e.start, lo), min(e.stop, hi), e.strand)
        for e in exons
        if e.stop >= lo and e.start <= hi
    ]
    return SplicedFeature(parts) if parts else None


@attrs.define(slots=True)
class Transcript:
    """A transcript with resolved substructure.

    Attributes:
        transcript_id: Unique transcript identifier.
        gene_id: Parent gene identifier.
        exons: Exons in ascending genomic order.
        coding_start: Leftmost coding base, or None for non-coding.
        coding_stop: Rightmost coding base, or None for non-coding.
        gene_name: Display name of the parent gene.
        attributes: GTF attributes of the first exon.
        introns: Gaps between consecutive exons.
        utr5: 5'UTR (None if absent).
        cds: Coding sequence (None if non-coding).
        utr3: 3'UTR (None if absent).
    """

    transcript_id: str
    gene_id: str
    exons: tuple[GenomicInterval, ...]
    coding_start: int | None = None
    coding_stop: int | None = None
    gene_name: str | None = None
    attributes: dict[str, str] = attrs.Factory(dict)
    introns: tuple[GenomicInterval, ...] = attrs.field(init=False)
    utr5: SplicedFeature | None = attrs.field(init=False, default=None)
    cds: SplicedFeature | None = attrs.field(init=False, default=None)
    utr3: SplicedFeature | None = attrs.field(init=False, default=None)

    def __attrs_post_init__(self) -> None:
        if not self.exons:
            raise InvalidIntervalError(f"Transcript {self.transcript_id} has no exons")

        # Validates rname/strand agreement and non-overlap of exons
        exonic = SplicedFeature(self.exons)
        self.exons = exonic.parts
        self.introns = tuple(interval_gaps(list(self.exons)))

        if self.coding_start is None or self.coding_stop is None:
            return

        cds = _within(self.exons, self.coding_start, self.coding_stop)
        if cds is None:
            logger.warning(
                f"Coding region of {self.transcript_id} is not exonic; treating as non-coding"
            )
            self.coding_start = self.coding_stop = None
            return

        left = _within(self.exons, self.start, self.coding_start - 1)
        right = _within(self.exons, self.coding_stop + 1, self.stop)
        self.cds = cds
        if self.strand == PLUS:
            self.utr5, self.utr3 = left, right
        else:
            self.utr5, self.utr3 = right, left

    @property
    def rname(self) -> str:
        return self.exons[0].rname

    @property
    def strand(self) -> int:
        return self.exons[0].strand

    @property
    def start(self) -> int:
        return self.exons[0].start

    @property
    def stop(self) -> int:
        return self.exons[-1].stop

    @property
    def span(self) -> GenomicInterval:
        """Genomic span of the transcript."""
        return GenomicInterval(self.rname, self.start, self.stop, self.strand)

    @property
    def location(self) -> str:
        return self.span.location

    @property
    def length(self) -> int:
        """Genomic length including introns."""
        return self.stop - self.start + 1

    @property
    def is_coding(self) -> bool:
        return self.cds is not None

    @property
    def exonic_length(self) -> int:
        return sum(exon.length for exon in self.exons)

    @property
    def intronic_length(self) -> int:
        return sum(intron.length for intron in self.introns)


@attrs.define(slots=True)
class Gene:
    """A gene assembled from its transcripts.

    Attributes:
        gene_id: Unique gene identifier.
        name: Display name (gene_name attribute, else gene_id).
        transcripts: Child transcripts.
    """

    gene_id: str
    name: str
    transcripts: list[Transcript] = attrs.Factory(list)

    @property
    def rname(self) -> str:
        return self.transcripts[0].rname

    @property
    def strand(self) -> int:
        return self.transcripts[0].strand

    @property
    def start(self) -> int:
        return min(t.start for t in self.transcripts)

    @property
    def stop(self) -> int:
        return max(t.stop for t in self.transcripts)

    @property
    def length(self) -> int:
        return self.stop - self.start + 1

    @property
    def location(self) -> str:
        return GenomicInterval(self.rname, self.start, self.stop, self.strand).location

    @property
    def exonic_regions(self) -> list[GenomicInterval]:
        """Union of the exons of all transcripts."""
        return merge_intervals([exon for t in self.transcripts for exon in t.exons])

    @property
    def exonic_length(self) -> int:
        return sum(region.length for region in self.exonic_regions)


def genes_from_transcripts(transcripts: Iterable[Transcript]) -> list[Gene]:
    """Group transcripts into genes by gene_id, in first-seen order."""
    genes: dict[str, Gene] = {}
    for transcript in transcripts:
        gene = genes.get(transcript.gene_id)
        if gene is None:
            gene = Gene(
                gene_id=transcript.gene_id,
                name=transcript.gene_name or transcript.gene_id,
            )
            genes[transcript.gene_id] = gene
        gene.transcripts.append(transcript)
    return list(genes.values())


# =============================================================================
# Attribute Parsing
# =============================================================================


def parse_attributes(attr_string: str) -> dict[str, str]:
    """Parse a GTF attribute column (``key "value"; key "value";``).

    Args:
        attr_string: Raw attribute column.

    Returns:
        Dictionary of attributes; repeated keys keep the first value.
    """
    attributes: dict[str, str] = {}
    if not attr_string or attr_string == ".":
        return attributes

    for item in attr_string.split(";"):
        if not item.strip():
            continue
        match = _ATTRIBUTE.fullmatch(item)
        if match:
            attributes.setdefault(match.group(1), match.group(2))

    return attributes


# =============================================================================
# GTF Parser
# =============================================================================


class GTFParser:
    """Parse a GTF file into Transcript records.

    Attributes:
        path: Path to the GTF file.

    Example:
        >>> parser = GTFParser("genes.gtf")
        >>> for transcript in parser.iter_transcripts():
        ...     print(transcript.transcript_id, transcript.is_coding)
    """

    def __init__(self, gtf_path: Path | str) -> None:
        """Initialize the parser.

        Raises:
            FileNotFoundError: If file doesn't exist.
        """
        self.path = Path(gtf_path)
        if not self.path.exists():
            raise FileNotFoundError(f"GTF file not found: {self.path}")

        self._transcripts: dict[str, Transcript] | None = None

    def _parse_line(self, line: str) -> dict[str, Any] | None:
        """Parse a single GTF line; None for comments and unused features."""
        line = line.strip()
        if not line or line.startswith("#"):
            return None

        parts = line.split("\t")
        if len(parts) < 9:
            logger.warning(f"Malformed GTF line (expected 9 columns): {line[:50]}...")
            return None

        feature_type = parts[COL_FEATURE]
        if feature_type != FEATURE_EXON and feature_type not in CODING_FEATURES:
            return None

        try:
            # GTF is 1-based inclusive
            return {
                "rname": parts[COL_SEQNAME],
                "type": feature_type,
                "start": int(parts[COL_START]) - 1,
                "stop": int(parts[COL_END]) - 1,
                "strand": strand_from_symbol(parts[COL_STRAND]),
                "attributes": parse_attributes(parts[COL_ATTRIBUTES]),
            }
        except (ValueError, IndexError) as e:
            logger.warning(f"Error parsing GTF line: {e}")
            return None

    def _build(self) -> None:
        exons: dict[str, list[GenomicInterval]] = defaultdict(list)
        coding: dict[str, list[int]] = defaultdict(list)
        first_attributes: dict[str, dict[str, str]] = {}

        with open(self.path) as f:
            for line in f:
                feature = self._parse_line(line)
                if feature is None:
                    continue

                tx_id = feature["attributes"].get("transcript_id")
                if tx_id is None:
                    continue
                first_attributes.setdefault(tx_id, feature["attributes"])

                if feature["type"] == FEATURE_EXON:
                    exons[tx_id].append(
                        GenomicInterval(
                            feature["rname"], feature["start"], feature["stop"], feature["strand"]
                        )
                    )
                else:
                    coding[tx_id].extend((feature["start"], feature["stop"]))

        transcripts: dict[str, Transcript] = {}
        for tx_id, attributes in first_attributes.items():
            gene_id = attributes.get("gene_id", tx_id)
            gene_name = attributes.get("gene_name", gene_id)
            bounds = coding.get(tx_id)
            try:
                transcript = Transcript(
                    transcript_id=tx_id,
                    gene_id=gene_id,
                    exons=tuple(exons.get(tx_id, ())),
                    coding_start=min(bounds) if bounds else None,
                    coding_stop=max(bounds) if bounds else None,
                    gene_name=gene_name,
                    attributes=attributes,
                )
            except InvalidIntervalError as e:
                logger.warning(f"Skipping transcript {tx_id}: {e}")
                continue

            transcripts[tx_id] = transcript

        n_genes = len({t.gene_id for t in transcripts.values()})
        n_coding = sum(1 for t in transcripts.values() if t.is_coding)
        logger.info(
            f"Parsed {n_genes} genes, {len(transcripts)} transcripts ({n_coding} coding)"
        )
        self._transcripts = transcripts

    def _ensure_parsed(self) -> None:
        if self._transcripts is None:
            self._build()

    def iter_transcripts(self) -> Iterator[Transcript]:
        """Iterate over transcripts in file order."""
        self._ensure_parsed()
        assert self._transcripts is not None
        yield from self._transcripts.values()


def read_transcripts(gtf_path: Path | str) -> list[Transcript]:
    """Convenience function: all transcripts of a GTF file."""
    return list(GTFParser(gtf_path).iter_transcripts())
