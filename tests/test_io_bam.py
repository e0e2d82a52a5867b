"""Tests for clipseqtools.io.bam module.

pysam.AlignmentFile is mocked so no indexed alignment file is needed.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from clipseqtools.io.bam import alignment_to_read, read_alignments
from clipseqtools.utils.intervals import MINUS, PLUS


def _segment(
    start: int,
    end: int,
    reverse: bool = False,
    tags: dict | None = None,
    unmapped: bool = False,
    secondary: bool = False,
) -> MagicMock:
    tags = tags or {}
    segment = MagicMock()
    segment.reference_name = "chr1"
    segment.reference_start = start
    segment.reference_end = end
    segment.is_reverse = reverse
    segment.is_unmapped = unmapped
    segment.is_secondary = secondary
    segment.is_supplementary = False
    segment.query_sequence = "A" * (end - start)
    segment.query_length = end - start
    segment.cigarstring = f"{end - start}M"
    segment.has_tag.side_effect = lambda tag: tag in tags
    segment.get_tag.side_effect = lambda tag: tags[tag]
    return segment


class TestAlignmentToRead:
    """Tests for alignment_to_read."""

    def test_coordinates_and_tags(self):
        read = alignment_to_read(_segment(100, 130, reverse=True, tags={"XC": 4, "NH": 2, "MD": "30"}))
        assert (read.start, read.stop, read.strand) == (100, 129, MINUS)
        assert read.copy_number == 4
        assert read.number_of_mappings == 2
        assert read.alignment_length == 30
        assert read.cigar == "30M"
        assert read.column("mdz") == "30"

    def test_defaults_without_tags(self):
        read = alignment_to_read(_segment(0, 10))
        assert read.strand == PLUS
        assert read.copy_number == 1
        assert read.number_of_mappings is None


class TestReadAlignments:
    """Tests for read_alignments."""

    def test_skips_unmapped_and_secondary(self, tmp_path: Path):
        path = tmp_path / "reads.sam"
        path.write_text("")
        segments = [
            _segment(0, 10, tags={"XC": 2}),
            _segment(20, 30, unmapped=True),
            _segment(40, 50, secondary=True),
        ]
        with patch("clipseqtools.io.bam.pysam.AlignmentFile") as mock_alignment_file:
            handle = mock_alignment_file.return_value.__enter__.return_value
            handle.fetch.return_value = iter(segments)
            reads = read_alignments(path)

        assert reads.record_count() == 1
        assert reads.total_copy_number() == 2
        assert next(reads.iter_reads()).cigar == "10M"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            read_alignments(tmp_path / "missing.bam")
