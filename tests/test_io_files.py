"""Tests for the BED, sizes and output table modules."""

import gzip
import math
from pathlib import Path

import numpy as np
import pytest

from clipseqtools.config import ConfigurationError
from clipseqtools.io.bed import parse_bed_line, read_bed
from clipseqtools.io.filters import ReadFilter
from clipseqtools.io.sizes import read_rname_sizes, require_sizes
from clipseqtools.io.tables import NA, format_value, output_path, read_table, write_table
from clipseqtools.utils.intervals import MINUS, PLUS, InvalidIntervalError


# =============================================================================
# BED Tests
# =============================================================================


class TestParseBedLine:
    """Tests for parse_bed_line."""

    def test_half_open_to_closed(self):
        read = parse_bed_line("chr1\t100\t200\tr1\t3\t-\n")
        assert (read.start, read.stop, read.strand) == (100, 199, MINUS)
        assert read.copy_number == 3
        assert read.query_length == 100
        assert read.column("name") == "r1"

    def test_three_columns_default_to_plus_and_one_copy(self):
        read = parse_bed_line("chr1\t0\t10")
        assert read.strand == PLUS
        assert read.copy_number == 1

    @pytest.mark.parametrize("line", ["", "# comment", "track name=x", "browser position"])
    def test_headers_skipped(self, line):
        assert parse_bed_line(line) is None

    @pytest.mark.parametrize("line", ["chr1\t100", "chr1\tabc\t200", "chr1\t200\t100"])
    def test_malformed(self, line):
        with pytest.raises(InvalidIntervalError):
            parse_bed_line(line, line_number=7)


class TestReadBed:
    """Tests for read_bed."""

    def test_load(self, bed_file):
        reads = read_bed(bed_file)
        assert reads.record_count() == 3
        assert reads.total_copy_number() == 7
        assert reads.distinct_reference_names() == ["chr1", "chr2"]

    def test_gzipped(self, tmp_path: Path):
        path = tmp_path / "reads.bed.gz"
        with gzip.open(path, "wt") as f:
            f.write("chr1\t0\t10\tr\t2\t+\n")
        assert read_bed(path).total_copy_number() == 2

    def test_filter(self, bed_file):
        reads = read_bed(bed_file, ReadFilter.from_expressions(['copy_number=">1"']))
        assert reads.record_count() == 2

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            read_bed(tmp_path / "missing.bed")


# =============================================================================
# Sizes Tests
# =============================================================================


class TestRnameSizes:
    """Tests for read_rname_sizes and require_sizes."""

    def test_read(self, sizes_file):
        assert read_rname_sizes(sizes_file) == {"chr1": 1000, "chr2": 500}

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.sizes"
        path.write_text("\n")
        with pytest.raises(ConfigurationError):
            read_rname_sizes(path)

    @pytest.mark.parametrize("content", ["chr1\n", "chr1\tbig\n", "chr1\t0\n"])
    def test_malformed(self, tmp_path: Path, content):
        path = tmp_path / "bad.sizes"
        path.write_text(content)
        with pytest.raises(ConfigurationError):
            read_rname_sizes(path)

    def test_require_sizes(self):
        require_sizes({"chr1": 10}, ["chr1"])
        with pytest.raises(ConfigurationError, match="chr2"):
            require_sizes({"chr1": 10}, ["chr1", "chr2"])


# =============================================================================
# Table Tests
# =============================================================================


class TestTables:
    """Tests for TSV output helpers."""

    @pytest.mark.parametrize(
        "value, expected",
        [(None, NA), (math.nan, NA), (np.float64("nan"), NA), (np.int64(3), 3), (0, 0), ("x", "x")],
    )
    def test_format_value(self, value, expected):
        assert format_value(value) == expected

    def test_write_and_read(self, tmp_path: Path):
        path = tmp_path / "nested" / "table.tab"
        n_rows = write_table(path, ["bin", "value"], [[0, 1.5], [1, None]])
        assert n_rows == 2
        assert path.read_text() == "bin\tvalue\n0\t1.5\n1\tNA\n"
        assert read_table(path) == [{"bin": "0", "value": "1.5"}, {"bin": "1", "value": "NA"}]

    def test_row_length_checked(self, tmp_path: Path):
        with pytest.raises(ValueError):
            write_table(tmp_path / "t.tab", ["a", "b"], [[1]])

    def test_output_path_directory_prefix(self, tmp_path: Path):
        assert output_path(f"{tmp_path}/", "x.tab") == tmp_path / "x.tab"
        assert output_path(tmp_path, "x.tab") == tmp_path / "x.tab"

    def test_output_path_file_prefix(self, tmp_path: Path):
        assert output_path(f"{tmp_path}/run1_", "x.tab") == tmp_path / "run1_x.tab"
