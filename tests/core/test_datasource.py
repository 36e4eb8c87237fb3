"""
Tests for Dataset construction and ingestion.
"""

import io

import numpy as np
import pandas as pd
import pytest

from fitme.core.datasource import Dataset, parse_cell
from fitme.core.exceptions import DimensionError, NonNumericCellError, ValidationError


# ═══════════════════════════════════════════════════════════════════════
# Cell parsing
# ═══════════════════════════════════════════════════════════════════════


class TestParseCell:

    @pytest.mark.parametrize("raw, expected", [
        ("1.5", 1.5),
        ("-2", -2.0),
        ("1e-3", 1e-3),
        (" 4 ", 4.0),
        (3, 3.0),
        (np.float32(0.5), 0.5),
    ])
    def test_numbers(self, raw, expected):
        value = parse_cell(raw)
        assert isinstance(value, float)
        assert value == expected

    @pytest.mark.parametrize("raw", ["bar", "", "1,5", "x1"])
    def test_text_kept(self, raw):
        assert parse_cell(raw) == raw


# ═══════════════════════════════════════════════════════════════════════
# from_rows
# ═══════════════════════════════════════════════════════════════════════


class TestFromRows:

    def test_basic(self):
        ds = Dataset.from_rows(["y", "x"], [["1", "2"], [3.0, "bar"]])
        assert len(ds) == 2
        assert ds.n_observations == 2
        assert ds.row(0) == (1.0, 2.0)
        assert ds.row(1) == (3.0, "bar")
        assert ds.headers.names == ("y", "x")
        assert ds.metadata['source'] == 'rows'

    def test_row_length_mismatch_names_row(self):
        with pytest.raises(DimensionError) as exc_info:
            Dataset.from_rows(["y", "x"], [[1, 2], [3, 4], [5]])
        assert exc_info.value.row == 2

    def test_empty(self):
        ds = Dataset.from_rows(["y", "x"], [])
        assert ds.is_empty()
        assert len(ds) == 0

    def test_iteration(self):
        ds = Dataset.from_rows(["a"], [[1], [2]])
        assert [row[0] for row in ds] == [1.0, 2.0]

    def test_metadata_is_a_copy(self):
        ds = Dataset.from_rows(["a"], [[1]])
        ds.metadata['source'] = 'changed'
        assert ds.metadata['source'] == 'rows'


# ═══════════════════════════════════════════════════════════════════════
# Column access
# ═══════════════════════════════════════════════════════════════════════


class TestNumericColumn:

    def test_numeric(self):
        ds = Dataset.from_rows(["y", "x"], [[1, 2], [3, 4]])
        np.testing.assert_array_equal(ds.numeric_column(1), [2.0, 4.0])

    def test_text_cell(self):
        ds = Dataset.from_rows(["y", "x"], [[1, 2], [3, 4], [5, "bar"]])
        with pytest.raises(NonNumericCellError) as exc_info:
            ds.numeric_column(1)
        err = exc_info.value
        assert (err.row, err.column, err.value) == (2, 1, "bar")
        assert "failed to parse 'bar' as number" in str(err)


# ═══════════════════════════════════════════════════════════════════════
# Ingestion
# ═══════════════════════════════════════════════════════════════════════


class TestFromBuffer:

    def test_csv(self):
        ds = Dataset.from_buffer(io.StringIO("y, x\n1,2\n3,bar\n"))
        assert ds.headers.names == ("y", "x")
        assert ds.rows == ((1.0, 2.0), (3.0, "bar"))

    def test_empty_cells_are_text(self):
        ds = Dataset.from_buffer(io.StringIO("y,x\n1,\n"))
        assert ds.row(0) == (1.0, "")

    def test_na_strings_not_converted(self):
        ds = Dataset.from_buffer(io.StringIO("y,x\n1,NA\n"))
        assert ds.row(0) == (1.0, "NA")

    def test_empty_input(self):
        with pytest.raises(ValidationError, match="input is empty"):
            Dataset.from_buffer(io.StringIO(""))

    def test_headers_only(self):
        ds = Dataset.from_buffer(io.StringIO("y,x\n"))
        assert ds.is_empty()
        assert ds.headers.names == ("y", "x")

    def test_ragged_rows_rejected(self):
        with pytest.raises(ValidationError):
            Dataset.from_buffer(io.StringIO("y,x\n1,2\n3,4,5\n"))

    def test_short_row_rejected(self):
        with pytest.raises(DimensionError) as exc_info:
            Dataset.from_buffer(io.StringIO("y,x\n1,2\n3\n5,6\n"))
        assert exc_info.value.row == 1
        assert str(exc_info.value) == (
            "row index 1 does not have the same length as the headers "
            "(expected 2, got 1)"
        )

    def test_short_row_in_tsv(self):
        with pytest.raises(DimensionError) as exc_info:
            Dataset.from_buffer(io.StringIO("y\tx\tz\n1\t2\t3\n4\t5\n"), sep="\t")
        assert exc_info.value.row == 1

    def test_inner_empty_field_is_not_short(self):
        ds = Dataset.from_buffer(io.StringIO("y,x,z\n1,,3\n"))
        assert ds.row(0) == (1.0, "", 3.0)

    def test_source_path_recorded(self):
        ds = Dataset.from_buffer(io.StringIO("y\n1\n"), source_path="data.csv")
        assert ds.metadata['source_path'] == "data.csv"


class TestFromFile:

    def test_csv_file(self, line_csv):
        ds = Dataset.from_file(line_csv)
        assert ds.n_observations == 10
        assert ds.headers.names == ("y", "x", "a Space Col")
        assert ds.metadata['source_path'] == str(line_csv)

    def test_tsv_file(self, tmp_path):
        path = tmp_path / "data.tsv"
        path.write_text("y\tx\n1\t2\n")
        ds = Dataset.from_file(path)
        assert ds.row(0) == (1.0, 2.0)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Dataset.from_file(tmp_path / "not-here.csv")


class TestFromDataFrame:

    def test_mixed_columns(self):
        df = pd.DataFrame({"y": [1.0, 2.0], "label": ["a", "3"]})
        ds = Dataset.from_dataframe(df)
        assert ds.rows == ((1.0, "a"), (2.0, 3.0))
        assert ds.metadata['source'] == 'dataframe'

    def test_no_columns(self):
        with pytest.raises(ValidationError, match="headers row is empty"):
            Dataset.from_dataframe(pd.DataFrame())
