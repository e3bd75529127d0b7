"""Unit tests for result shape flattening

Tests the matrix / vector / scalar table layouts in isolation.
"""
import math

import pytest

from promcsv.errors import UnsupportedResultError
from promcsv.flatten import flatten, flatten_matrix, flatten_scalar, flatten_vector
from promcsv.formatting import format_raw_timestamp
from promcsv.models import Matrix, Scalar, StringResult, Vector, parse_query_data


def matrix_of(*series):
    return parse_query_data({"resultType": "matrix", "result": [
        {"metric": labels, "values": values} for labels, values in series
    ]})


class TestFlattenMatrix:
    """Test time-aligned flattening of range query series"""

    def test_header_has_one_column_per_series(self, matrix):
        table = flatten_matrix(matrix, format_raw_timestamp)

        assert table[0] == [
            "timestamp",
            '{__name__="up", job="a"}',
            '{__name__="up", job="b"}',
        ]

    def test_rows_sorted_and_aligned(self, matrix):
        """Out-of-order samples still end up in ascending rows, in their own column"""
        table = flatten_matrix(matrix, format_raw_timestamp)

        assert table[1:] == [
            ["0", "1", "0.5"],
            ["60", "1"],
            ["120", "0", "1"],
        ]

    def test_timestamps_strictly_ascending(self):
        matrix = matrix_of(
            ({"job": "a"}, [[300, "1"], [100, "1"], [200, "1"]]),
            ({"job": "b"}, [[50, "2"], [400, "2"]]),
        )
        table = flatten_matrix(matrix, format_raw_timestamp)

        timestamps = [float(row[0]) for row in table[1:]]
        assert timestamps == sorted(timestamps)
        assert len(set(timestamps)) == len(timestamps)

    def test_missing_earlier_series_leaves_empty_cell(self):
        """A value never shifts left into a series that has no sample"""
        matrix = matrix_of(
            ({"job": "a"}, [[60, "1"]]),
            ({"job": "b"}, [[0, "2"], [60, "3"]]),
            ({"job": "c"}, [[0, "4"]]),
        )
        table = flatten_matrix(matrix, format_raw_timestamp)

        assert table[1] == ["0", "", "2", "4"]
        assert table[2] == ["60", "1", "3"]

    def test_column_belongs_to_same_series_in_every_row(self):
        matrix = matrix_of(
            ({"job": "a"}, [[0, "10"], [120, "11"]]),
            ({"job": "b"}, [[60, "20"], [120, "21"]]),
            ({"job": "c"}, [[0, "30"], [60, "31"], [120, "32"]]),
        )
        table = flatten_matrix(matrix, format_raw_timestamp)

        assert len(table[0]) == 1 + 3
        for row in table[1:]:
            for column, cell in enumerate(row[1:], start=1):
                if cell:
                    assert cell.startswith(str(column))

    def test_duplicate_timestamp_last_write_wins(self):
        matrix = matrix_of(
            ({"job": "a"}, [[0, "1"], [0, "2"]]),
            ({"job": "b"}, [[0, "3"]]),
        )
        table = flatten_matrix(matrix, format_raw_timestamp)

        assert table[1:] == [["0", "2", "3"]]

    def test_special_values(self):
        matrix = matrix_of(({"job": "a"}, [[0, "NaN"], [1, "+Inf"], [2, "-Inf"]]))
        table = flatten_matrix(matrix, format_raw_timestamp)

        assert [row[1] for row in table[1:]] == ["NaN", "+Inf", "-Inf"]

    def test_empty_matrix_is_header_only(self):
        assert flatten_matrix(Matrix(), format_raw_timestamp) == [["timestamp"]]

    def test_series_without_samples_keeps_header_column(self):
        matrix = matrix_of(({"job": "a"}, []), ({"job": "b"}, [[0, "1"]]))
        table = flatten_matrix(matrix, format_raw_timestamp)

        assert table == [["timestamp", '{job="a"}', '{job="b"}'], ["0", "", "1"]]

    def test_uses_timestamp_formatter(self, matrix):
        table = flatten_matrix(matrix, lambda ms: f"t{ms}")
        assert [row[0] for row in table[1:]] == ["t0", "t60000", "t120000"]


class TestFlattenVector:
    """Test instant vector layout"""

    def test_one_row_per_sample_in_input_order(self, vector):
        table = flatten_vector(vector, format_raw_timestamp)

        assert table == [
            ["timestamp", "metric", "value"],
            ["1000", '{__name__="up", job="a"}', "1"],
            ["1000", '{__name__="up", job="b"}', "0"],
        ]

    def test_no_resorting(self):
        vector = parse_query_data({"resultType": "vector", "result": [
            {"metric": {"job": "z"}, "value": [5, "1"]},
            {"metric": {"job": "a"}, "value": [5, "2"]},
        ]})
        table = flatten_vector(vector, format_raw_timestamp)

        assert [row[1] for row in table[1:]] == ['{job="z"}', '{job="a"}']

    def test_empty_vector_is_header_only(self):
        assert flatten_vector(Vector(), format_raw_timestamp) == [["timestamp", "metric", "value"]]


class TestFlattenScalar:

    def test_single_row(self):
        table = flatten_scalar(Scalar(timestamp=1435781451781, value=42.0), format_raw_timestamp)
        assert table == [["timestamp", "value"], ["1435781451.781", "42"]]

    def test_nan_scalar(self):
        table = flatten_scalar(Scalar(timestamp=0, value=math.nan), format_raw_timestamp)
        assert table[1] == ["0", "NaN"]


class TestFlattenDispatch:

    def test_dispatches_on_shape(self, matrix, vector):
        assert flatten(matrix, format_raw_timestamp)[0][0] == "timestamp"
        assert flatten(vector, format_raw_timestamp)[0] == ["timestamp", "metric", "value"]
        assert flatten(Scalar(timestamp=0, value=1.0), format_raw_timestamp)[0] == ["timestamp", "value"]

    def test_string_result_is_unsupported(self):
        result = StringResult(timestamp=1000, value="hello")

        with pytest.raises(UnsupportedResultError, match="unknown/unimplemented type: string") as exc:
            flatten(result, format_raw_timestamp)
        assert exc.value.result is result
