"""
Result shape flattening.

Turns a typed query result into a table (header row + data rows of string
cells) ready for CSV rendering.
"""

import logging
from typing import Dict, List

from .errors import UnsupportedResultError
from .formatting import TimestampFormatter, format_label_set, format_sample_value
from .models import Matrix, QueryResult, Scalar, Vector

logger = logging.getLogger("promcsv")

Table = List[List[str]]


def flatten_matrix(matrix: Matrix, format_timestamp: TimestampFormatter) -> Table:
    """
    Flatten range query series into one row per timestamp.

    Each series gets a fixed column in input order. Rows are sorted by
    timestamp; a series without a sample at a timestamp leaves an empty cell.
    Rows are not padded after the last series that has a value.

    Args:
        matrix: Range query result
        format_timestamp: Formatter for the first column

    Returns:
        Table with header ["timestamp", <series labels>...]
    """
    header = ["timestamp"]
    rows: Dict[int, List[str]] = {}

    for i, stream in enumerate(matrix.series):
        header.append(format_label_set(stream.metric))
        for sample in stream.values:
            row = rows.setdefault(sample.timestamp, [])
            cell = format_sample_value(sample.value)
            if len(row) > i:
                # Repeated timestamp within this series: last write wins
                row[i] = cell
                continue
            while len(row) < i:
                row.append("")
            row.append(cell)

    table = [header]
    for ts in sorted(rows):
        table.append([format_timestamp(ts)] + rows[ts])

    logger.debug("flattened %d series into %d rows", len(matrix.series), len(rows))
    return table


def flatten_vector(vector: Vector, format_timestamp: TimestampFormatter) -> Table:
    """One row per sample, input order preserved."""
    table = [["timestamp", "metric", "value"]]
    for sample in vector.samples:
        table.append([
            format_timestamp(sample.timestamp),
            format_label_set(sample.metric),
            format_sample_value(sample.value),
        ])
    return table


def flatten_scalar(scalar: Scalar, format_timestamp: TimestampFormatter) -> Table:
    return [
        ["timestamp", "value"],
        [format_timestamp(scalar.timestamp), format_sample_value(scalar.value)],
    ]


def flatten(result: QueryResult, format_timestamp: TimestampFormatter) -> Table:
    """
    Flatten any supported result shape.

    Raises:
        UnsupportedResultError: For shapes without a table form (string results)
    """
    if isinstance(result, Matrix):
        return flatten_matrix(result, format_timestamp)
    if isinstance(result, Vector):
        return flatten_vector(result, format_timestamp)
    if isinstance(result, Scalar):
        return flatten_scalar(result, format_timestamp)
    raise UnsupportedResultError(result)
