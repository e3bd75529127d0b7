"""
promcsv - Prometheus query results as CSV.

Modules, leaves first:
- render.py: CSV rendering of tables
- formatting.py: timestamp, value and label-set display strings
- models.py: typed query results (matrix, vector, scalar)
- flatten.py: result shape flattening into tables
- http_client.py: Prometheus HTTP API client
- executor.py: instant / range query selection
- config.py: configuration layering and flag parsing
- cli.py: entry point
"""

from .errors import (
    BackendError,
    ConfigurationError,
    PromCsvError,
    QueryError,
    RenderError,
    TransportError,
    UnsupportedResultError,
)
from .executor import execute
from .flatten import flatten, flatten_matrix, flatten_scalar, flatten_vector
from .formatting import format_label_set, format_sample_value, make_timestamp_formatter
from .http_client import PrometheusHttpClient
from .models import Matrix, QueryResult, Scalar, StringResult, Vector, parse_query_data
from .render import render_csv

__version__ = "0.1.0"

__all__ = [
    # Errors
    'PromCsvError',
    'ConfigurationError',
    'QueryError',
    'TransportError',
    'BackendError',
    'UnsupportedResultError',
    'RenderError',

    # Results
    'Matrix',
    'Vector',
    'Scalar',
    'StringResult',
    'QueryResult',
    'parse_query_data',

    # Pipeline
    'PrometheusHttpClient',
    'execute',
    'flatten',
    'flatten_matrix',
    'flatten_vector',
    'flatten_scalar',
    'format_label_set',
    'format_sample_value',
    'make_timestamp_formatter',
    'render_csv',
]
