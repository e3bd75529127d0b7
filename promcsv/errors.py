"""
promcsv errors.

Every error is terminal for the run; none are retried.
"""


class PromCsvError(Exception):
    """Base exception for promcsv."""
    pass


class ConfigurationError(PromCsvError):
    """Raised when a required setting is missing or invalid."""
    pass


class QueryError(PromCsvError):
    """Raised when a query could not be answered."""
    pass


class TransportError(QueryError):
    """Raised when the backend could not be reached."""
    pass


class BackendError(QueryError):
    """Raised when the backend reports an error or sends an unusable response."""
    pass


class UnsupportedResultError(PromCsvError):
    """Raised when a result shape has no table representation."""

    def __init__(self, result):
        self.result = result
        super().__init__(f"unknown/unimplemented type: {result.result_type}")


class RenderError(PromCsvError):
    """Raised when the CSV writer fails. Not expected to be handled."""
    pass
