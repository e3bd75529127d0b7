"""
Query execution.

Issues exactly one instant or range query, chosen by whether a range start
is set.
"""

import logging
import time
from datetime import timedelta
from typing import Optional, Union

from .http_client import PrometheusHttpClient
from .models import QueryResult

logger = logging.getLogger("promcsv")

DEFAULT_STEP = timedelta(minutes=5)


def execute(
    backend: Union[str, PrometheusHttpClient],
    query: str,
    range_start: int = 0,
    range_end: int = 0,
    step: Optional[timedelta] = None,
    now: Optional[float] = None,
) -> QueryResult:
    """
    Run one query against the backend.

    Args:
        backend: Backend base URL or a configured client
        query: Query expression
        range_start: Range start in unix seconds; <= 0 selects an instant query
        range_end: Range end in unix seconds; <= 0 means now
        step: Range step; None or <= 0 means 5 minutes
        now: Current time in unix seconds (defaults to the wall clock)

    Returns:
        Typed query result

    Raises:
        QueryError: On transport or backend failures
    """
    client = PrometheusHttpClient(backend) if isinstance(backend, str) else backend
    if now is None:
        now = time.time()

    if range_start <= 0:
        logger.info("instant query %r at %s", query, now)
        return client.query(query, now)

    end = range_end if range_end > 0 else now
    if step is None or step <= timedelta(0):
        step = DEFAULT_STEP

    logger.info("range query %r from %s to %s step %s", query, range_start, end, step)
    return client.query_range(query, range_start, end, step)
