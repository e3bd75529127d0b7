#!/usr/bin/env python3
"""
promcsv - query Prometheus and print the result as CSV

Flow:
- load configuration (promcsv.yml, PROMETHEUS_URL, command line flags)
- issue one instant query, or one range query when --start is given
- flatten the matrix / vector / scalar result into rows
- print the rows as delimited text on stdout

Errors are printed and the process exits with status 0; only a failure of the
CSV writer aborts with a traceback.
"""

import logging
import sys
from typing import List, Optional

from .config import build_parser, load_config
from .errors import ConfigurationError, QueryError, UnsupportedResultError
from .executor import execute
from .flatten import flatten
from .formatting import make_timestamp_formatter
from .http_client import PrometheusHttpClient
from .render import render_csv

logger = logging.getLogger("promcsv")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # Load config: YAML first, then environment, then CLI overrides
    config = load_config(args)

    # Configure logging (stderr only, stdout carries the table)
    logging.basicConfig(
        level=getattr(logging, str(config.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.debug("promcsv starting with config: url=%s query=%r", config.url, config.query)

    try:
        config.validate()
    except ConfigurationError as e:
        # Configuration errors go to stdout with exit status 0
        print(f"error: {e}")
        return 0

    client = PrometheusHttpClient(config.url, timeout=config.timeout, verify_tls=not config.insecure)
    try:
        result = execute(client, config.query, config.start, config.end, config.step)
    except QueryError as e:
        print(f"error: {e}", file=sys.stderr)
        return 0
    except KeyboardInterrupt:
        print("\nInterrupted. Bye!", file=sys.stderr)
        return 130

    format_timestamp = make_timestamp_formatter(config.date_format)
    try:
        table = flatten(result, format_timestamp)
    except UnsupportedResultError as e:
        print(f"error: {e}", file=sys.stderr)
        print(f"Result:\n{e.result!r}")
        return 0

    print(render_csv(table, config.delimiter))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
