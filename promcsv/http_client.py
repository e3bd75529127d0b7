"""
HTTP client for the Prometheus query API.

Provides a small interface over /api/v1/query and /api/v1/query_range,
including SSL context handling and decoding of the JSON response envelope.
"""

import json
import logging
import ssl
import urllib.error
import urllib.request
from datetime import timedelta
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from .errors import BackendError, TransportError
from .models import QueryResult, parse_query_data

logger = logging.getLogger("promcsv")

QUERY_ENDPOINT = "/api/v1/query"
QUERY_RANGE_ENDPOINT = "/api/v1/query_range"

# Error statuses for which the API still sends a JSON error envelope
API_ERROR_STATUSES = (400, 422, 503)


def format_time(t: float) -> str:
    """Unix seconds as sent in query parameters (millisecond precision)."""
    return f"{t:.3f}"


def format_step(step: timedelta) -> str:
    return f"{step.total_seconds():.3f}"


class PrometheusHttpClient:
    """HTTP client for a Prometheus-compatible query API."""

    def __init__(self, base_url: str, timeout: Optional[float] = None, verify_tls: bool = True):
        """
        Initialize HTTP client.

        Args:
            base_url: Base URL of the backend (e.g., http://localhost:9090/)
            timeout: Request timeout in seconds, None to wait indefinitely
            verify_tls: Verify server certificates for HTTPS URLs
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._ssl_context = self._create_ssl_context(verify_tls)

    def _create_ssl_context(self, verify_tls: bool) -> ssl.SSLContext:
        """Create SSL context for HTTPS, optionally trusting any certificate."""
        ssl_context = ssl.create_default_context()
        if not verify_tls:
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE
        return ssl_context

    def get_json(self, endpoint: str, params: Optional[Dict[str, str]] = None) -> Any:
        """
        Make a GET request and decode the JSON body.

        Args:
            endpoint: API endpoint path (e.g., /api/v1/query)
            params: Optional query string parameters

        Returns:
            Decoded JSON response

        Raises:
            TransportError: When the backend cannot be reached
            BackendError: On unexpected HTTP statuses or invalid JSON
        """
        url = f"{self.base_url}{endpoint}"
        if params:
            url = f"{url}?{urlencode(params)}"
        req = urllib.request.Request(url, headers={"Accept": "application/json"}, method="GET")

        # Use SSL context for HTTPS URLs
        kwargs: Dict[str, Any] = {"context": self._ssl_context if url.startswith("https://") else None}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        logger.debug("GET %s", url)
        try:
            with urllib.request.urlopen(req, **kwargs) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            if e.code not in API_ERROR_STATUSES:
                raise BackendError(
                    f"server_error: server returned HTTP status {e.code} {e.reason}"
                ) from e
            raw = e.read()
        except urllib.error.URLError as e:
            raise TransportError(f"{url}: {e.reason}") from e
        except OSError as e:
            raise TransportError(f"{url}: {e}") from e

        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise BackendError(f"invalid JSON response: {e}") from e

    def _api_request(self, endpoint: str, params: Dict[str, str]) -> QueryResult:
        body = self.get_json(endpoint, params)
        if not isinstance(body, dict):
            raise BackendError("invalid response: expected a JSON object")

        status = body.get("status")
        if status == "error":
            raise BackendError(f"{body.get('errorType')}: {body.get('error')}")
        if status != "success":
            raise BackendError(f"invalid response status: {status!r}")

        for warning in body.get("warnings") or []:
            logger.warning("backend warning: %s", warning)
        data = body.get("data", {})
        if not isinstance(data, dict):
            raise BackendError("invalid response: expected a data object")
        return parse_query_data(data)

    def query(self, query: str, ts: float) -> QueryResult:
        """Evaluate an instant query at ``ts`` (unix seconds)."""
        return self._api_request(QUERY_ENDPOINT, {"query": query, "time": format_time(ts)})

    def query_range(self, query: str, start: float, end: float, step: timedelta) -> QueryResult:
        """Evaluate a range query between ``start`` and ``end`` (unix seconds)."""
        params = {
            "query": query,
            "start": format_time(start),
            "end": format_time(end),
            "step": format_step(step),
        }
        return self._api_request(QUERY_RANGE_ENDPOINT, params)
