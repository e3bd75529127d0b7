"""Pytest configuration and shared fixtures"""
import json
from unittest.mock import MagicMock, patch

import pytest

from promcsv.models import parse_query_data


def _success(result_type, result):
    return {"status": "success", "data": {"resultType": result_type, "result": result}}


@pytest.fixture
def mock_urlopen():
    """Patch urllib.request.urlopen; tests set return_value / side_effect"""
    with patch("urllib.request.urlopen") as mocked:
        yield mocked


@pytest.fixture
def respond(mock_urlopen):
    """Make the patched urlopen answer with the given JSON body (or raw bytes)"""
    def _respond(body):
        mock_response = MagicMock()
        raw = body if isinstance(body, bytes) else json.dumps(body).encode()
        mock_response.read.return_value = raw
        mock_response.__enter__.return_value = mock_response
        mock_urlopen.return_value = mock_response
        return mock_urlopen
    return _respond


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run in an empty directory without PROMETHEUS_URL set"""
    monkeypatch.delenv("PROMETHEUS_URL", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def vector_response():
    """Two 'up' samples evaluated at t=1000s"""
    return _success("vector", [
        {"metric": {"__name__": "up", "job": "a"}, "value": [1000, "1"]},
        {"metric": {"__name__": "up", "job": "b"}, "value": [1000, "0"]},
    ])


@pytest.fixture
def matrix_response():
    """Two series; job b has no sample at t=60 and reports out of order"""
    return _success("matrix", [
        {
            "metric": {"__name__": "up", "job": "a"},
            "values": [[0, "1"], [60, "1"], [120, "0"]],
        },
        {
            "metric": {"__name__": "up", "job": "b"},
            "values": [[120, "1"], [0, "0.5"]],
        },
    ])


@pytest.fixture
def scalar_response():
    return _success("scalar", [1435781451.781, "42"])


@pytest.fixture
def string_response():
    return _success("string", [1000, "hello"])


@pytest.fixture
def matrix(matrix_response):
    return parse_query_data(matrix_response["data"])


@pytest.fixture
def vector(vector_response):
    return parse_query_data(vector_response["data"])
