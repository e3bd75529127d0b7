"""
Query result models - Pydantic models for Prometheus API result data.

Decodes the ``data`` object of /api/v1/query and /api/v1/query_range
responses into one of the typed result shapes. Timestamps are kept as integer
milliseconds since the epoch, values as floats (NaN and infinities included).
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Any, ClassVar, Dict, List, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from .errors import BackendError


def to_millis(ts: Any) -> int:
    """Convert a wire timestamp (float seconds) to integer milliseconds."""
    try:
        millis = Decimal(str(ts)) * 1000
        return int(millis.to_integral_value(rounding=ROUND_HALF_EVEN))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"invalid timestamp: {ts!r}") from e


def parse_sample_value(value: Any) -> float:
    """Parse a wire sample value ("1", "0.5", "NaN", "+Inf", "-Inf")."""
    return float(value)


def _split_pair(data: Any) -> Dict[str, Any]:
    if len(data) != 2:
        raise ValueError(f"expected [timestamp, value], got {data!r}")
    ts, value = data
    return {"timestamp": to_millis(ts), "value": parse_sample_value(value)}


class SamplePair(BaseModel):
    """Single (timestamp, value) point, decoded from ``[ts, "value"]``"""
    timestamp: int
    value: float

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            return _split_pair(data)
        return data


class SampleStream(BaseModel):
    """One series of a range query: its labels and ordered samples"""
    metric: Dict[str, str] = Field(default_factory=dict)
    values: List[SamplePair] = Field(default_factory=list)


class Sample(BaseModel):
    """One series of an instant query, sampled at the evaluation time"""
    metric: Dict[str, str] = Field(default_factory=dict)
    timestamp: int
    value: float

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("value"), (list, tuple)):
            return {"metric": data.get("metric") or {}, **_split_pair(data["value"])}
        return data


class Matrix(BaseModel):
    result_type: ClassVar[str] = "matrix"
    series: List[SampleStream] = Field(default_factory=list)


class Vector(BaseModel):
    result_type: ClassVar[str] = "vector"
    samples: List[Sample] = Field(default_factory=list)


class Scalar(BaseModel):
    result_type: ClassVar[str] = "scalar"
    timestamp: int
    value: float


class StringResult(BaseModel):
    """String result; decoded so it can be reported, never tabulated."""
    result_type: ClassVar[str] = "string"
    timestamp: int
    value: str


QueryResult = Union[Matrix, Vector, Scalar, StringResult]


def parse_query_data(data: Dict[str, Any]) -> QueryResult:
    """
    Decode the ``data`` object of a successful query response.

    Args:
        data: Dictionary with ``resultType`` and ``result`` keys

    Returns:
        Typed query result

    Raises:
        BackendError: On unknown result types or malformed results
    """
    result_type = data.get("resultType")
    result = data.get("result")

    try:
        if result_type == "matrix":
            return Matrix(series=result or [])
        if result_type == "vector":
            return Vector(samples=result or [])
        if result_type == "scalar":
            pair = SamplePair.model_validate(result)
            return Scalar(timestamp=pair.timestamp, value=pair.value)
        if result_type == "string":
            ts, value = result
            return StringResult(timestamp=to_millis(ts), value=value)
    except (ValidationError, TypeError, ValueError) as e:
        raise BackendError(f"malformed {result_type} result: {e}") from e

    raise BackendError(f'unexpected value type "{result_type}"')
