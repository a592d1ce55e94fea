"""In-memory telemetry data: metrics, traces and logs."""

from __future__ import annotations

import base64
import json
import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping


def _float_as_string(value: float) -> str:
    if math.isnan(value):
        return "json: unsupported value: NaN"
    if math.isinf(value):
        return "json: unsupported value: " + ("+Inf" if value > 0 else "-Inf")
    text = repr(value)
    magnitude = abs(value)
    if magnitude != 0 and (magnitude < 1e-6 or magnitude >= 1e21):
        mantissa, _, exponent = text.partition("e")
        digits = exponent[1:].lstrip("0") or "0"
        return f"{mantissa}e{exponent[0]}{digits}"
    text = format(Decimal(text), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"unsupported attribute value {value!r}")


def attribute_as_string(value: Any) -> str:
    """Render an attribute value as text the way it is used in match ids."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _float_as_string(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(
            value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=_json_default
        )
    raise TypeError(f"unsupported attribute value {value!r}")


class ValueType(Enum):
    EMPTY = "empty"
    INT = "int"
    DOUBLE = "double"


class MetricType(Enum):
    EMPTY = "empty"
    GAUGE = "gauge"
    SUM = "sum"
    HISTOGRAM = "histogram"
    EXPONENTIAL_HISTOGRAM = "exponential_histogram"
    SUMMARY = "summary"


@dataclass
class NumberDataPoint:
    """A single gauge or sum sample."""

    attributes: dict[str, Any] = field(default_factory=dict)
    value: int | float | None = None
    timestamp: int = 0

    def __post_init__(self) -> None:
        if self.value is not None and (
            isinstance(self.value, bool) or not isinstance(self.value, (int, float))
        ):
            raise TypeError(f"data point value must be int or float, got {type(self.value).__name__}")

    def value_type(self) -> ValueType:
        if self.value is None:
            return ValueType.EMPTY
        if isinstance(self.value, float):
            return ValueType.DOUBLE
        return ValueType.INT


@dataclass
class Resource:
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass
class InstrumentationScope:
    name: str = ""
    version: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass
class Metric:
    name: str = ""
    type: MetricType = MetricType.GAUGE
    data_points: list[NumberDataPoint] = field(default_factory=list)


@dataclass
class ScopeMetrics:
    scope: InstrumentationScope = field(default_factory=InstrumentationScope)
    metrics: list[Metric] = field(default_factory=list)


@dataclass
class ResourceMetrics:
    resource: Resource = field(default_factory=Resource)
    scope_metrics: list[ScopeMetrics] = field(default_factory=list)


@dataclass
class Metrics:
    resource_metrics: list[ResourceMetrics] = field(default_factory=list)


@dataclass
class Span:
    name: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)
    start_timestamp: int = 0
    end_timestamp: int = 0


@dataclass
class ScopeSpans:
    scope: InstrumentationScope = field(default_factory=InstrumentationScope)
    spans: list[Span] = field(default_factory=list)


@dataclass
class ResourceSpans:
    resource: Resource = field(default_factory=Resource)
    scope_spans: list[ScopeSpans] = field(default_factory=list)


@dataclass
class Traces:
    resource_spans: list[ResourceSpans] = field(default_factory=list)


@dataclass
class LogRecord:
    body: Any = None
    attributes: dict[str, Any] = field(default_factory=dict)
    timestamp: int = 0


@dataclass
class ScopeLogs:
    scope: InstrumentationScope = field(default_factory=InstrumentationScope)
    log_records: list[LogRecord] = field(default_factory=list)


@dataclass
class ResourceLogs:
    resource: Resource = field(default_factory=Resource)
    scope_logs: list[ScopeLogs] = field(default_factory=list)


@dataclass
class Logs:
    resource_logs: list[ResourceLogs] = field(default_factory=list)