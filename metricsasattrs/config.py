"""Processor configuration: metric groups, selectors and metric matchers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Iterable, Mapping

from metricsasattrs.model import attribute_as_string

MATCHER_DELIM = "_!@#_"
DEFAULT_CACHE_TTL = timedelta(minutes=5)


class ConfigError(ValueError):
    """Raised when a configuration cannot be understood."""


class AttributeType(str, Enum):
    """Where a selector looks up its attribute."""

    RESOURCE = "resource"
    SCOPE = "scope"
    METRIC = "metric"
    SPAN = "span"
    LOG = "log"


def parse_attribute_type(text: str | bytes | AttributeType) -> AttributeType:
    """Parse an attribute type name, ignoring case."""
    if isinstance(text, AttributeType):
        return text
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("utf-8")
    lowered = str(text).lower()
    try:
        return AttributeType(lowered)
    except ValueError:
        raise ConfigError(f"unknown attribute type {lowered}") from None


@dataclass
class Selector:
    """Picks one attribute whose value becomes part of a match id."""

    attribute_type: AttributeType | None
    name: str


@dataclass
class TargetSelectors:
    """Selectors used to build match ids for spans and for logs."""

    spans: list[Selector] = field(default_factory=list)
    logs: list[Selector] = field(default_factory=list)


@dataclass
class MetricsMatcher:
    """A metric (by wildcard name) to copy onto target signals."""

    name: str
    attributes: dict[str, str] | None = None
    new_name: str = ""


@dataclass
class MetricsToAdd:
    """Metric matchers that apply within matching instrumentation scopes."""

    instrumentation_scope: str
    metrics: list[MetricsMatcher] = field(default_factory=list)


@dataclass
class MetricGroup:
    """A named set of selectors and matchers."""

    name: str
    target_selectors: TargetSelectors = field(default_factory=TargetSelectors)
    metrics_selectors: list[Selector] = field(default_factory=list)
    metrics_to_add: list[MetricsToAdd] = field(default_factory=list)


@dataclass
class Config:
    """Top-level processor configuration."""

    cache_ttl: timedelta = DEFAULT_CACHE_TTL
    metric_groups: list[MetricGroup] = field(default_factory=list)


_UNIT_MICROSECONDS = {
    "ns": 0.001, "us": 1, "µs": 1, "μs": 1, "ms": 1000,
    "s": 1_000_000, "m": 60_000_000, "h": 3_600_000_000,
}
_PART = r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)"
_DURATION = re.compile(rf"([+-]?)((?:{_PART})+|0)")


def _parse_duration(value: Any) -> timedelta:
    if isinstance(value, timedelta):
        return value
    if not isinstance(value, str):
        raise ConfigError(f"cache_ttl: expected a duration string, got {type(value).__name__}")
    whole = _DURATION.fullmatch(value)
    if whole is None:
        raise ConfigError(f"cache_ttl: invalid duration {value!r}")
    micros = sum(float(n) * _UNIT_MICROSECONDS[u] for n, u in re.findall(_PART, whole.group(2)))
    return timedelta(microseconds=-micros if whole.group(1) == "-" else micros)


def _typed(value: Any, kind: type | tuple[type, ...], where: str, default: Any) -> Any:
    if value is None:
        return default
    if not isinstance(value, kind):
        raise ConfigError(f"{where}: expected {kind}, got {type(value).__name__}")
    return value


def _fields(value: Any, where: str, *allowed: str) -> Mapping[str, Any]:
    value = _typed(value, Mapping, where, {})
    unknown = sorted(str(key) for key in value if key not in allowed)
    if unknown:
        raise ConfigError(f"{where}: unknown keys {', '.join(unknown)}")
    return value


def _items(value: Any, where: str, build) -> list[Any]:
    return [build(item, f"{where}[{n}]") for n, item in enumerate(_typed(value, (list, tuple), where, []))]


def _selector(data: Any, where: str) -> Selector:
    f = _fields(data, where, "attribute_type", "name")
    raw = f.get("attribute_type")
    return Selector(
        attribute_type=None if raw is None else parse_attribute_type(raw),
        name=_typed(f.get("name"), str, f"{where}.name", ""),
    )


def _matcher(data: Any, where: str) -> MetricsMatcher:
    f = _fields(data, where, "name", "include_only_attributes", "new_name")
    attrs_where = f"{where}.include_only_attributes"
    raw = _typed(f.get("include_only_attributes"), Mapping, attrs_where, None)
    return MetricsMatcher(
        name=_typed(f.get("name"), str, f"{where}.name", ""),
        attributes=None if raw is None else {
            str(k): _typed(v, str, f"{attrs_where}.{k}", "") for k, v in raw.items()
        },
        new_name=_typed(f.get("new_name"), str, f"{where}.new_name", ""),
    )


def _metrics_to_add(data: Any, where: str) -> MetricsToAdd:
    f = _fields(data, where, "instrumentation_scope", "metrics")
    return MetricsToAdd(
        instrumentation_scope=_typed(f.get("instrumentation_scope"), str, f"{where}.instrumentation_scope", ""),
        metrics=_items(f.get("metrics"), f"{where}.metrics", _matcher),
    )


def _metric_group(data: Any, where: str) -> MetricGroup:
    f = _fields(data, where, "name", "target_selectors", "metrics_selectors", "metrics_to_add")
    targets_where = f"{where}.target_selectors"
    targets = _fields(f.get("target_selectors"), targets_where, "spans", "logs")
    return MetricGroup(
        name=_typed(f.get("name"), str, f"{where}.name", ""),
        target_selectors=TargetSelectors(
            spans=_items(targets.get("spans"), f"{targets_where}.spans", _selector),
            logs=_items(targets.get("logs"), f"{targets_where}.logs", _selector),
        ),
        metrics_selectors=_items(f.get("metrics_selectors"), f"{where}.metrics_selectors", _selector),
        metrics_to_add=_items(f.get("metrics_to_add"), f"{where}.metrics_to_add", _metrics_to_add),
    )


def config_from_mapping(data: Mapping[str, Any] | None) -> Config:
    """Build a Config from a decoded mapping such as parsed YAML."""
    f = _fields(data, "config", "cache_ttl", "metrics_groups")
    ttl = f.get("cache_ttl")
    return Config(
        cache_ttl=DEFAULT_CACHE_TTL if ttl is None else _parse_duration(ttl),
        metric_groups=_items(f.get("metrics_groups"), "metrics_groups", _metric_group),
    )


def selection_id(
    selectors: Iterable[Selector],
    attribute_maps: Mapping[AttributeType, Mapping[str, Any]],
) -> str | None:
    """Join the selected attribute values into a match id.

    Selectors whose attribute type has no map are ignored; returns None
    when a selected attribute is missing.
    """
    parts = []
    for selector in selectors:
        attributes = attribute_maps.get(selector.attribute_type) if selector.attribute_type else None
        if attributes is None:
            continue
        if selector.name not in attributes:
            return None
        parts.append(attribute_as_string(attributes[selector.name]) + MATCHER_DELIM)
    return "".join(parts)