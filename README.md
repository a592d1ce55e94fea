# metricsasattrs

A telemetry processor library that remembers recent metric values and copies
them onto spans and log records as attributes.

Metrics pass through a metrics processor, which caches the latest gauge and
sum data points that match the configured *metric groups*. Traces and logs
pass through their own processors; every span or log record whose match id
has cached metrics gets those values added to its attributes (integers as
`int`, doubles as `float`). Cached values expire after a time-to-live: five
minutes by default, never less than one minute. Expired entries are removed
by a background thread that runs every half TTL.

## Installation

```
pip install metricsasattrs
```

The package has no runtime dependencies.

## Configuration

A configuration is a mapping, for example one you have loaded from YAML or
JSON yourself, and is turned into a `Config` with
`metricsasattrs.config.config_from_mapping`:

```python
from metricsasattrs.config import config_from_mapping

config = config_from_mapping({
    "cache_ttl": "5m",
    "metrics_groups": [
        {
            "name": "host",
            "target_selectors": {
                "spans": [{"attribute_type": "resource", "name": "host.name"}],
                "logs": [{"attribute_type": "resource", "name": "host.name"}],
            },
            "metrics_selectors": [
                {"attribute_type": "resource", "name": "host.name"},
            ],
            "metrics_to_add": [
                {
                    "instrumentation_scope": "*hostmetrics*",
                    "metrics": [
                        {
                            "name": "system.cpu.utilization",
                            "new_name": "host.cpu",
                            "include_only_attributes": {"state": "user"},
                        },
                    ],
                },
            ],
        },
    ],
})
```

- `cache_ttl` is a duration string such as `"90s"`, `"5m"` or `"1h30m"`
  (units `ns`, `us`, `ms`, `s`, `m`, `h`), or a `datetime.timedelta`.
- `metrics_selectors` list the attributes, read from the resource, the scope
  or the data point (`resource`, `scope`, `metric`), whose values together
  form the match id under which metrics are cached.
- `target_selectors` list, for spans and for logs, the attributes (`resource`,
  `scope`, `span` or `log`) that build the same match id on the receiving
  side. A span or record missing any selected attribute is left alone.
  Selectors of a type that does not apply to the signal are ignored.
- `metrics_to_add` choose metrics by instrumentation scope name and metric
  name; both accept `*` (any run of characters) and `?` (one character)
  wildcards, see `metricsasattrs.wildcard.wildcard_match`. `new_name` sets
  the attribute name to store under, and `include_only_attributes` restricts
  matching to data points carrying the given attribute values.

Attribute type names are case-insensitive. Unknown keys, wrong value types,
unknown attribute types and malformed durations raise
`metricsasattrs.config.ConfigError` (a `ValueError`).

## Usage

```python
from metricsasattrs.factory import new_factory
from metricsasattrs.model import (
    InstrumentationScope, Metric, MetricType, Metrics, NumberDataPoint,
    Resource, ResourceMetrics, ResourceSpans, ScopeMetrics, ScopeSpans,
    Span, Traces,
)

factory = new_factory()
traces_out = []

metrics_processor = factory.create_metrics_processor("metricsasattributes", config, lambda m: None)
traces_processor = factory.create_traces_processor("metricsasattributes", config, traces_out.append)

metrics_processor.start()
traces_processor.start()

metrics_processor.consume(Metrics([ResourceMetrics(
    resource=Resource({"host.name": "web-1"}),
    scope_metrics=[ScopeMetrics(
        scope=InstrumentationScope(name="hostmetricsreceiver"),
        metrics=[Metric(
            name="system.cpu.utilization",
            type=MetricType.GAUGE,
            data_points=[NumberDataPoint({"state": "user"}, 0.42)],
        )],
    )],
)]))

traces_processor.consume(Traces([ResourceSpans(
    resource=Resource({"host.name": "web-1"}),
    scope_spans=[ScopeSpans(spans=[Span(name="GET /")])],
)]))

print(traces_out[0].resource_spans[0].scope_spans[0].spans[0].attributes)
# {'host.cpu': 0.42}

traces_processor.shutdown()
metrics_processor.shutdown()
```

`Processor.consume` runs the processor on the data and passes the result to
the next consumer, any callable. The metrics processor leaves metrics
unchanged; the traces and logs processors change spans and log records in
place. The factory raises `ValueError` when the next consumer is `None`
and `TypeError` when the configuration is not a `Config`.

Processors created with the same identifier share one cache
(`metricsasattrs.cache.get_cache`), so metrics seen by the metrics processor
are available to the traces and logs processors. A `MetricCache` can be
built directly as well; `MetricCache.cleanup()` drops expired entries on
demand and `MetricCache.close()` (or leaving a `with` block) stops its
background thread.

The data model (`Metrics`, `Traces`, `Logs` and their resource, scope,
metric, span and log record types) lives in `metricsasattrs.model`. Only
gauge and sum metrics are cached.

## What it does not do

This is a library of in-memory processors. It has no command-line program,
does not receive, decode or export telemetry over the network or in any
wire format, and does not read configuration files itself; you supply the
data model objects and the configuration mapping.

## Running the tests

```
pip install -e ".[test]"
pytest
```