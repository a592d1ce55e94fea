from datetime import timedelta

from metricsasattrs.cache import MetricCache
from metricsasattrs.config import (
    MATCHER_DELIM,
    AttributeType,
    Config,
    MetricGroup,
    Selector,
    TargetSelectors,
)
from metricsasattrs.model import (
    InstrumentationScope,
    NumberDataPoint,
    Resource,
    ResourceSpans,
    ScopeSpans,
    Span,
    Traces,
)
from metricsasattrs.traces import TracesProcessor

SVC_ID = "svc" + MATCHER_DELIM


def make_group(name="g", selectors=None):
    if selectors is None:
        selectors = [Selector(AttributeType.RESOURCE, "service.name")]
    return MetricGroup(name=name, target_selectors=TargetSelectors(spans=selectors))


def make_processor(*groups):
    cache = MetricCache(timedelta(minutes=5), [g.name for g in groups], start_timer=False)
    return TracesProcessor(Config(metric_groups=list(groups)), cache), cache


def make_traces(span, service="svc"):
    return Traces(
        resource_spans=[
            ResourceSpans(
                resource=Resource({"service.name": service}),
                scope_spans=[ScopeSpans(scope=InstrumentationScope(name="lib"), spans=[span])],
            )
        ]
    )


def test_adds_cached_metrics_to_span():
    processor, cache = make_processor(make_group())
    cache.metric_groups["g"].set_metric(SVC_ID, "cpu", NumberDataPoint(value=0.5))
    cache.metric_groups["g"].set_metric(SVC_ID, "requests", NumberDataPoint(value=123))
    span = Span(name="test_span", attributes={"test_attr": "value_1"})
    traces = make_traces(span)
    assert processor.process_traces(traces) is traces
    assert span.attributes == {"test_attr": "value_1", "cpu": 0.5, "requests": 123}
    assert isinstance(span.attributes["requests"], int)


def test_empty_data_points_are_skipped():
    processor, cache = make_processor(make_group())
    cache.metric_groups["g"].set_metric(SVC_ID, "empty", NumberDataPoint())
    span = Span(attributes={"k": "v"})
    processor.process_traces(make_traces(span))
    assert span.attributes == {"k": "v"}


def test_span_without_selected_attribute_is_untouched():
    processor, cache = make_processor(make_group(selectors=[Selector(AttributeType.SPAN, "user")]))
    cache.metric_groups["g"].set_metric("alice" + MATCHER_DELIM, "cpu", NumberDataPoint(value=1.0))
    span = Span(attributes={"other": "x"})
    processor.process_traces(make_traces(span))
    assert span.attributes == {"other": "x"}


def test_span_with_unknown_id_is_untouched():
    processor, cache = make_processor(make_group())
    cache.metric_groups["g"].set_metric(SVC_ID, "cpu", NumberDataPoint(value=1.0))
    span = Span()
    processor.process_traces(make_traces(span, service="elsewhere"))
    assert span.attributes == {}


def test_is_selectable_span_combines_selectors():
    group = make_group(
        selectors=[
            Selector(AttributeType.RESOURCE, "service.name"),
            Selector(AttributeType.SPAN, "user"),
            Selector(AttributeType.LOG, "ignored"),
        ]
    )
    processor, _ = make_processor(group)
    match_id = processor.is_selectable_span(
        group, Resource({"service.name": "svc"}), InstrumentationScope(), {"user": "alice"}
    )
    assert match_id == SVC_ID + "alice" + MATCHER_DELIM


def test_is_selectable_span_missing_scope_attribute():
    group = make_group(selectors=[Selector(AttributeType.SCOPE, "lib.kind")])
    processor, _ = make_processor(group)
    assert processor.is_selectable_span(group, Resource(), InstrumentationScope(), {}) is None


def test_multiple_groups_each_contribute():
    processor, cache = make_processor(
        make_group("a"), make_group("b", selectors=[Selector(AttributeType.SPAN, "user")])
    )
    cache.metric_groups["a"].set_metric(SVC_ID, "cpu", NumberDataPoint(value=0.5))
    cache.metric_groups["b"].set_metric("alice" + MATCHER_DELIM, "logins", NumberDataPoint(value=7))
    span = Span(attributes={"user": "alice"})
    processor.process_traces(make_traces(span))
    assert span.attributes == {"user": "alice", "cpu": 0.5, "logins": 7}