from datetime import timedelta

import pytest

from metricsasattrs.config import (
    DEFAULT_CACHE_TTL,
    MATCHER_DELIM,
    AttributeType,
    Config,
    ConfigError,
    MetricGroup,
    MetricsMatcher,
    MetricsToAdd,
    Selector,
    TargetSelectors,
    config_from_mapping,
    parse_attribute_type,
    selection_id,
)


@pytest.mark.parametrize("member", list(AttributeType))
def test_parse_attribute_type_ignores_case(member):
    assert parse_attribute_type(member.value.upper()) is member
    assert parse_attribute_type(member.value) is member
    assert parse_attribute_type(member.value.encode()) is member


@pytest.mark.parametrize("text", ["", "attribute", "spans"])
def test_parse_attribute_type_rejects_unknown(text):
    with pytest.raises(ConfigError, match="unknown attribute type"):
        parse_attribute_type(text)


def test_empty_mapping_gives_defaults():
    config = config_from_mapping({})
    assert config == Config()
    assert config.cache_ttl == DEFAULT_CACHE_TTL == timedelta(minutes=5)
    assert config.metric_groups == []
    assert config_from_mapping(None) == Config()


def test_full_mapping():
    data = {
        "cache_ttl": "10m",
        "metrics_groups": [
            {
                "name": "hosts",
                "target_selectors": {
                    "spans": [{"attribute_type": "Resource", "name": "host.name"}],
                    "logs": [{"attribute_type": "log", "name": "host"}],
                },
                "metrics_selectors": [{"attribute_type": "metric", "name": "host"}],
                "metrics_to_add": [
                    {
                        "instrumentation_scope": "hostmetrics*",
                        "metrics": [
                            {"name": "system.cpu.*"},
                            {
                                "name": "system.memory.usage",
                                "include_only_attributes": {"state": "used"},
                                "new_name": "memory_used",
                            },
                        ],
                    }
                ],
            }
        ],
    }
    expected = Config(
        cache_ttl=timedelta(minutes=10),
        metric_groups=[
            MetricGroup(
                name="hosts",
                target_selectors=TargetSelectors(
                    spans=[Selector(AttributeType.RESOURCE, "host.name")],
                    logs=[Selector(AttributeType.LOG, "host")],
                ),
                metrics_selectors=[Selector(AttributeType.METRIC, "host")],
                metrics_to_add=[
                    MetricsToAdd(
                        instrumentation_scope="hostmetrics*",
                        metrics=[
                            MetricsMatcher(name="system.cpu.*"),
                            MetricsMatcher(
                                name="system.memory.usage",
                                attributes={"state": "used"},
                                new_name="memory_used",
                            ),
                        ],
                    )
                ],
            )
        ],
    )
    assert config_from_mapping(data) == expected


def test_matcher_without_attributes_has_none():
    config = config_from_mapping(
        {"metrics_groups": [{"name": "g", "metrics_to_add": [{"metrics": [{"name": "m"}]}]}]}
    )
    matcher = config.metric_groups[0].metrics_to_add[0].metrics[0]
    assert matcher.attributes is None
    assert matcher.new_name == ""


@pytest.mark.parametrize(
    "text, expected",
    [
        ("90s", timedelta(seconds=90)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("250ms", timedelta(milliseconds=250)),
        ("1.5h", timedelta(hours=1.5)),
        ("0", timedelta(0)),
        ("-2m", timedelta(minutes=-2)),
    ],
)
def test_cache_ttl_durations(text, expected):
    assert config_from_mapping({"cache_ttl": text}).cache_ttl == expected


def test_cache_ttl_accepts_timedelta():
    ttl = timedelta(seconds=42)
    assert config_from_mapping({"cache_ttl": ttl}).cache_ttl == ttl


@pytest.mark.parametrize("bad", ["", "-", "5", "5x", "m5", 5])
def test_invalid_durations_raise(bad):
    with pytest.raises(ConfigError):
        config_from_mapping({"cache_ttl": bad})


def test_unknown_keys_raise():
    with pytest.raises(ConfigError, match="unknown keys"):
        config_from_mapping({"cache": "5m"})
    with pytest.raises(ConfigError, match="unknown keys"):
        config_from_mapping({"metrics_groups": [{"name": "g", "extra": 1}]})


def test_wrong_shapes_raise():
    with pytest.raises(ConfigError):
        config_from_mapping({"metrics_groups": {"name": "g"}})
    with pytest.raises(ConfigError):
        config_from_mapping({"metrics_groups": [{"name": 3}]})
    with pytest.raises(ConfigError, match="unknown attribute type"):
        config_from_mapping({"metrics_groups": [{"metrics_selectors": [{"attribute_type": "x", "name": "n"}]}]})


def test_selection_id_joins_values():
    selectors = [Selector(AttributeType.RESOURCE, "service"), Selector(AttributeType.METRIC, "host")]
    maps = {AttributeType.RESOURCE: {"service": "svc"}, AttributeType.METRIC: {"host": "h1"}}
    assert selection_id(selectors, maps) == "svc" + MATCHER_DELIM + "h1" + MATCHER_DELIM


def test_selection_id_missing_attribute_is_none():
    selectors = [Selector(AttributeType.RESOURCE, "service"), Selector(AttributeType.METRIC, "host")]
    maps = {AttributeType.RESOURCE: {"service": "svc"}, AttributeType.METRIC: {}}
    assert selection_id(selectors, maps) is None


def test_selection_id_ignores_unrelated_types():
    selectors = [Selector(AttributeType.SPAN, "x"), Selector(None, "y")]
    assert selection_id(selectors, {AttributeType.RESOURCE: {}}) == ""
    assert selection_id([], {}) == ""


def test_selection_id_uses_string_form_of_values():
    selectors = [Selector(AttributeType.LOG, "count")]
    assert selection_id(selectors, {AttributeType.LOG: {"count": 7}}) == "7" + MATCHER_DELIM