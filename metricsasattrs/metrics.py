"""Metrics pipeline: caches matching gauge and sum data points."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from metricsasattrs.cache import MetricCache
from metricsasattrs.config import AttributeType, Config, MetricGroup, selection_id
from metricsasattrs.model import InstrumentationScope, Metrics, MetricType, Resource, attribute_as_string
from metricsasattrs.wildcard import wildcard_match

logger = logging.getLogger(__name__)


class MetricsProcessor:
    """Stores the latest value of each configured metric in the shared cache."""

    def __init__(self, config: Config, cache: MetricCache) -> None:
        self.config = config
        self.cache = cache

    def process_metrics(self, metrics: Metrics) -> Metrics:
        """Cache matching data points; the metrics pass through unchanged."""
        for resource_metrics in metrics.resource_metrics:
            resource = resource_metrics.resource
            for scope_metrics in resource_metrics.scope_metrics:
                scope = scope_metrics.scope
                if not self.is_checked_scope(scope):
                    logger.debug("Skipping scope: scope=%s", scope.name)
                    continue
                logger.debug("Processing scope: scope=%s", scope.name)
                for metric in scope_metrics.metrics:
                    if metric.type not in (MetricType.GAUGE, MetricType.SUM):
                        continue
                    for data_point in metric.data_points:
                        for group in self.config.metric_groups:
                            matched = self.is_matched_metric(
                                group, metric.name, resource, scope, data_point.attributes
                            )
                            if matched is None:
                                logger.debug("Did not match metric: name=%s group=%s", metric.name, group.name)
                                continue
                            match_id, stored_name = matched
                            logger.debug("Matched metric: name=%s as=%s group=%s id=%s",
                                         metric.name, stored_name, group.name, match_id)
                            self.cache.metric_groups[group.name].set_metric(match_id, stored_name, data_point)
        return metrics

    def is_checked_scope(self, scope: InstrumentationScope) -> bool:
        """Whether any metric group wants metrics from this scope."""
        return any(
            wildcard_match(to_add.instrumentation_scope, scope.name)
            for group in self.config.metric_groups
            for to_add in group.metrics_to_add
        )

    def is_matched_metric(
        self,
        group: MetricGroup,
        name: str,
        resource: Resource,
        scope: InstrumentationScope,
        attributes: Mapping[str, Any],
    ) -> tuple[str, str] | None:
        """Return (match id, name to store under) or None when not matched."""
        match_id = selection_id(group.metrics_selectors, {
            AttributeType.RESOURCE: resource.attributes,
            AttributeType.SCOPE: scope.attributes,
            AttributeType.METRIC: attributes,
        })
        if match_id is None:
            return None
        for to_add in group.metrics_to_add:
            if not wildcard_match(to_add.instrumentation_scope, scope.name):
                continue
            for matcher in to_add.metrics:
                if wildcard_match(matcher.name, name) and all(
                    key in attributes and attribute_as_string(attributes[key]) == value
                    for key, value in (matcher.attributes or {}).items()
                ):
                    return match_id, matcher.new_name or name
        return None