"""Traces pipeline: copies cached metric values onto spans."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from metricsasattrs.cache import MetricCache
from metricsasattrs.config import AttributeType, Config, MetricGroup, selection_id
from metricsasattrs.model import InstrumentationScope, Resource, Traces, ValueType

logger = logging.getLogger(__name__)


class TracesProcessor:
    """Adds the cached metrics of each selected span's match id as attributes."""

    def __init__(self, config: Config, cache: MetricCache) -> None:
        self.config = config
        self.cache = cache

    def process_traces(self, traces: Traces) -> Traces:
        """Add cached metric values to matching spans, in place."""
        for resource_spans in traces.resource_spans:
            for scope_spans in resource_spans.scope_spans:
                for span in scope_spans.spans:
                    for group in self.config.metric_groups:
                        match_id = self.is_selectable_span(
                            group, resource_spans.resource, scope_spans.scope, span.attributes
                        )
                        if match_id is not None:
                            self._add_metrics(group.name, match_id, span.attributes)
        return traces

    def _add_metrics(self, group_name: str, match_id: str, attributes: dict[str, Any]) -> None:
        group_cache = self.cache.metric_groups[group_name]
        with group_cache.lock:
            matched = group_cache.get_matched_metrics_cache(match_id)
            if matched is None:
                logger.debug("Selected span does not have metrics: id=%s", match_id)
                return
            values = {}
            with matched.lock:
                for name, cached in matched.metrics.items():
                    kind = cached.data_point.value_type()
                    if kind is ValueType.DOUBLE:
                        values[name] = float(cached.data_point.value)
                    elif kind is ValueType.INT:
                        values[name] = int(cached.data_point.value)
            attributes.update(values)
            logger.debug("Added metrics to span: id=%s added=%d", match_id, len(values))

    def is_selectable_span(
        self,
        group: MetricGroup,
        resource: Resource,
        scope: InstrumentationScope,
        attributes: Mapping[str, Any],
    ) -> str | None:
        """Return the span's match id for this group, or None."""
        return selection_id(group.target_selectors.spans, {
            AttributeType.RESOURCE: resource.attributes,
            AttributeType.SCOPE: scope.attributes,
            AttributeType.SPAN: attributes,
        })