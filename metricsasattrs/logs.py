"""Logs pipeline: copies cached metric values onto log records."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from metricsasattrs.cache import MetricCache
from metricsasattrs.config import AttributeType, Config, MetricGroup, selection_id
from metricsasattrs.model import InstrumentationScope, Logs, Resource, ValueType

logger = logging.getLogger(__name__)


class LogsProcessor:
    """Adds the cached metrics of each selected log record's match id as attributes."""

    def __init__(self, config: Config, cache: MetricCache) -> None:
        self.config = config
        self.cache = cache

    def process_logs(self, logs: Logs) -> Logs:
        """Add cached metric values to matching log records, in place."""
        for resource_logs in logs.resource_logs:
            for scope_logs in resource_logs.scope_logs:
                for record in scope_logs.log_records:
                    for group in self.config.metric_groups:
                        match_id = self.is_selectable_log(
                            group, resource_logs.resource, scope_logs.scope, record.attributes
                        )
                        if match_id is not None:
                            self._add_metrics(group.name, match_id, record.attributes)
        return logs

    def _add_metrics(self, group_name: str, match_id: str, attributes: dict[str, Any]) -> None:
        group_cache = self.cache.metric_groups[group_name]
        with group_cache.lock:
            matched = group_cache.get_matched_metrics_cache(match_id)
            if matched is None:
                logger.debug("Selected log does not have metrics: id=%s", match_id)
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
            logger.debug("Added metrics to log: id=%s added=%d", match_id, len(values))

    def is_selectable_log(
        self,
        group: MetricGroup,
        resource: Resource,
        scope: InstrumentationScope,
        attributes: Mapping[str, Any],
    ) -> str | None:
        """Return the log record's match id for this group, or None."""
        return selection_id(group.target_selectors.logs, {
            AttributeType.RESOURCE: resource.attributes,
            AttributeType.SCOPE: scope.attributes,
            AttributeType.LOG: attributes,
        })