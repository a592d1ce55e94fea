"""Factory that builds the metrics, traces and logs processors."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from metricsasattrs.cache import get_cache
from metricsasattrs.config import DEFAULT_CACHE_TTL, Config
from metricsasattrs.logs import LogsProcessor
from metricsasattrs.metrics import MetricsProcessor
from metricsasattrs.traces import TracesProcessor

TYPE = "metricsasattributes"
SCOPE_NAME = "otelcol/metricsasattributes"


class Stability(Enum):
    """Maturity of a component for a signal."""

    UNDEFINED = "undefined"
    UNMAINTAINED = "unmaintained"
    DEPRECATED = "deprecated"
    DEVELOPMENT = "development"
    ALPHA = "alpha"
    BETA = "beta"
    STABLE = "stable"


TRACES_STABILITY = Stability.DEVELOPMENT
METRICS_STABILITY = Stability.DEVELOPMENT
LOGS_STABILITY = Stability.DEVELOPMENT

Consumer = Callable[[Any], Any]


class Processor:
    """A pipeline stage: processes data then hands it to the next consumer."""

    def __init__(self, process: Callable[[Any], Any], next_consumer: Consumer | None, *, mutates_data: bool) -> None:
        if next_consumer is None:
            raise ValueError("nil next consumer")
        self._process = process
        self._next_consumer = next_consumer
        self.mutates_data = mutates_data
        self.running = False

    def start(self) -> None:
        self.running = True

    def shutdown(self) -> None:
        self.running = False

    def consume(self, data: Any) -> None:
        """Process ``data`` and pass the result on."""
        self._next_consumer(self._process(data))


def _check_config(config: Any) -> Config:
    if not isinstance(config, Config):
        raise TypeError(f"expected Config, got {type(config).__name__}")
    return config


class Factory:
    """Creates processors for each signal type."""

    type = TYPE
    metrics_stability = METRICS_STABILITY
    traces_stability = TRACES_STABILITY
    logs_stability = LOGS_STABILITY

    def create_default_config(self) -> Config:
        return Config(cache_ttl=DEFAULT_CACHE_TTL)

    def create_metrics_processor(self, processor_id: Any, config: Any, next_consumer: Consumer | None) -> Processor:
        cfg = _check_config(config)
        cache = get_cache(str(processor_id), cfg.cache_ttl, cfg.metric_groups)
        processor = MetricsProcessor(cfg, cache)
        return Processor(processor.process_metrics, next_consumer, mutates_data=False)

    def create_traces_processor(self, processor_id: Any, config: Any, next_consumer: Consumer | None) -> Processor:
        cfg = _check_config(config)
        cache = get_cache(str(processor_id), cfg.cache_ttl, cfg.metric_groups)
        processor = TracesProcessor(cfg, cache)
        return Processor(processor.process_traces, next_consumer, mutates_data=True)

    def create_logs_processor(self, processor_id: Any, config: Any, next_consumer: Consumer | None) -> Processor:
        cfg = _check_config(config)
        cache = get_cache(str(processor_id), cfg.cache_ttl, cfg.metric_groups)
        processor = LogsProcessor(cfg, cache)
        return Processor(processor.process_logs, next_consumer, mutates_data=True)


def new_factory() -> Factory:
    """Return a factory for this processor."""
    return Factory()