"""Time-limited cache of the latest data point per match id and metric name."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Iterable

from metricsasattrs.model import NumberDataPoint

logger = logging.getLogger(__name__)

MINIMUM_TTL = timedelta(minutes=1)

Clock = Callable[[], float]


@dataclass
class CachedMetric:
    """A cached data point and the clock reading when it was stored."""

    data_point: NumberDataPoint
    updated: float


class MatchedMetricsCache:
    """Metrics stored for one match id, keyed by metric name."""

    def __init__(self) -> None:
        self.metrics: dict[str, CachedMetric] = {}
        self.lock = threading.RLock()


class MetricGroupCache:
    """Per-metric-group cache, keyed by match id."""

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._matched: dict[str, MatchedMetricsCache] = {}
        self.lock = threading.RLock()
        self._clock = clock

    def set_metric(self, match_id: str, name: str, data_point: NumberDataPoint) -> None:
        with self.lock:
            matched = self._matched.get(match_id)
            if matched is None:
                matched = self._matched[match_id] = MatchedMetricsCache()
        with matched.lock:
            matched.metrics[name] = CachedMetric(data_point, self._clock())

    def has_matched_metrics(self, match_id: str) -> bool:
        return match_id in self._matched

    def get_matched_metrics_cache(self, match_id: str) -> MatchedMetricsCache | None:
        return self._matched.get(match_id)

    def _expire(self, now: float, ttl_seconds: float) -> int:
        removed = 0
        with self.lock:
            for match_id, matched in list(self._matched.items()):
                with matched.lock:
                    expired = [
                        name for name, cached in matched.metrics.items()
                        if now - cached.updated > ttl_seconds
                    ]
                    for name in expired:
                        del matched.metrics[name]
                    removed += len(expired)
                    if not matched.metrics:
                        del self._matched[match_id]
        return removed


class MetricCache:
    """Caches for all metric groups, with a background expiry timer."""

    def __init__(
        self,
        ttl: timedelta,
        group_names: Iterable[str],
        *,
        clock: Clock = time.monotonic,
        start_timer: bool = True,
    ) -> None:
        self.ttl = max(ttl, MINIMUM_TTL)
        self._clock = clock
        self.metric_groups: dict[str, MetricGroupCache] = {
            name: MetricGroupCache(clock) for name in group_names
        }
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None
        if start_timer:
            self._thread = threading.Thread(target=self._run, name="metric-cache-cleanup", daemon=True)
            self._thread.start()

    def _run(self) -> None:
        interval = self.ttl.total_seconds() / 2
        while not self._stopped.wait(interval):
            self.cleanup()

    def cleanup(self) -> int:
        """Drop metrics older than the TTL; return how many were dropped."""
        now = self._clock()
        ttl_seconds = self.ttl.total_seconds()
        cleaned = sum(group._expire(now, ttl_seconds) for group in self.metric_groups.values())
        logger.debug("Cleaned up expired metrics: cleaned=%d", cleaned)
        return cleaned

    def close(self) -> None:
        """Stop the background expiry timer."""
        self._stopped.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None

    def __enter__(self) -> MetricCache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


_caches: dict[str, MetricCache] = {}
_caches_lock = threading.Lock()


def get_cache(cache_id: str, cache_ttl: timedelta, metric_groups: Iterable) -> MetricCache:
    """Return the shared cache for ``cache_id``, creating it on first use."""
    with _caches_lock:
        cache = _caches.get(cache_id)
        if cache is None:
            cache = _caches[cache_id] = MetricCache(cache_ttl, (group.name for group in metric_groups))
        return cache