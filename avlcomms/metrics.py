"""Prometheus exporter for AVL link counters."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from typing import Any

import msgspec
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from .state.stats import LinkStatistics

logger = logging.getLogger("avlcomms.metrics")


_SANITIZE_RE = re.compile(r"[^a-zA-Z0-9_]")
_METRIC_PREFIX = "avlcomms_link"
_GAUGE_DOC = "AVL link counter"
_VEHICLE_LABEL = "vehicle_id"


class LinkStatisticsCollector(Collector):
    """Prometheus collector that projects per-vehicle LinkStatistics."""

    def __init__(self) -> None:
        self._links: dict[int, LinkStatistics] = {}

    def register_link(self, vehicle_id: int, stats: LinkStatistics) -> None:
        self._links[vehicle_id] = stats
        logger.debug("Exporting link metrics for vehicle %d", vehicle_id)

    def unregister_link(self, vehicle_id: int) -> None:
        self._links.pop(vehicle_id, None)

    def collect(self) -> Iterator[Any]:
        families: dict[str, GaugeMetricFamily] = {}
        for vehicle_id, stats in sorted(self._links.items()):
            for name, value in msgspec.structs.asdict(stats).items():
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    continue
                metric_name = _sanitize_metric_name(f"{_METRIC_PREFIX}_{name}")
                family = families.get(metric_name)
                if family is None:
                    family = GaugeMetricFamily(metric_name, _GAUGE_DOC, labels=(_VEHICLE_LABEL,))
                    families[metric_name] = family
                family.add_metric((str(vehicle_id),), float(value))
        yield from families.values()


def build_registry(collector: LinkStatisticsCollector) -> CollectorRegistry:
    registry = CollectorRegistry()
    registry.register(collector)
    return registry


def render_metrics(registry: CollectorRegistry) -> bytes:
    """Render the registry in the Prometheus text exposition format."""
    return generate_latest(registry)


def _sanitize_metric_name(name: str) -> str:
    cleaned = _SANITIZE_RE.sub("_", name.lower())
    cleaned = cleaned.strip("_") or "avlcomms_metric"
    if cleaned[0].isdigit():
        cleaned = f"_{cleaned}"
    return cleaned


__all__ = [
    "CONTENT_TYPE_LATEST",
    "LinkStatisticsCollector",
    "build_registry",
    "render_metrics",
]
