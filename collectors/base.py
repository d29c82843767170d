"""Base collector ABC and shared scrape result type."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.metrics_core import Metric

from serverinfo.errors import ScrapeError

VERSION = "0.7.0"
USER_AGENT = f"nextcloud-exporter/{VERSION}"


@dataclass
class ScrapeResult:
    """Outcome of one scrape: the long-lived registry plus this scrape's families."""

    registry: CollectorRegistry
    families: list[Metric] = field(default_factory=list)
    error: ScrapeError | None = None

    @property
    def up(self) -> bool:
        return self.error is None

    def collect(self) -> Iterator[Metric]:
        yield from self.registry.collect()
        yield from self.families

    def render(self) -> bytes:
        """Prometheus text exposition of :meth:`collect`."""
        return generate_latest(self)


class BaseCollector(ABC):
    """Abstract base for collectors that are scraped on demand."""

    def __init__(self, name: str, registry: CollectorRegistry | None = None) -> None:
        self.name = name
        self.registry = registry if registry is not None else CollectorRegistry()

    @abstractmethod
    async def collect(self) -> ScrapeResult:
        """Run one scrape. Failures are reported in the result, never raised."""
        ...
