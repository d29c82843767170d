"""Collector turning a Nextcloud status document into Prometheus metrics."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from prometheus_client import CollectorRegistry, Counter, Gauge
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from serverinfo import ServerInfo
from serverinfo.errors import CAUSE_AUTH, CAUSE_OTHER, ScrapeError

from .base import VERSION, BaseCollector, ScrapeResult
from .info_client import InfoClient

logger = logging.getLogger(__name__)

METRIC_PREFIX = "nextcloud_"


class NextcloudCollector(BaseCollector):
    def __init__(
        self,
        info_client: InfoClient,
        registry: CollectorRegistry | None = None,
        enable_info_metrics: bool = False,
    ) -> None:
        super().__init__("nextcloud", registry)
        self.info_client = info_client
        self.enable_info_metrics = enable_info_metrics

        self.up_metric = Gauge(
            METRIC_PREFIX + "up",
            "Indicates if the metrics could be scraped by the exporter.",
            registry=self.registry,
        )
        self.scrape_errors_metric = Counter(
            METRIC_PREFIX + "scrape_errors_total",
            "Counts the number of scrape errors by this collector.",
            ["cause"],
            registry=self.registry,
        )
        for cause in (CAUSE_AUTH, CAUSE_OTHER):
            self.scrape_errors_metric.labels(cause)

    def register_exporter_info(self, version: str = VERSION) -> None:
        info = Gauge(
            METRIC_PREFIX + "exporter_info",
            "Information about the nextcloud-exporter.",
            ["version"],
            registry=self.registry,
        )
        info.labels(version).set(1)

    async def collect(self) -> ScrapeResult:
        try:
            status = await self.info_client.fetch_info()
        except ScrapeError as exc:
            logger.error("Error during scrape: %s", exc)
            self.scrape_errors_metric.labels(exc.cause).inc()
            self.up_metric.set(0)
            return ScrapeResult(registry=self.registry, error=exc)

        self.up_metric.set(1)
        families = list(status_metrics(status, self.enable_info_metrics))
        return ScrapeResult(registry=self.registry, families=families)


def _gauge(name: str, documentation: str, value: float) -> GaugeMetricFamily:
    return GaugeMetricFamily(METRIC_PREFIX + name, documentation, value=value)


def _labelled(name: str, documentation: str, label: str, values: dict[str, float]) -> GaugeMetricFamily:
    family = GaugeMetricFamily(METRIC_PREFIX + name, documentation, labels=[label])
    for key, value in values.items():
        family.add_metric([key], value)
    return family


def _info(name: str, documentation: str, labels: dict[str, str]) -> GaugeMetricFamily:
    family = GaugeMetricFamily(METRIC_PREFIX + name, documentation, labels=list(labels))
    family.add_metric(list(labels.values()), 1)
    return family


def status_metrics(status: ServerInfo, enable_info_metrics: bool = False) -> Iterator[Metric]:
    """Yield the metric families describing one status document."""
    system = status.data.nextcloud.system
    storage = status.data.nextcloud.storage
    shares = status.data.nextcloud.shares
    php = status.data.server.php
    database = status.data.server.database
    active = status.data.active_users

    yield _gauge("apps_installed_total", "Number of currently installed apps", system.apps.installed)
    yield _gauge(
        "apps_updates_available_total",
        "Number of apps that have available updates",
        system.apps.available_updates,
    )
    yield _gauge("users_total", "Number of users of the instance.", storage.users)
    yield _gauge("files_total", "Number of files served by the instance.", storage.files)
    yield _gauge("free_space_bytes", "Free disk space in data directory in bytes.", system.free_space)
    yield _gauge("active_users_total", "Number of active users for the last five minutes.", active.last_5_minutes)
    yield _gauge("active_users_hourly_total", "Number of active users in the last hour.", active.last_hour)
    yield _gauge("active_users_daily_total", "Number of active users in the last 24 hours.", active.last_day)
    yield _gauge("php_memory_limit_bytes", "Configured PHP memory limit in bytes.", php.memory_limit)
    yield _gauge("php_upload_max_size_bytes", "Configured maximum upload size in bytes.", php.upload_max_filesize)
    yield _gauge(
        "php_max_execution_time_seconds",
        "Configured PHP maximum execution time in seconds.",
        php.max_execution_time,
    )
    yield _gauge("database_size_bytes", "Size of database in bytes as reported from engine.", database.size)

    yield _labelled(
        "shares_total",
        "Number of shares by type.",
        "type",
        {
            "user": shares.user,
            "group": shares.group,
            "authlink": shares.link - shares.link_no_password,
            "link": shares.link,
            "mail": shares.mail,
            "room": shares.room,
        },
    )
    yield _labelled(
        "shares_federated_total",
        "Number of federated shares by direction.",
        "direction",
        {"sent": shares.federated_sent, "received": shares.federated_received},
    )

    if enable_info_metrics:
        yield _info(
            "system_info",
            "Contains meta information about Nextcloud as labels. Value is always 1.",
            {"version": system.version},
        )
        yield _info(
            "php_info",
            "Contains meta information about PHP as labels. Value is always 1.",
            {"version": php.version},
        )
        yield _info(
            "database_info",
            "Contains meta information about the database as labels. Value is always 1.",
            {"version": database.version, "type": database.type},
        )
