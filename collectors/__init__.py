from .base import USER_AGENT, VERSION, BaseCollector, ScrapeResult
from .info_client import InfoClient
from .nextcloud_collector import NextcloudCollector, status_metrics

__all__ = [
    "USER_AGENT",
    "VERSION",
    "BaseCollector",
    "ScrapeResult",
    "InfoClient",
    "NextcloudCollector",
    "status_metrics",
]
