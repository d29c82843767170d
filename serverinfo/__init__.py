from .models import (
    PHP,
    ActiveUsers,
    Apps,
    Data,
    Database,
    Meta,
    Nextcloud,
    Server,
    ServerInfo,
    Shares,
    Storage,
    System,
)
from .parse import parse, parse_json, parse_xml
from .url import info_url

__all__ = [
    "PHP",
    "ActiveUsers",
    "Apps",
    "Data",
    "Database",
    "Meta",
    "Nextcloud",
    "Server",
    "ServerInfo",
    "Shares",
    "Storage",
    "System",
    "parse",
    "parse_json",
    "parse_xml",
    "info_url",
]
