"""Status document returned by the Nextcloud serverinfo app.

Every field has a zero default so that a section missing from the server's
answer decodes to an empty value instead of None. Instances are frozen: a
document is built once per scrape and never changed afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Meta:
    status: str = ""
    status_code: int = 0
    message: str = ""


@dataclass(frozen=True)
class Apps:
    installed: int = 0
    available_updates: int = 0


@dataclass(frozen=True)
class System:
    version: str = ""
    theme: str = ""
    enable_avatars: bool = False
    enable_previews: bool = False
    memcache_local: str = ""
    memcache_distributed: str = ""
    memcache_locking: str = ""
    filelocking_enabled: bool = False
    debug: bool = False
    # Signed: some server versions report -1/-2 for unknown or unlimited.
    free_space: int = 0
    apps: Apps = field(default_factory=Apps)


@dataclass(frozen=True)
class Storage:
    users: int = 0
    files: int = 0
    storages: int = 0
    storages_local: int = 0
    storages_home: int = 0
    storages_other: int = 0


@dataclass(frozen=True)
class Shares:
    total: int = 0
    user: int = 0
    group: int = 0
    link: int = 0
    link_no_password: int = 0
    mail: int = 0
    room: int = 0
    federated_sent: int = 0
    federated_received: int = 0


@dataclass(frozen=True)
class PHP:
    version: str = ""
    memory_limit: int = 0
    max_execution_time: int = 0
    upload_max_filesize: int = 0


@dataclass(frozen=True)
class Database:
    type: str = ""
    version: str = ""
    size: int = 0


@dataclass(frozen=True)
class Server:
    webserver: str = ""
    php: PHP = field(default_factory=PHP)
    database: Database = field(default_factory=Database)


@dataclass(frozen=True)
class ActiveUsers:
    last_5_minutes: int = 0
    last_hour: int = 0
    last_day: int = 0


@dataclass(frozen=True)
class Nextcloud:
    system: System = field(default_factory=System)
    storage: Storage = field(default_factory=Storage)
    shares: Shares = field(default_factory=Shares)


@dataclass(frozen=True)
class Data:
    nextcloud: Nextcloud = field(default_factory=Nextcloud)
    server: Server = field(default_factory=Server)
    active_users: ActiveUsers = field(default_factory=ActiveUsers)


@dataclass(frozen=True)
class ServerInfo:
    """Complete status document of one scrape."""

    meta: Meta = field(default_factory=Meta)
    data: Data = field(default_factory=Data)
