"""Decoding of serverinfo responses.

The server wraps its answer in an ``ocs`` envelope, either as JSON
(``{"ocs": {"meta": ..., "data": ...}}``) or, on old installations, as XML
with an ``<ocs>`` root element. Field types drift between server versions:
booleans arrive as ``"yes"``/``"no"``, numbers sometimes arrive as strings
and whole sections may be missing. Both formats are first turned into plain
dicts and then go through the same conversion, so the tolerance rules are
identical for JSON and XML.

Decoding is all-or-nothing: either a complete :class:`ServerInfo` is returned
or a :class:`DecodeError` (or its subclass :class:`FieldTypeError`) is raised.
"""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from typing import Any

from .errors import DecodeError, FieldTypeError
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

# Placeholder some server versions put into numeric XML elements.
_XML_NOT_AVAILABLE = "N/A"

# Optional sign followed by ASCII digits only.
_DECIMAL = re.compile(r"[+-]?[0-9]+")


def parse(data: bytes | str, content_type: str | None = None) -> ServerInfo:
    """Decode *data*, picking JSON or XML from *content_type* or the payload itself."""
    if content_type:
        if "xml" in content_type:
            return parse_xml(data)
        if "json" in content_type:
            return parse_json(data)

    head = data.lstrip()[:1]
    if head in (b"<", "<"):
        return parse_xml(data)
    return parse_json(data)


def parse_json(data: bytes | str) -> ServerInfo:
    if not data.strip():
        raise DecodeError("unexpected end of input")

    try:
        document = json.loads(data)
    except json.JSONDecodeError as exc:
        raise DecodeError(_json_error_message(exc)) from exc
    except UnicodeDecodeError as exc:
        raise DecodeError(str(exc)) from exc

    if not isinstance(document, dict):
        raise DecodeError(f"unexpected top-level type {type(document).__name__}")

    return _server_info(_section(document, "ocs", ""))


def parse_xml(data: bytes | str) -> ServerInfo:
    if not data.strip():
        raise DecodeError("unexpected end of input")

    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise DecodeError(str(exc)) from exc

    document = _element_to_dict(root)
    if not isinstance(document, dict):
        document = {}
    return _server_info(document)


def _json_error_message(exc: json.JSONDecodeError) -> str:
    if exc.pos >= len(exc.doc.rstrip()):
        return f"unexpected end of input: {exc}"
    return str(exc)


def _element_to_dict(element: ET.Element) -> dict[str, Any] | str:
    children = list(element)
    if not children:
        return (element.text or "").strip()

    result: dict[str, Any] = {}
    for child in children:
        value = _element_to_dict(child)
        if value == _XML_NOT_AVAILABLE:
            continue
        result[child.tag] = value
    return result


# ---------------------------------------------------------------------------
# Value conversion
# ---------------------------------------------------------------------------

def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _section(parent: dict[str, Any], key: str, path: str) -> dict[str, Any]:
    """Return the nested object *key*; absent or empty values become ``{}``."""
    value = parent.get(key)
    if isinstance(value, dict):
        return value
    # PHP serialises an empty associative array as [], XML as an empty element.
    if value is None or value == [] or value == "":
        return {}
    raise FieldTypeError(_join(path, key), f"unexpected type {type(value).__name__}")


def _bool(parent: dict[str, Any], key: str) -> bool:
    value = parent.get(key)
    return value == "yes" or value is True


def _str(parent: dict[str, Any], key: str, path: str) -> str:
    value = parent.get(key)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (int, float)):
        return str(value)
    raise FieldTypeError(_join(path, key), f"unexpected type {type(value).__name__}")


def _number(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise FieldTypeError(field, "unexpected type bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise FieldTypeError(field, f"cannot parse {value!r} as integer")
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if not _DECIMAL.fullmatch(text):
            raise FieldTypeError(field, f"cannot parse {value!r} as integer")
        return int(text)
    raise FieldTypeError(field, f"unexpected type {type(value).__name__}")


def _int(parent: dict[str, Any], key: str, path: str) -> int:
    """Signed integer; negative sentinels are kept as they are."""
    value = parent.get(key)
    if value is None or value == "":
        return 0
    return _number(value, _join(path, key))


def _count(parent: dict[str, Any], key: str, path: str) -> int:
    """Non-negative counter."""
    result = _int(parent, key, path)
    if result < 0:
        raise FieldTypeError(_join(path, key), f"negative value {result}")
    return result


def _database_size(parent: dict[str, Any], path: str) -> int:
    value = parent.get("size", "")
    if value == "":
        return 0

    field = _join(path, "size")
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise FieldTypeError(field, f"unexpected type {type(value).__name__}")

    size = _number(value, field)
    if size < 0:
        raise FieldTypeError(field, f"negative database size: {size}")
    return size


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

def _server_info(ocs: dict[str, Any]) -> ServerInfo:
    data = _section(ocs, "data", "")
    return ServerInfo(
        meta=_meta(_section(ocs, "meta", ""), "meta"),
        data=Data(
            nextcloud=_nextcloud(_section(data, "nextcloud", "data"), "data.nextcloud"),
            server=_server(_section(data, "server", "data"), "data.server"),
            active_users=_active_users(_section(data, "activeUsers", "data"), "data.activeUsers"),
        ),
    )


def _meta(raw: dict[str, Any], path: str) -> Meta:
    return Meta(
        status=_str(raw, "status", path),
        status_code=_int(raw, "statuscode", path),
        message=_str(raw, "message", path),
    )


def _nextcloud(raw: dict[str, Any], path: str) -> Nextcloud:
    return Nextcloud(
        system=_system(_section(raw, "system", path), _join(path, "system")),
        storage=_storage(_section(raw, "storage", path), _join(path, "storage")),
        shares=_shares(_section(raw, "shares", path), _join(path, "shares")),
    )


def _system(raw: dict[str, Any], path: str) -> System:
    apps = _section(raw, "apps", path)
    apps_path = _join(path, "apps")
    return System(
        version=_str(raw, "version", path),
        theme=_str(raw, "theme", path),
        enable_avatars=_bool(raw, "enable_avatars"),
        enable_previews=_bool(raw, "enable_previews"),
        memcache_local=_str(raw, "memcache.local", path),
        memcache_distributed=_str(raw, "memcache.distributed", path),
        memcache_locking=_str(raw, "memcache.locking", path),
        filelocking_enabled=_bool(raw, "filelocking.enabled"),
        debug=_bool(raw, "debug"),
        free_space=_int(raw, "freespace", path),
        apps=Apps(
            installed=_count(apps, "num_installed", apps_path),
            available_updates=_count(apps, "num_updates_available", apps_path),
        ),
    )


def _storage(raw: dict[str, Any], path: str) -> Storage:
    return Storage(
        users=_count(raw, "num_users", path),
        files=_count(raw, "num_files", path),
        storages=_count(raw, "num_storages", path),
        storages_local=_count(raw, "num_storages_local", path),
        storages_home=_count(raw, "num_storages_home", path),
        storages_other=_count(raw, "num_storages_other", path),
    )


def _shares(raw: dict[str, Any], path: str) -> Shares:
    return Shares(
        total=_count(raw, "num_shares", path),
        user=_count(raw, "num_shares_user", path),
        group=_count(raw, "num_shares_groups", path),
        link=_count(raw, "num_shares_link", path),
        link_no_password=_count(raw, "num_shares_link_no_password", path),
        mail=_count(raw, "num_shares_mail", path),
        room=_count(raw, "num_shares_room", path),
        federated_sent=_count(raw, "num_fed_shares_sent", path),
        federated_received=_count(raw, "num_fed_shares_received", path),
    )


def _server(raw: dict[str, Any], path: str) -> Server:
    php = _section(raw, "php", path)
    php_path = _join(path, "php")
    database = _section(raw, "database", path)
    database_path = _join(path, "database")
    return Server(
        webserver=_str(raw, "webserver", path),
        php=PHP(
            version=_str(php, "version", php_path),
            memory_limit=_int(php, "memory_limit", php_path),
            max_execution_time=_int(php, "max_execution_time", php_path),
            upload_max_filesize=_int(php, "upload_max_filesize", php_path),
        ),
        database=Database(
            type=_str(database, "type", database_path),
            version=_str(database, "version", database_path),
            size=_database_size(database, database_path),
        ),
    )


def _active_users(raw: dict[str, Any], path: str) -> ActiveUsers:
    return ActiveUsers(
        last_5_minutes=_count(raw, "last5minutes", path),
        last_hour=_count(raw, "last1hour", path),
        last_day=_count(raw, "last24hours", path),
    )
