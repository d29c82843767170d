"""Builds the URL of the serverinfo endpoint."""

from __future__ import annotations

INFO_PATH = "/ocs/v2.php/apps/serverinfo/api/v1/info"


def _flag(value: bool) -> str:
    return "true" if value else "false"


def info_url(server_url: str, skip_apps: bool = False, skip_update: bool = False) -> str:
    """Return the info endpoint for *server_url*.

    Query parameters are always emitted in the order format, skipApps, skipUpdate.
    """
    base = server_url.rstrip("/")
    return (
        f"{base}{INFO_PATH}"
        f"?format=json&skipApps={_flag(skip_apps)}&skipUpdate={_flag(skip_update)}"
    )
