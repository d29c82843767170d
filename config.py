"""Exporter configuration from flags, a YAML file and environment variables.

Sources are applied in this order, later ones overriding values set by
earlier ones: built-in defaults, command-line flags, configuration file,
environment. Empty values never override.
"""

from __future__ import annotations

import argparse
import enum
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from collectors.base import VERSION

ENV_PREFIX = "NEXTCLOUD_"

# config attribute -> (YAML key, environment variable)
_SOURCES = {
    "listen_address": ("listenAddress", ENV_PREFIX + "LISTEN_ADDRESS"),
    "timeout": ("timeout", ENV_PREFIX + "TIMEOUT"),
    "server_url": ("server", ENV_PREFIX + "SERVER"),
    "username": ("username", ENV_PREFIX + "USERNAME"),
    "password": ("password", ENV_PREFIX + "PASSWORD"),
    "auth_token": ("authToken", ENV_PREFIX + "AUTH_TOKEN"),
    "tls_skip_verify": ("tlsSkipVerify", ENV_PREFIX + "TLS_SKIP_VERIFY"),
    "enable_info_metrics": ("enableInfoMetrics", ENV_PREFIX + "INFO_METRICS"),
    "skip_apps": ("skipApps", ENV_PREFIX + "SKIP_APPS"),
    "skip_update": ("skipUpdate", ENV_PREFIX + "SKIP_UPDATE"),
    "log_level": ("logLevel", ENV_PREFIX + "LOG_LEVEL"),
}

_BOOL_FIELDS = {"tls_skip_verify", "enable_info_metrics", "skip_apps", "skip_update"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


class ConfigError(Exception):
    pass


class RunMode(enum.Enum):
    EXPORTER = "exporter"
    LOGIN = "login"
    VERSION = "version"


@dataclass(frozen=True)
class Config:
    listen_address: str = ":9205"
    timeout: float = 5.0
    server_url: str = ""
    username: str = ""
    password: str = ""
    auth_token: str = ""
    tls_skip_verify: bool = False
    enable_info_metrics: bool = False
    skip_apps: bool = True
    skip_update: bool = False
    log_level: str = "INFO"
    run_mode: RunMode = RunMode.EXPORTER

    def validate(self) -> None:
        if not self.server_url:
            raise ConfigError("need to set a server URL")

        if self.run_mode is RunMode.LOGIN or self.auth_token:
            return

        if not self.username:
            raise ConfigError("need to provide a username")

        if not self.password:
            raise ConfigError("need to provide a password")

    @property
    def listen_host_port(self) -> tuple[str, int]:
        """Split ``listen_address`` (``host:port`` or ``:port``) for uvicorn."""
        host, sep, port = self.listen_address.rpartition(":")
        if not sep:
            raise ConfigError(f"listen address {self.listen_address!r} has no port")
        try:
            port_number = int(port)
        except ValueError:
            raise ConfigError(f"listen address {self.listen_address!r} has an invalid port") from None
        return host.strip("[]") or "0.0.0.0", port_number


def parse_duration(raw: str | float | int) -> float:
    """Parse ``"30s"``, ``"1m30s"``, ``"500ms"`` or a plain number of seconds."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return float(raw)

    text = str(raw).strip()
    try:
        return float(text)
    except ValueError:
        pass

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if not text or position != len(text):
        raise ValueError(f"invalid duration {text!r}")
    return total


def parse_bool(raw: str | bool) -> bool:
    if isinstance(raw, bool):
        return raw
    value = str(raw).strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"invalid boolean {raw!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nextcloud-exporter",
        description="Prometheus exporter for Nextcloud serverinfo metrics",
    )
    parser.add_argument("-c", "--config-file", help="Path to YAML configuration file.")
    parser.add_argument("-a", "--addr", dest="listen_address", help="Address to listen on for connections.")
    parser.add_argument("-t", "--timeout", help="Timeout for getting server info document (e.g. 5s).")
    parser.add_argument("-s", "--server", dest="server_url", help="URL to Nextcloud server.")
    parser.add_argument("-u", "--username", help="Username for connecting to Nextcloud.")
    parser.add_argument(
        "-p", "--password",
        help="Password for connecting to Nextcloud. Prefix with @ to read it from a file.",
    )
    parser.add_argument(
        "--auth-token",
        help="Authentication token. Overrides username and password. Prefix with @ to read it from a file.",
    )
    parser.add_argument(
        "--tls-skip-verify",
        action=argparse.BooleanOptionalAction,
        help="Skip certificate verification of Nextcloud server.",
    )
    parser.add_argument(
        "--enable-info-metrics",
        action=argparse.BooleanOptionalAction,
        help="Enable metrics carrying version information as labels.",
    )
    parser.add_argument(
        "--skip-apps",
        action=argparse.BooleanOptionalAction,
        help="Ask the server not to report app statistics (default: skip).",
    )
    parser.add_argument(
        "--skip-update",
        action=argparse.BooleanOptionalAction,
        help="Ask the server not to check for app updates.",
    )
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR).")
    parser.add_argument("--login", action="store_true", help="Use interactive login to create an app password.")
    parser.add_argument("--version", action="store_true", help="Show version information and exit.")
    return parser


def parse_config(args: Sequence[str], environ: Mapping[str, str]) -> Config:
    """Build the configuration from *args* (without program name) and *environ*."""
    options = build_parser().parse_args(list(args))

    values: dict[str, Any] = {name: getattr(options, name) for name in _SOURCES}

    if options.config_file:
        try:
            file_values = load_file(Path(options.config_file))
        except (OSError, yaml.YAMLError, ValueError) as exc:
            raise ConfigError(f"error reading configuration file: {exc}") from exc
        _merge(values, file_values)

    try:
        env_values = load_env(environ)
    except ValueError as exc:
        raise ConfigError(f"error reading environment variables: {exc}") from exc
    _merge(values, env_values)

    config = _convert(values)

    if options.version:
        return replace(config, run_mode=RunMode.VERSION)
    if options.login:
        return replace(config, run_mode=RunMode.LOGIN)
    return config


def load_file(path: Path) -> dict[str, Any]:
    """Read the YAML configuration file and return values keyed by attribute."""
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"expected a mapping in {path}, got {type(raw).__name__}")

    values: dict[str, Any] = {}
    for name, (key, _env) in _SOURCES.items():
        if key not in raw or raw[key] is None:
            continue
        value = raw[key]
        if name in _BOOL_FIELDS:
            value = parse_bool(value)
        elif name == "timeout":
            value = parse_duration(value)
        else:
            value = str(value)
        values[name] = value
    return values


def load_env(environ: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name, (_key, env) in _SOURCES.items():
        raw = environ.get(env, "")
        if not raw:
            continue
        if name in _BOOL_FIELDS:
            values[name] = parse_bool(raw)
        elif name == "timeout":
            values[name] = parse_duration(raw)
        else:
            values[name] = raw
    return values


def _merge(base: dict[str, Any], override: Mapping[str, Any]) -> None:
    for name, value in override.items():
        if value is None or value == "":
            continue
        base[name] = value


def _read_secret_file(value: str) -> str:
    if not value.startswith("@"):
        return value
    file_name = value[1:]
    try:
        with open(file_name) as f:
            return f.read().rstrip("\r\n")
    except OSError as exc:
        raise ConfigError(f"can not read password file: {exc}") from exc


def _convert(values: Mapping[str, Any]) -> Config:
    defaults = Config()
    kwargs: dict[str, Any] = {}
    for f in fields(Config):
        value = values.get(f.name)
        if value is None or value == "":
            continue
        kwargs[f.name] = value

    if "timeout" in kwargs:
        try:
            kwargs["timeout"] = parse_duration(kwargs["timeout"])
        except ValueError as exc:
            raise ConfigError(f"invalid timeout: {exc}") from exc
    if kwargs.get("timeout", defaults.timeout) <= 0:
        raise ConfigError("timeout must be positive")

    for name in ("password", "auth_token"):
        if name in kwargs:
            kwargs[name] = _read_secret_file(kwargs[name])

    if "log_level" in kwargs:
        kwargs["log_level"] = kwargs["log_level"].upper()
        if kwargs["log_level"] not in _LOG_LEVELS:
            raise ConfigError(f"unknown log level: {values['log_level']}")

    if "server_url" in kwargs:
        kwargs["server_url"] = kwargs["server_url"].rstrip("/")

    return Config(**kwargs)


def version_string() -> str:
    return f"nextcloud-exporter {VERSION}"
