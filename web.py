#!/usr/bin/env python3
"""Nextcloud exporter: serves serverinfo data as Prometheus metrics.

Usage:
    python web.py --server https://cloud.example.com -u monitor -p @password.txt
    python web.py -c config.yml --addr 127.0.0.1:9205
    python web.py --login --server https://cloud.example.com
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from collections.abc import Sequence

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST

from collectors import USER_AGENT, InfoClient, NextcloudCollector
from config import Config, ConfigError, RunMode, parse_config, version_string
from login import LoginClient, LoginError
from serverinfo import info_url

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------

def create_app(collector: NextcloudCollector) -> FastAPI:
    """Build the HTTP app. Every request to /metrics runs exactly one scrape."""
    app = FastAPI(title="Nextcloud Exporter", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.collector = collector

    @app.get("/metrics")
    async def metrics(request: Request) -> Response:
        result = await request.app.state.collector.collect()
        return Response(content=result.render(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/")
    async def index() -> RedirectResponse:
        return RedirectResponse(url="/metrics", status_code=302)

    return app


def build_collector(config: Config) -> NextcloudCollector:
    client = InfoClient(
        info_url(config.server_url, skip_apps=config.skip_apps, skip_update=config.skip_update),
        username=config.username,
        password=config.password,
        auth_token=config.auth_token,
        timeout=config.timeout,
        user_agent=USER_AGENT,
        tls_skip_verify=config.tls_skip_verify,
    )
    collector = NextcloudCollector(client, enable_info_metrics=config.enable_info_metrics)
    collector.register_exporter_info()
    return collector


# ---------------------------------------------------------------------------
# CLI entrypoint
# ---------------------------------------------------------------------------

def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main(argv: Sequence[str] | None = None) -> None:
    try:
        config = parse_config(sys.argv[1:] if argv is None else argv, os.environ)
    except ConfigError as exc:
        print(f"Error in configuration: {exc}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_level)

    if config.run_mode is RunMode.VERSION:
        print(version_string())
        return

    try:
        config.validate()
        host, port = config.listen_host_port
    except ConfigError as exc:
        logger.error("Error in configuration: %s", exc)
        sys.exit(1)

    if config.run_mode is RunMode.LOGIN:
        client = LoginClient(config.server_url, USER_AGENT, tls_skip_verify=config.tls_skip_verify)
        try:
            asyncio.run(client.start_interactive())
        except LoginError as exc:
            logger.error("Error during login: %s", exc)
            sys.exit(1)
        return

    if config.tls_skip_verify:
        logger.warning("TLS certificate verification is disabled")
    if config.auth_token:
        logger.info("Nextcloud server: %s Authentication using token.", config.server_url)
    else:
        logger.info("Nextcloud server: %s User: %s", config.server_url, config.username)

    app = create_app(build_collector(config))
    logger.info("Listen on %s:%d...", host, port)
    uvicorn.run(app, host=host, port=port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
