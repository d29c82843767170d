from __future__ import annotations

from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from collectors import InfoClient, NextcloudCollector
from config import Config
from web import build_collector, create_app, main


def _app(response: httpx.Response) -> TestClient:
    client = InfoClient(
        "https://cloud.example.com/info",
        username="monitor",
        password="secret",
        transport=httpx.MockTransport(lambda request: response),
    )
    return TestClient(create_app(NextcloudCollector(client)))


def test_metrics_endpoint(testdata: Path) -> None:
    client = _app(httpx.Response(200, content=(testdata / "info.json").read_bytes()))

    resp = client.get("/metrics")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert "nextcloud_up 1.0" in resp.text
    assert "nextcloud_users_total 42.0" in resp.text


def test_metrics_endpoint_reports_down() -> None:
    client = _app(httpx.Response(401))

    resp = client.get("/metrics")

    assert resp.status_code == 200
    assert "nextcloud_up 0.0" in resp.text
    assert 'nextcloud_scrape_errors_total{cause="auth"} 1.0' in resp.text
    assert "nextcloud_users_total" not in resp.text


def test_index_redirects() -> None:
    client = _app(httpx.Response(200, content=b"{}"))

    resp = client.get("/", follow_redirects=False)

    assert resp.status_code == 302
    assert resp.headers["location"] == "/metrics"


def test_build_collector_uses_config() -> None:
    config = Config(
        server_url="https://cloud.example.com",
        auth_token="token",
        skip_apps=False,
        skip_update=True,
        enable_info_metrics=True,
    )

    collector = build_collector(config)

    assert collector.info_client.info_url.endswith("?format=json&skipApps=false&skipUpdate=true")
    assert collector.info_client.auth_token == "token"
    assert collector.enable_info_metrics is True
    assert collector.registry.get_sample_value("nextcloud_exporter_info", {"version": "0.7.0"}) == 1


def test_main_version(capsys: pytest.CaptureFixture[str]) -> None:
    main(["--version"])
    assert capsys.readouterr().out.strip() == "nextcloud-exporter 0.7.0"


def test_main_invalid_config_exits() -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["--server", "https://cloud.example.com"])
    assert exc_info.value.code == 1
