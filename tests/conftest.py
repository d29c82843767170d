from __future__ import annotations

from pathlib import Path

import httpx
import pytest

TESTDATA = Path(__file__).parent / "testdata"


@pytest.fixture
def testdata() -> Path:
    return TESTDATA


@pytest.fixture
def client_kwargs(monkeypatch: pytest.MonkeyPatch) -> list[dict]:
    """Record the keyword arguments of every ``httpx.AsyncClient`` built."""
    calls: list[dict] = []
    real_client = httpx.AsyncClient

    def recording_client(**kwargs):
        calls.append(kwargs)
        return real_client(**kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", recording_client)
    return calls
