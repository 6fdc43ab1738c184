from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from video_relay.app import create_app

from fakes import FakeObjectStore, FakeRunway, FakeTaskStore, make_settings


@pytest.fixture
def objects() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def tasks() -> FakeTaskStore:
    return FakeTaskStore()


@pytest.fixture
def runway() -> FakeRunway:
    return FakeRunway()


@pytest.fixture
def fixed_clock(monkeypatch: pytest.MonkeyPatch) -> int:
    now = 1700000000000
    monkeypatch.setattr("video_relay.handlers._now_ms", lambda: now)
    return now


@pytest.fixture
def client(objects: FakeObjectStore, tasks: FakeTaskStore, runway: FakeRunway):
    app = create_app(
        make_settings(),
        object_store=objects,
        task_store=tasks,
        transport=httpx.MockTransport(runway),
    )
    with TestClient(app) as c:
        yield c
