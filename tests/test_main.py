from __future__ import annotations

import logging
import os

import pytest

from video_relay import __main__ as entrypoint


def test_log_level_from_dotenv_is_applied(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.setattr("sys.argv", ["video_relay"])

    def fake_load_dotenv(*args, **kwargs) -> bool:
        os.environ["LOG_LEVEL"] = "debug"
        return True

    seen: dict = {}
    monkeypatch.setattr(entrypoint, "load_dotenv", fake_load_dotenv)
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: seen.update(kwargs))
    monkeypatch.setattr(entrypoint.uvicorn, "run", lambda *args, **kwargs: seen.update(ran=True))

    assert entrypoint.main() == 0

    assert seen["level"] == "DEBUG"
    assert seen["ran"] is True
