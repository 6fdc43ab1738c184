from __future__ import annotations

import asyncio

import httpx
import pytest

from video_relay.errors import UpstreamError
from video_relay.handlers import video_key
from video_relay.runway import RunwayClient

from fakes import ASSET_URL, RUNWAY_BASE, FakeRunway


def _run(runway: FakeRunway, call):
    async def main():
        async with httpx.AsyncClient(transport=httpx.MockTransport(runway)) as http:
            client = RunwayClient(http, api_key="rk_test", base_url=RUNWAY_BASE + "/", api_version="2024-11-06")
            return await call(client)

    return asyncio.run(main())


def _start(client: RunwayClient):
    return client.start_image_to_video(
        model="gen4_turbo",
        prompt_text="cat",
        prompt_image="https://cdn.example/uploads/1-cat.png",
        seed=42,
        duration=5,
        ratio="1280:720",
    )


def test_start_requires_task_id() -> None:
    runway = FakeRunway()
    runway.start_response = (200, {"status": "PENDING"})

    with pytest.raises(UpstreamError, match="task id"):
        _run(runway, _start)


def test_start_error_keeps_upstream_status() -> None:
    runway = FakeRunway()
    runway.start_response = (429, {"error": "Rate limited"})

    with pytest.raises(UpstreamError) as exc_info:
        _run(runway, _start)

    assert exc_info.value.message == "Rate limited"
    assert exc_info.value.upstream_status == 429


def test_status_error_without_body_uses_reason() -> None:
    runway = FakeRunway()
    runway.tasks["abc123"] = (503, "unavailable")

    with pytest.raises(UpstreamError, match="Status check failed: Service Unavailable"):
        _run(runway, lambda c: c.get_task("abc123"))


def test_download_returns_rewound_file() -> None:
    runway = FakeRunway()
    runway.assets[ASSET_URL] = (200, b"video-bytes")

    async def call(client: RunwayClient):
        video = await client.download(ASSET_URL)
        try:
            return video.read()
        finally:
            video.close()

    assert _run(runway, call) == b"video-bytes"
    assert "authorization" not in runway.requests[0].headers


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("cat.png", "videos/7-cat.mp4"),
        ("my.cat.photo.jpeg", "videos/7-my.cat.photo.mp4"),
        ("noext", "videos/7-noext.mp4"),
        (".hidden", "videos/7-.hidden.mp4"),
    ],
)
def test_video_key(filename: str, expected: str) -> None:
    assert video_key(7, filename) == expected


def test_task_id_stays_in_one_path_segment() -> None:
    runway = FakeRunway()

    with pytest.raises(UpstreamError):
        _run(runway, lambda c: c.get_task("abc/../image_to_video?x=1#frag"))

    request = runway.requests[0]
    assert request.url.host == "api.runway.test"
    assert request.url.raw_path == b"/v1/tasks/abc%2F..%2Fimage_to_video%3Fx%3D1%23frag"
    assert request.url.query == b""
    assert request.url.fragment == ""
