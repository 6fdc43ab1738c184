from __future__ import annotations

import logging
import tempfile
from typing import IO, Any
from urllib.parse import quote

import httpx

from .errors import UpstreamError

logger = logging.getLogger("video-relay.runway")

# Videos larger than this spill from memory to a temporary file.
SPOOL_MAX_BYTES = 32 * 1024 * 1024


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class RunwayClient:
    """Minimal client for the two Runway endpoints the relay needs."""

    def __init__(self, http: httpx.AsyncClient, api_key: str, base_url: str, api_version: str) -> None:
        self._http = http
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._api_version = api_version

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "X-Runway-Version": self._api_version,
        }

    async def start_image_to_video(
        self,
        *,
        model: str,
        prompt_text: str,
        prompt_image: str,
        seed: int,
        duration: int,
        ratio: str,
    ) -> dict[str, Any]:
        body = {
            "model": model,
            "promptText": prompt_text,
            "promptImage": prompt_image,
            "seed": seed,
            "watermark": False,
            "duration": duration,
            "ratio": ratio,
        }
        response = await self._http.post(
            f"{self._base_url}/image_to_video",
            headers=self._headers(),
            json=body,
        )
        data = _json_body(response)
        if not response.is_success:
            raise UpstreamError(
                data.get("error") or f"Runway API returned status {response.status_code}",
                upstream_status=response.status_code,
            )
        if not data.get("id"):
            raise UpstreamError("Runway API response did not include a task id", upstream_status=response.status_code)
        return data

    async def get_task(self, task_id: str) -> dict[str, Any]:
        # Task ids are opaque; keep them to a single path segment.
        response = await self._http.get(
            f"{self._base_url}/tasks/{quote(task_id, safe='')}",
            headers=self._headers(),
        )
        data = _json_body(response)
        if not response.is_success:
            raise UpstreamError(
                f"Status check failed: {data.get('error') or response.reason_phrase}",
                upstream_status=response.status_code,
            )
        return data

    async def download(self, url: str) -> IO[bytes]:
        """
        Stream a generated asset into a spooled temporary file.

        Asset URLs are pre-signed, so no auth headers are sent. The caller owns
        (and must close) the returned file, which is rewound to the start.
        """
        buffer = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_BYTES)
        try:
            async with self._http.stream("GET", url, follow_redirects=True) as response:
                if not response.is_success:
                    raise UpstreamError(
                        f"Failed to download generated video from Runway. Status: {response.status_code}",
                        upstream_status=response.status_code,
                    )
                async for chunk in response.aiter_bytes():
                    buffer.write(chunk)
        except BaseException:
            buffer.close()
            raise
        buffer.seek(0)
        return buffer
