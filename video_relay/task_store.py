"""
Task Records in Redis.

A record maps a Runway task id to the object key its finished video should be
written to. Values are JSON strings:

    {"videoKey": "videos/1700000000000-cat.mp4", "publicBaseUrl": "https://cdn.example"}
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Optional

import redis

from .config import Settings

logger = logging.getLogger("video-relay.tasks")


@dataclass(frozen=True)
class TaskRecord:
    video_key: str
    public_base_url: str

    def to_json(self) -> str:
        return json.dumps({"videoKey": self.video_key, "publicBaseUrl": self.public_base_url})

    @classmethod
    def from_json(cls, raw: str | bytes | None) -> Optional["TaskRecord"]:
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring task record that is not valid JSON")
            return None
        if not isinstance(data, dict) or not data.get("videoKey"):
            return None
        # Older records were written with "r2PublicUrl".
        base = data.get("publicBaseUrl") or data.get("r2PublicUrl") or ""
        return cls(video_key=data["videoKey"], public_base_url=base)


class RedisTaskStore:
    def __init__(self, client, prefix: str = "task:", ttl_seconds: int | None = None) -> None:
        self.client = client
        self.prefix = prefix
        self.ttl_seconds = ttl_seconds

    def _key(self, task_id: str) -> str:
        return f"{self.prefix}{task_id}"

    def put(self, task_id: str, record: TaskRecord) -> None:
        self.client.set(self._key(task_id), record.to_json(), ex=self.ttl_seconds)

    def get(self, task_id: str) -> Optional[TaskRecord]:
        return TaskRecord.from_json(self.client.get(self._key(task_id)))

    def delete(self, task_id: str) -> None:
        self.client.delete(self._key(task_id))


def build_task_store(settings: Settings) -> Optional[RedisTaskStore]:
    if not settings.redis_url:
        return None
    client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
    return RedisTaskStore(client, prefix=settings.task_key_prefix, ttl_seconds=settings.task_ttl_seconds)
