"""
The two request paths of the relay.

- submit_job: multipart upload (prompt + image) -> image stored, Runway task
  started, Task Record written.
- check_status: JSON poll -> Runway task status; once SUCCEEDED the video is
  copied into our bucket and the Task Record is dropped in the background.

Handlers receive every collaborator through RequestContext and raise
RelayError subclasses; turning those into HTTP responses is the dispatcher's
job.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any

from fastapi import BackgroundTasks
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData, UploadFile

from .config import Settings
from .errors import InvalidRequestError, TaskRecordMissingError
from .object_store import S3ObjectStore, public_url
from .runway import RunwayClient
from .task_store import RedisTaskStore, TaskRecord

logger = logging.getLogger("video-relay.handlers")

SEED_RANGE = 4294967295
VIDEO_CONTENT_TYPE = "video/mp4"


@dataclass
class RequestContext:
    settings: Settings
    objects: S3ObjectStore
    tasks: RedisTaskStore
    runway: RunwayClient
    background: BackgroundTasks


def _now_ms() -> int:
    return int(time.time() * 1000)


def image_key(timestamp: int, filename: str) -> str:
    return f"uploads/{timestamp}-{filename}"


def video_key(timestamp: int, filename: str) -> str:
    """`videos/<ts>-<name without its last extension>.mp4`."""
    stem = filename.rsplit(".", 1)[0] if "." in filename else ""
    return f"videos/{timestamp}-{stem or filename}.mp4"


def _parse_duration(raw: Any, default: int) -> int:
    if raw is None or raw == "":
        return default
    if not isinstance(raw, str):
        raise InvalidRequestError("duration must be an integer number of seconds.")
    try:
        return int(raw.strip())
    except ValueError as e:
        raise InvalidRequestError(f"duration must be an integer number of seconds, got {raw!r}.") from e


async def submit_job(ctx: RequestContext, form: FormData) -> dict[str, Any]:
    prompt = form.get("prompt")
    image = form.get("image")
    if not isinstance(prompt, str) or not prompt.strip() or not isinstance(image, UploadFile) or not image.filename:
        raise InvalidRequestError("Request is missing prompt or image file.")

    duration = _parse_duration(form.get("duration"), ctx.settings.default_duration)
    ratio = form.get("ratio")
    if not isinstance(ratio, str) or not ratio:
        ratio = ctx.settings.default_ratio

    timestamp = _now_ms()
    upload_key = image_key(timestamp, image.filename)
    await run_in_threadpool(
        ctx.objects.put,
        upload_key,
        image.file,
        image.content_type or "application/octet-stream",
    )
    prompt_image = ctx.objects.public_url(upload_key)
    destination = video_key(timestamp, image.filename)

    data = await ctx.runway.start_image_to_video(
        model=ctx.settings.runway_model,
        prompt_text=prompt,
        prompt_image=prompt_image,
        seed=random.randrange(SEED_RANGE),
        duration=duration,
        ratio=ratio,
    )
    task_id = data["id"]
    logger.info(f"Started Runway task {task_id} for {upload_key} -> {destination}")

    record = TaskRecord(video_key=destination, public_base_url=ctx.settings.public_base_url or "")
    await run_in_threadpool(ctx.tasks.put, task_id, record)
    return {"success": True, "taskId": task_id, "status": data.get("status")}


def _delete_task_record(tasks: RedisTaskStore, task_id: str) -> None:
    try:
        tasks.delete(task_id)
        logger.info(f"Deleted task record {task_id}")
    except Exception as e:
        logger.warning(f"Failed to delete task record {task_id}: {e}")


async def check_status(ctx: RequestContext, payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidRequestError("Invalid status check request.")
    task_id = payload.get("taskId")
    if payload.get("action") != "status" or not task_id or not isinstance(task_id, str):
        raise InvalidRequestError("Invalid status check request.")

    data = await ctx.runway.get_task(task_id)
    status = data.get("status")
    progress = data.get("progress")
    outputs = data.get("output") or []

    if status != "SUCCEEDED" or not outputs:
        logger.info(f"Task {task_id}: status={status} progress={progress}")
        result: dict[str, Any] = {"success": True, "status": status, "progress": progress, "videoUrl": None}
        if status == "FAILED" and data.get("failure"):
            result["failure"] = data["failure"]
        return result

    record = await run_in_threadpool(ctx.tasks.get, task_id)
    if record is None:
        raise TaskRecordMissingError(task_id)

    video = await ctx.runway.download(outputs[0])
    try:
        await run_in_threadpool(ctx.objects.put, record.video_key, video, VIDEO_CONTENT_TYPE)
    finally:
        video.close()

    video_url = public_url(record.public_base_url or ctx.settings.public_base_url or "", record.video_key)
    logger.info(f"Relayed task {task_id} to {video_url}")

    # Known race: two concurrent polls may both relay before either deletes.
    ctx.background.add_task(_delete_task_record, ctx.tasks, task_id)
    return {"success": True, "status": status, "progress": progress, "videoUrl": video_url}
