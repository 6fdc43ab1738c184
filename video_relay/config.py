from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from dotenv import load_dotenv


DEFAULT_RUNWAY_API_BASE = "https://api.dev.runwayml.com/v1"
DEFAULT_RUNWAY_API_VERSION = "2024-11-06"
DEFAULT_RUNWAY_MODEL = "gen4_turbo"
DEFAULT_RATIO = "1280:720"
DEFAULT_DURATION = 5


def _env(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    return v.strip()


def _env_int(name: str, default: int | None) -> int | None:
    v = _env(name)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError as e:
        raise RuntimeError(f"{name} must be an integer, got {v!r}") from e


def _env_float(name: str, default: float) -> float:
    v = _env(name)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError as e:
        raise RuntimeError(f"{name} must be a number, got {v!r}") from e


@dataclass(frozen=True)
class Settings:
    runway_api_key: str | None = None
    public_base_url: str | None = None
    s3_bucket: str | None = None
    redis_url: str | None = None

    s3_endpoint: str | None = None
    s3_access_key: str | None = None
    s3_secret: str | None = None
    s3_region: str = "auto"

    runway_api_base: str = DEFAULT_RUNWAY_API_BASE
    runway_api_version: str = DEFAULT_RUNWAY_API_VERSION
    runway_model: str = DEFAULT_RUNWAY_MODEL
    default_ratio: str = DEFAULT_RATIO
    default_duration: int = DEFAULT_DURATION

    task_key_prefix: str = "task:"
    task_ttl_seconds: int | None = None

    connect_timeout: float = 10.0
    read_timeout: float = 300.0
    write_timeout: float = 300.0
    pool_timeout: float = 10.0

    cors_allow_origin: str = "*"

    @property
    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.write_timeout,
            pool=self.pool_timeout,
        )


def _strip_slash(url: str | None) -> str | None:
    if not url:
        return url
    return url.rstrip("/")


def load_settings(env_file: str | None = None) -> Settings:
    """
    Read settings from the process environment.

    A `.env` file is loaded first (without overriding variables that are
    already set), so local runs and containers share one code path.
    """
    load_dotenv(env_file)

    return Settings(
        runway_api_key=_env("RUNWAYML_API_KEY"),
        public_base_url=_strip_slash(_env("PUBLIC_BASE_URL")),
        s3_bucket=_env("S3_BUCKET"),
        redis_url=_env("REDIS_URL"),
        s3_endpoint=_env("S3_ENDPOINT"),
        s3_access_key=_env("S3_ACCESS_KEY"),
        s3_secret=_env("S3_SECRET"),
        s3_region=_env("S3_REGION", "auto"),
        runway_api_base=_strip_slash(_env("RUNWAY_API_BASE", DEFAULT_RUNWAY_API_BASE)),
        runway_api_version=_env("RUNWAY_API_VERSION", DEFAULT_RUNWAY_API_VERSION),
        runway_model=_env("RUNWAY_MODEL", DEFAULT_RUNWAY_MODEL),
        default_ratio=_env("DEFAULT_RATIO", DEFAULT_RATIO),
        default_duration=_env_int("DEFAULT_DURATION", DEFAULT_DURATION),
        task_key_prefix=_env("TASK_KEY_PREFIX", "task:"),
        task_ttl_seconds=_env_int("TASK_TTL_SECONDS", None),
        # Keep conservative defaults; generation downloads can be large.
        connect_timeout=_env_float("RUNWAY_CONNECT_TIMEOUT", 10.0),
        read_timeout=_env_float("RUNWAY_READ_TIMEOUT", 300.0),
        write_timeout=_env_float("RUNWAY_WRITE_TIMEOUT", 300.0),
        pool_timeout=_env_float("RUNWAY_POOL_TIMEOUT", 10.0),
        cors_allow_origin=_env("CORS_ALLOW_ORIGIN", "*"),
    )


def missing_settings(
    settings: Settings,
    object_store: Optional[Any] = None,
    task_store: Optional[Any] = None,
) -> list[str]:
    """Names of the required values that are absent, in a stable order."""
    missing: list[str] = []
    if not settings.runway_api_key:
        missing.append("RUNWAYML_API_KEY")
    if not settings.public_base_url:
        missing.append("PUBLIC_BASE_URL")
    if object_store is None:
        missing.append("S3_BUCKET")
    if task_store is None:
        missing.append("REDIS_URL")
    return missing
