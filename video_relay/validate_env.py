"""
Environment validation for the relay.

Intent:
- Fail fast with human-readable errors (missing API key, bucket, Redis URL).
- Make it obvious what to set locally (.env) vs in the container platform.

We keep this as a script AND an importable helper so:
- `python -m video_relay --check-env` can refuse to start a broken deployment
- operators can run `python -m video_relay.validate_env` to debug config
"""

from __future__ import annotations

import sys
import textwrap

from .config import Settings, load_settings, missing_settings

FIXES = {
    "RUNWAYML_API_KEY": "set RUNWAYML_API_KEY to a Runway developer API key",
    "PUBLIC_BASE_URL": "set PUBLIC_BASE_URL to the public URL of the bucket (e.g. https://cdn.example)",
    "S3_BUCKET": "set S3_BUCKET (plus S3_ENDPOINT/S3_ACCESS_KEY/S3_SECRET for R2 or Yandex)",
    "REDIS_URL": "set REDIS_URL, e.g. redis://localhost:6379/0",
}


def validate_env_or_raise(settings: Settings | None = None) -> Settings:
    if settings is None:
        settings = load_settings()

    # Store bindings exist exactly when their settings are present.
    missing = missing_settings(
        settings,
        object_store=settings.s3_bucket or None,
        task_store=settings.redis_url or None,
    )
    if missing:
        lines = "\n".join(f"- {name}: {FIXES[name]}" for name in missing)
        raise RuntimeError(f"Missing required environment variables:\n{lines}")
    return settings


def main(argv: list[str]) -> int:
    env_file = argv[1].strip() if len(argv) > 1 else None

    try:
        settings = validate_env_or_raise(load_settings(env_file))
    except Exception as e:
        msg = textwrap.dedent(
            """
            validate_env failed
            -------------------
            """
        ).strip()
        print(f"{msg}\n{e}", file=sys.stderr)
        return 1

    print(f"validate_env OK RUNWAY_API_BASE={settings.runway_api_base} S3_BUCKET={settings.s3_bucket}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
