"""Run the relay with uvicorn: `python -m video_relay [--check-env]`."""

from __future__ import annotations

import argparse
import logging
import os

import uvicorn
from dotenv import load_dotenv

from .validate_env import validate_env_or_raise


def main() -> int:
    # .env may set HOST, PORT and LOG_LEVEL.
    load_dotenv()

    ap = argparse.ArgumentParser(prog="video_relay")
    ap.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    ap.add_argument("--port", type=int, default=int(os.getenv("PORT", "8080")))
    ap.add_argument(
        "--check-env",
        action="store_true",
        help="Refuse to start when required configuration is missing.",
    )
    args = ap.parse_args()

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.check_env:
        validate_env_or_raise()

    uvicorn.run("video_relay.app:app", host=args.host, port=args.port, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
