from __future__ import annotations

import logging
from typing import IO, Optional, Union

import boto3

from .config import Settings

logger = logging.getLogger("video-relay.storage")

Body = Union[bytes, IO[bytes]]


def get_s3_client(settings: Settings):
    """Create an S3 client for the configured (S3-compatible) endpoint."""
    return boto3.client(
        service_name="s3",
        endpoint_url=settings.s3_endpoint,
        aws_access_key_id=settings.s3_access_key,
        aws_secret_access_key=settings.s3_secret,
        region_name=settings.s3_region,
    )


class S3ObjectStore:
    """Bucket wrapper: write objects, compute their public URLs."""

    def __init__(self, client, bucket: str, public_base_url: str | None) -> None:
        self.client = client
        self.bucket = bucket
        self.public_base_url = (public_base_url or "").rstrip("/")

    def put(self, key: str, body: Body, content_type: str) -> None:
        logger.info(f"Uploading s3://{self.bucket}/{key} ({content_type})")
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=body,
            ContentType=content_type,
        )

    def public_url(self, key: str) -> str:
        return public_url(self.public_base_url, key)


def public_url(base_url: str, key: str) -> str:
    return f"{base_url.rstrip('/')}/{key}"


def build_object_store(settings: Settings) -> Optional[S3ObjectStore]:
    if not settings.s3_bucket:
        return None
    return S3ObjectStore(get_s3_client(settings), settings.s3_bucket, settings.public_base_url)
