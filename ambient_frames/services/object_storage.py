"""
Object storage for event photo originals.
Talks to a Backblaze B2 bucket through its S3-compatible API with boto3.
"""
import asyncio
import logging
import re
import time
from typing import Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ambient_frames.config import settings

logger = logging.getLogger(__name__)

_s3_client = None


class StorageNotConfiguredError(RuntimeError):
    """Raised when B2 credentials, bucket or endpoint are missing."""


class StorageUploadError(RuntimeError):
    """Raised when the bucket rejects an upload."""


def region_from_endpoint(endpoint: str) -> str:
    """
    Extract the region from a B2 S3 endpoint.
    e.g. https://s3.us-west-004.backblazeb2.com -> us-west-004
    """
    match = re.search(r"s3\.([\w-]+)\.backblazeb2\.com", endpoint or "")
    return match.group(1) if match else "us-east-1"


def validate_storage_config() -> bool:
    missing = [
        name for name in ("B2_APPLICATION_KEY_ID", "B2_APPLICATION_KEY", "B2_BUCKET", "B2_S3_ENDPOINT")
        if not getattr(settings, name)
    ]
    if missing:
        logger.warning(f"Object storage not configured, missing: {', '.join(missing)}")
        return False
    return True


def get_s3_client():
    """Build (once) the S3 client for the configured B2 endpoint."""
    global _s3_client

    if _s3_client is not None:
        return _s3_client

    if not validate_storage_config():
        raise StorageNotConfiguredError("Object storage credentials are not configured")

    _s3_client = boto3.client(
        "s3",
        endpoint_url=settings.B2_S3_ENDPOINT,
        region_name=region_from_endpoint(settings.B2_S3_ENDPOINT),
        aws_access_key_id=settings.B2_APPLICATION_KEY_ID,
        aws_secret_access_key=settings.B2_APPLICATION_KEY,
        config=BotoConfig(signature_version="s3v4", s3={"addressing_style": "path"}),
    )
    logger.info(f"Object storage client created for bucket {settings.B2_BUCKET}")
    return _s3_client


def public_url(key: str) -> str:
    if settings.B2_PUBLIC_BASE_URL:
        return f"{settings.B2_PUBLIC_BASE_URL.rstrip('/')}/{key}"
    return f"{settings.B2_S3_ENDPOINT.rstrip('/')}/{settings.B2_BUCKET}/{key}"


def event_photo_key(event_id: str, filename: str, timestamp_ms: Optional[int] = None) -> str:
    """Key layout: events/<eventId>/<epoch-ms>_<filename with whitespace as underscores>."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    safe_name = re.sub(r"\s+", "_", filename)
    return f"events/{event_id}/{timestamp_ms}_{safe_name}"


def scan_key(filename: str, timestamp_ms: Optional[int] = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"scans/{timestamp_ms}_{filename}"


async def put_object(key: str, body: bytes, content_type: Optional[str] = None) -> str:
    """
    Upload bytes to the bucket.

    Returns:
        str: Public URL of the stored object

    Raises:
        StorageNotConfiguredError: If credentials are missing
        StorageUploadError: If the upload is rejected
    """
    client = get_s3_client()
    extra = {"ContentType": content_type} if content_type else {}

    try:
        await asyncio.to_thread(
            client.put_object,
            Bucket=settings.B2_BUCKET,
            Key=key,
            Body=body,
            **extra
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"Object storage upload failed for {key}: {str(e)}", exc_info=True)
        raise StorageUploadError(f"Upload failed: {str(e)}") from e

    logger.info(f"Stored object {key} ({len(body):,} bytes)")
    return public_url(key)
