"""S3-compatible object storage (Cloudflare R2 by default) for booking documents"""

import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import (
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_SECRET_ACCESS_KEY,
    STORAGE_ENDPOINT_URL,
)
from .errors import internal

logger = logging.getLogger(__name__)

# Presigned URL expiration time (1 hour)
PRESIGNED_URL_EXPIRATION = 3600


def _endpoint_url() -> Optional[str]:
    if STORAGE_ENDPOINT_URL:
        return STORAGE_ENDPOINT_URL
    if R2_ACCOUNT_ID:
        return f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com"
    return None


def get_storage_client():
    """Create and return an S3 client for the document bucket."""
    return boto3.client(
        "s3",
        endpoint_url=_endpoint_url(),
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        region_name="auto",
        config=Config(signature_version="s3v4"),
    )


def upload_document(key: str, contents: bytes, content_type: str, filename: str) -> None:
    """Store a document privately under ``key``"""
    try:
        client = get_storage_client()
        client.put_object(
            Bucket=R2_BUCKET_NAME,
            Key=key,
            Body=contents,
            ContentType=content_type,
            ContentDisposition=f'attachment; filename="{filename}"',
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Upload failed for {key}: {e}")
        raise internal("Failed to store document") from e

    logger.info(f"✅ Uploaded document to storage: {key} ({len(contents)} bytes)")


def generate_presigned_url(key: str, expiration: int = PRESIGNED_URL_EXPIRATION) -> str:
    """Generate a presigned URL for downloading a private object."""
    try:
        url = get_storage_client().generate_presigned_url(
            "get_object",
            Params={"Bucket": R2_BUCKET_NAME, "Key": key},
            ExpiresIn=expiration,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Failed to generate presigned URL for key {key}: {e}")
        raise internal("Failed to generate document link") from e

    logger.info(f"✅ Generated presigned URL for key: {key}")
    return url
