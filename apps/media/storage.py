"""S3-compatible object storage for the media library and uploaded documents."""

from __future__ import annotations

import logging
import mimetypes
import re
import time
from pathlib import PurePath
from typing import Any

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

SAFE_NAME_RE = re.compile(r"[^a-zA-Z0-9_-]")
SAFE_NAME_MAX_LENGTH = 80


class StorageError(Exception):
    """Raised when an object cannot be stored."""


def build_key(filename: str, now_ms: int | None = None) -> str:
    """Object key ``<epoch_ms>-<safe_name>.<ext>`` for an uploaded file."""
    path = PurePath(filename or "")
    ext = path.suffix.lstrip(".").lower() or "bin"
    stem = SAFE_NAME_RE.sub("_", path.stem)[:SAFE_NAME_MAX_LENGTH]
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{now_ms}-{stem}.{ext}"


def guess_content_type(filename: str, declared: str | None = None) -> str:
    if declared and declared != "application/octet-stream":
        return declared
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


def image_dimensions(file_obj, content_type: str) -> tuple[int | None, int | None]:
    """Width and height of an image upload; (None, None) for anything else."""
    if not content_type.startswith("image/"):
        return None, None
    try:
        file_obj.seek(0)
        with Image.open(file_obj) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"Cannot read image dimensions: {e}")
        return None, None
    finally:
        file_obj.seek(0)
    return width, height


class ObjectStorage:
    """Thin wrapper around one bucket of an S3-compatible service."""

    def __init__(self, bucket: str):
        self.bucket = bucket
        self.s3_client = boto3.client(
            "s3",
            endpoint_url=getattr(settings, "S3_ENDPOINT_URL", None),
            aws_access_key_id=getattr(settings, "S3_ACCESS_KEY", ""),
            aws_secret_access_key=getattr(settings, "S3_SECRET_KEY", ""),
            region_name=getattr(settings, "S3_REGION", "eu-south-1"),
            config=BotoConfig(
                signature_version="s3v4",
                s3={"addressing_style": getattr(settings, "S3_ADDRESSING_STYLE", "path")},
            ),
            use_ssl=getattr(settings, "S3_USE_SSL", True),
        )

    def public_url(self, key: str) -> str:
        base = (getattr(settings, "S3_PUBLIC_BASE", "") or "").rstrip("/")
        if not base:
            base = (getattr(settings, "S3_ENDPOINT_URL", "") or "").rstrip("/")
        return f"{base}/{self.bucket}/{key.lstrip('/')}"

    def upload(self, file_obj, key: str, content_type: str) -> str:
        """Store ``file_obj`` under ``key`` and return its public URL."""
        file_obj.seek(0)
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=file_obj.read(),
                ContentType=content_type,
                CacheControl="max-age=31536000",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Upload of {key} to {self.bucket} failed: {e}")
            raise StorageError(f"Caricamento non riuscito: {e}") from e
        logger.info(f"Uploaded {key} to bucket {self.bucket}")
        return self.public_url(key)

    def delete(self, key: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Eliminazione non riuscita: {e}") from e
        logger.info(f"Deleted {key} from bucket {self.bucket}")


def get_storage(bucket: str | None = None) -> ObjectStorage:
    return ObjectStorage(bucket or settings.MEDIA_BUCKET_NAME)


def configured_buckets() -> list[str]:
    return [settings.MEDIA_BUCKET_NAME, settings.DOCUMENTS_BUCKET_NAME]


def store_upload(file_obj, bucket: str | None = None) -> dict[str, Any]:
    """
    Upload a Django ``UploadedFile`` and describe the stored object.

    Returns:
        dict: key, url, bucket, file_name, file_size, mime_type, width, height
    """
    max_size = getattr(settings, "MEDIA_UPLOAD_MAX_SIZE", 20 * 1024 * 1024)
    size = getattr(file_obj, "size", None)
    if size is not None and size > max_size:
        raise StorageError(f"File troppo grande. Massimo {max_size / 1024 / 1024:.0f} MB")

    file_name = getattr(file_obj, "name", "") or "file"
    content_type = guess_content_type(file_name, getattr(file_obj, "content_type", None))
    width, height = image_dimensions(file_obj, content_type)

    storage = get_storage(bucket)
    key = build_key(file_name)
    url = storage.upload(file_obj, key, content_type)
    return {
        "key": key,
        "url": url,
        "bucket": storage.bucket,
        "file_name": PurePath(file_name).name,
        "file_size": size,
        "mime_type": content_type,
        "width": width,
        "height": height,
    }


def upload_document(file_obj) -> dict[str, Any]:
    """Upload to the documents bucket (contracts, agency papers, statements)."""
    stored = store_upload(file_obj, settings.DOCUMENTS_BUCKET_NAME)
    return {"url": stored["url"], "file_name": stored["file_name"], "key": stored["key"]}
