"""
Rubrik Review Desk — Cover Image Storage
========================================
Opaque blob store for article cover images (MinIO / S3 compatible).
The lifecycle core only receives a stable path and public URL back.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import uuid4

from minio import Minio

from app.core.config import Settings, get_settings
from app.core.logging import get_logger
from app.domain.articles.errors import StorageFailure

logger = get_logger("services.blob_storage")

IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}

_DATA_URL_RE = re.compile(r"^data:(image/(?:png|jpe?g|gif|webp));base64,", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class StoredBlob:
    path: str
    url: str


@dataclass(frozen=True, slots=True)
class ImagePayload:
    data: bytes
    content_type: str

    @property
    def extension(self) -> str:
        return IMAGE_CONTENT_TYPES[self.content_type]


class BlobStore(Protocol):
    async def store_image(self, image: ImagePayload) -> StoredBlob: ...

    def public_url(self, path: str) -> str: ...


def image_content_type(content_type: str | None) -> str | None:
    value = (content_type or "").split(";")[0].strip().lower()
    return value if value in IMAGE_CONTENT_TYPES else None


def decode_image_data_url(data_url: str) -> ImagePayload:
    """Decode `data:image/<png|jpeg|gif|webp>;base64,...` into raw bytes."""
    match = _DATA_URL_RE.match(data_url or "")
    if not match:
        raise ValueError("unsupported_data_url")
    content_type = match.group(1).lower()
    try:
        data = base64.b64decode(data_url[match.end():], validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("invalid_base64_payload") from exc
    if not data:
        raise ValueError("empty_image_payload")
    return ImagePayload(data=data, content_type=content_type)


def cover_object_name(extension: str, *, now: datetime | None = None) -> str:
    stamp = now or datetime.utcnow()
    return f"articles/covers/{stamp:%Y/%m}/{uuid4()}.{extension}"


class MinioBlobStore:
    def __init__(self, settings: Settings | None = None, client: Minio | None = None) -> None:
        self._settings = settings or get_settings()
        self._client = client
        self._bucket_ready = False

    def _get_client(self) -> Minio:
        if self._client is None:
            self._client = Minio(
                endpoint=self._settings.minio_endpoint,
                access_key=self._settings.minio_access_key,
                secret_key=self._settings.minio_secret_key,
                secure=self._settings.minio_use_ssl,
            )
        return self._client

    def _put(self, object_name: str, image: ImagePayload) -> None:
        client = self._get_client()
        bucket = self._settings.minio_bucket
        if not self._bucket_ready:
            if not client.bucket_exists(bucket_name=bucket):
                client.make_bucket(bucket_name=bucket)
            self._bucket_ready = True
        client.put_object(
            bucket_name=bucket,
            object_name=object_name,
            data=io.BytesIO(image.data),
            length=len(image.data),
            content_type=image.content_type,
        )

    async def store_image(self, image: ImagePayload) -> StoredBlob:
        object_name = cover_object_name(image.extension)
        try:
            await asyncio.to_thread(self._put, object_name, image)
        except Exception as exc:  # noqa: BLE001
            logger.error("blob_store_put_failed", object_name=object_name, error=str(exc.__class__.__name__))
            raise StorageFailure(
                "Cover image could not be stored",
                details={"object_name": object_name},
            ) from exc
        logger.info("blob_store_put", object_name=object_name, size=len(image.data))
        return StoredBlob(path=object_name, url=self.public_url(object_name))

    def public_url(self, path: str) -> str:
        return f"{self._settings.blob_public_base_url}/{path.lstrip('/')}"


blob_store = MinioBlobStore()
