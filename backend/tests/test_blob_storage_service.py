from __future__ import annotations

from datetime import datetime

import pytest

from app.core.config import get_settings
from app.domain.articles.errors import StorageFailure
from app.services.blob_storage_service import (
    ImagePayload,
    MinioBlobStore,
    cover_object_name,
    decode_image_data_url,
    image_content_type,
)


class _MinioStub:
    def __init__(self, *, bucket_exists: bool = False, fail: bool = False):
        self._bucket_exists = bucket_exists
        self._fail = fail
        self.made_buckets: list[str] = []
        self.puts: list[dict] = []

    def bucket_exists(self, bucket_name):
        return self._bucket_exists

    def make_bucket(self, bucket_name):
        self.made_buckets.append(bucket_name)
        self._bucket_exists = True

    def put_object(self, **kwargs):
        if self._fail:
            raise ConnectionError("minio unreachable")
        kwargs["payload"] = kwargs["data"].read()
        self.puts.append(kwargs)


def test_decode_image_data_url() -> None:
    payload = decode_image_data_url("data:image/jpeg;base64,/9j/4AAQ")
    assert payload.content_type == "image/jpeg"
    assert payload.extension == "jpg"
    assert payload.data.startswith(b"\xff\xd8")


@pytest.mark.parametrize(
    "value",
    ["", "https://example.test/a.png", "data:image/svg+xml;base64,PHN2Zz4=", "data:image/png;base64,!!!", "data:image/png;base64,"],
)
def test_decode_image_data_url_rejects_unsupported_payloads(value: str) -> None:
    with pytest.raises(ValueError):
        decode_image_data_url(value)


def test_image_content_type() -> None:
    assert image_content_type("image/PNG; charset=binary") == "image/png"
    assert image_content_type("application/pdf") is None
    assert image_content_type(None) is None


def test_cover_object_name_layout() -> None:
    name = cover_object_name("webp", now=datetime(2026, 3, 9))
    assert name.startswith("articles/covers/2026/03/")
    assert name.endswith(".webp")


@pytest.mark.asyncio
async def test_store_image_creates_bucket_and_returns_public_url() -> None:
    client = _MinioStub()
    settings = get_settings()
    store = MinioBlobStore(settings=settings, client=client)

    stored = await store.store_image(ImagePayload(data=b"png-bytes", content_type="image/png"))

    assert client.made_buckets == [settings.minio_bucket]
    assert client.puts[0]["object_name"] == stored.path
    assert client.puts[0]["payload"] == b"png-bytes"
    assert client.puts[0]["length"] == len(b"png-bytes")
    assert client.puts[0]["content_type"] == "image/png"
    assert stored.url == f"{settings.blob_public_base_url}/{stored.path}"

    await store.store_image(ImagePayload(data=b"again", content_type="image/gif"))
    assert client.made_buckets == [settings.minio_bucket]


@pytest.mark.asyncio
async def test_store_image_failure_is_storage_failure() -> None:
    store = MinioBlobStore(client=_MinioStub(bucket_exists=True, fail=True))

    with pytest.raises(StorageFailure) as exc_info:
        await store.store_image(ImagePayload(data=b"x", content_type="image/png"))

    assert exc_info.value.status_code == 502
    assert exc_info.value.details["object_name"].startswith("articles/covers/")


def test_public_url_strips_leading_slash() -> None:
    store = MinioBlobStore(client=_MinioStub())
    assert store.public_url("/articles/covers/a.png") == "https://cdn.example.test/covers/articles/covers/a.png"
