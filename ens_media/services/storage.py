"""
S3-backed object store for media, one bucket per slot.
"""
import logging
from dataclasses import dataclass, field
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from ens_media.errors import StorageError
from ens_media.services.keys import MediaSlot
from ens_media.settings import settings

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


@dataclass
class StoredMedia:
    key: str
    size: int
    content_type: str | None
    body: Any = None  # botocore StreamingBody when fetched with get()


@dataclass
class PutResult:
    key: str
    etag: str | None = None


@dataclass
class ListPage:
    keys: list[str] = field(default_factory=list)
    truncated: bool = False
    cursor: str | None = None


def _is_missing(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") in _MISSING_CODES


class MediaStore:
    """Key-addressed blob store over a single bucket."""

    def __init__(self, client, bucket: str, page_size: int | None = None):
        self.client = client
        self.bucket = bucket
        self.page_size = page_size or settings.MEDIA_LIST_PAGE_SIZE

    async def get(self, key: str) -> StoredMedia | None:
        try:
            resp = await run_in_threadpool(
                self.client.get_object, Bucket=self.bucket, Key=key
            )
        except ClientError as exc:
            if _is_missing(exc):
                return None
            raise StorageError("Failed to read media") from exc
        except BotoCoreError as exc:
            raise StorageError("Failed to read media") from exc
        return StoredMedia(
            key=key,
            size=resp.get("ContentLength") or 0,
            content_type=resp.get("ContentType"),
            body=resp["Body"],
        )

    async def head(self, key: str) -> StoredMedia | None:
        try:
            resp = await run_in_threadpool(
                self.client.head_object, Bucket=self.bucket, Key=key
            )
        except ClientError as exc:
            if _is_missing(exc):
                return None
            raise StorageError("Failed to read media") from exc
        except BotoCoreError as exc:
            raise StorageError("Failed to read media") from exc
        return StoredMedia(
            key=key,
            size=resp.get("ContentLength") or 0,
            content_type=resp.get("ContentType"),
        )

    async def put(self, key: str, body, content_type: str | None) -> PutResult:
        """
        Store bytes or a readable stream at key, replacing any existing object.
        Streams go through the managed transfer so their length need not be known.
        """
        extra: dict[str, str] = {}
        if content_type:
            extra["ContentType"] = content_type
        try:
            if isinstance(body, (bytes, bytearray)):
                resp = await run_in_threadpool(
                    self.client.put_object,
                    Bucket=self.bucket,
                    Key=key,
                    Body=bytes(body),
                    **extra,
                )
                return PutResult(key=key, etag=resp.get("ETag"))
            await run_in_threadpool(
                self.client.upload_fileobj,
                body,
                self.bucket,
                key,
                ExtraArgs=extra or None,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError("Failed to write media") from exc
        return PutResult(key=key)

    async def list_prefix(self, prefix: str, cursor: str | None = None) -> ListPage:
        kwargs: dict[str, Any] = {
            "Bucket": self.bucket,
            "Prefix": prefix,
            "MaxKeys": self.page_size,
        }
        if cursor:
            kwargs["ContinuationToken"] = cursor
        try:
            resp = await run_in_threadpool(self.client.list_objects_v2, **kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError("Failed to list media") from exc
        return ListPage(
            keys=[obj["Key"] for obj in resp.get("Contents", [])],
            truncated=bool(resp.get("IsTruncated")),
            cursor=resp.get("NextContinuationToken"),
        )

    async def delete(self, keys: list[str]) -> None:
        if not keys:
            return
        try:
            resp = await run_in_threadpool(
                self.client.delete_objects,
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": k} for k in keys], "Quiet": True},
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError("Failed to delete media") from exc
        errors = resp.get("Errors") or []
        if errors:
            logger.error(f"Failed to delete {len(errors)} object(s) from {self.bucket}: {errors}")
            raise StorageError("Failed to delete media")


class MediaStorage:
    """The per-slot stores, avatar and header."""

    def __init__(self, stores: dict[MediaSlot, MediaStore]):
        self._stores = stores

    def for_slot(self, slot: MediaSlot) -> MediaStore:
        return self._stores[slot]


def get_s3_client():
    """
    Return a boto3 S3 client configured for media storage.
    Raises StorageError if required settings are missing.
    """
    if not settings.AVATAR_BUCKET or not settings.HEADER_BUCKET:
        raise StorageError("Media buckets are not configured on the server")
    return boto3.client(
        "s3",
        region_name=settings.S3_MEDIA_REGION,
        endpoint_url=settings.S3_ENDPOINT_URL,
    )


def build_media_storage(client) -> MediaStorage:
    return MediaStorage(
        {
            MediaSlot.AVATAR: MediaStore(client, settings.AVATAR_BUCKET),
            MediaSlot.HEADER: MediaStore(client, settings.HEADER_BUCKET),
        }
    )


async def get_media_storage() -> MediaStorage:
    return build_media_storage(get_s3_client())
