"""S3 object store helpers with cache-age lookups."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import boto3
from botocore.exceptions import ClientError

from ...utils.time import to_epoch_millis, utc_now

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})


def _is_not_found(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") in NOT_FOUND_CODES


@dataclass(frozen=True, slots=True)
class ObjectMetadata:
    """Metadata about a stored object."""

    key: str
    last_modified: datetime | None
    content_length: int | None
    content_type: str | None
    metadata: dict[str, str] | None
    etag: str | None

    @classmethod
    def from_response(cls, key: str, response: dict[str, Any]) -> "ObjectMetadata":
        return cls(
            key=key,
            last_modified=response.get("LastModified"),
            content_length=response.get("ContentLength"),
            content_type=response.get("ContentType"),
            metadata=response.get("Metadata"),
            etag=response.get("ETag"),
        )


@dataclass(frozen=True, slots=True)
class ObjectGetResult:
    body: str
    metadata: ObjectMetadata


class S3ObjectStore:
    """High-level S3 operations for caching use cases."""

    def __init__(
        self,
        bucket_name: str,
        *,
        client: Any | None = None,
        region_name: str | None = None,
    ) -> None:
        self._bucket_name = bucket_name
        self._client = client or boto3.client("s3", region_name=region_name)

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    @property
    def client(self) -> Any:
        return self._client

    async def put_object(
        self,
        key: str,
        body: str,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        params: dict[str, Any] = {
            "Bucket": self._bucket_name,
            "Key": key,
            "Body": body.encode("utf-8"),
        }
        if content_type is not None:
            params["ContentType"] = content_type
        if metadata is not None:
            params["Metadata"] = metadata

        await asyncio.to_thread(self._client.put_object, **params)
        logger.debug("Stored s3://%s/%s", self._bucket_name, key)

    async def get_object(self, key: str) -> ObjectGetResult | None:
        """Return the body and metadata of ``key``, or ``None`` if it does not exist."""

        try:
            response = await asyncio.to_thread(
                self._client.get_object, Bucket=self._bucket_name, Key=key
            )
        except ClientError as exc:
            if _is_not_found(exc):
                return None
            raise

        stream = response.get("Body")
        if stream is None:
            return None
        raw = await asyncio.to_thread(stream.read)
        body = raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)
        return ObjectGetResult(body=body, metadata=ObjectMetadata.from_response(key, response))

    async def get_object_metadata(self, key: str) -> ObjectMetadata | None:
        """Return metadata without downloading the body, or ``None`` if missing."""

        try:
            response = await asyncio.to_thread(
                self._client.head_object, Bucket=self._bucket_name, Key=key
            )
        except ClientError as exc:
            if _is_not_found(exc):
                return None
            raise
        return ObjectMetadata.from_response(key, response)

    async def get_object_age_ms(self, key: str) -> int | None:
        """Return the object's age in milliseconds; callers decide what is stale."""

        metadata = await self.get_object_metadata(key)
        if metadata is None or metadata.last_modified is None:
            return None

        now_ms = to_epoch_millis(utc_now())
        return now_ms - to_epoch_millis(metadata.last_modified)

    async def object_exists(self, key: str) -> bool:
        return await self.get_object_metadata(key) is not None


__all__ = ["ObjectGetResult", "ObjectMetadata", "S3ObjectStore"]
