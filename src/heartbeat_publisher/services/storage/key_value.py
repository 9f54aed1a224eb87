"""DynamoDB table helpers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any, TypeVar

import boto3

from ...core.errors import ChunkedWriteFailedError

logger = logging.getLogger(__name__)

BATCH_WRITE_LIMIT = 25

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive groups of at most ``size`` items, preserving order."""

    if size <= 0:
        msg = "size must be positive"
        raise ValueError(msg)
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


class DynamoTable:
    """Item operations against one table using native Python values.

    The default client is the boto3 resource-level client, which handles
    DynamoDB attribute (de)serialisation.
    """

    def __init__(
        self,
        table_name: str,
        *,
        client: Any | None = None,
        region_name: str | None = None,
    ) -> None:
        self._table_name = table_name
        self._client = client or boto3.resource("dynamodb", region_name=region_name).meta.client

    @property
    def table_name(self) -> str:
        return self._table_name

    async def put_item(self, item: Mapping[str, Any]) -> None:
        await asyncio.to_thread(self._client.put_item, TableName=self._table_name, Item=dict(item))

    async def get_item(self, key: Mapping[str, Any]) -> dict[str, Any] | None:
        response = await asyncio.to_thread(
            self._client.get_item, TableName=self._table_name, Key=dict(key)
        )
        return response.get("Item")

    async def batch_put_items(self, items: Sequence[Mapping[str, Any]]) -> int:
        """Write ``items`` in groups of 25; returns the number of calls issued.

        Groups are written in order and are not atomic with each other, so a
        failure leaves every earlier group in place.
        """

        calls = 0
        for index, batch in enumerate(chunked(items, BATCH_WRITE_LIMIT)):
            request = {
                self._table_name: [{"PutRequest": {"Item": dict(item)}} for item in batch]
            }
            try:
                response = await asyncio.to_thread(self._client.batch_write_item, RequestItems=request)
            except Exception as exc:
                logger.exception(
                    "Batch write to %s failed at group %s",
                    self._table_name,
                    index,
                    extra={"failed_group_index": index},
                )
                raise ChunkedWriteFailedError(exc, index) from exc
            calls += 1

            unprocessed = (response or {}).get("UnprocessedItems") or {}
            pending = len(unprocessed.get(self._table_name, []))
            if pending:
                logger.warning(
                    "Batch write to %s left %s unprocessed items in group %s",
                    self._table_name,
                    pending,
                    index,
                )
        return calls


__all__ = ["BATCH_WRITE_LIMIT", "DynamoTable", "chunked"]
