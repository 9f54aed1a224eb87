"""Object and key-value storage wrappers."""

from .key_value import BATCH_WRITE_LIMIT, DynamoTable, chunked
from .object_store import ObjectGetResult, ObjectMetadata, S3ObjectStore

__all__ = [
    "BATCH_WRITE_LIMIT",
    "DynamoTable",
    "ObjectGetResult",
    "ObjectMetadata",
    "S3ObjectStore",
    "chunked",
]
