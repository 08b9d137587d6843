"""Optimistic-concurrency document access for S3-compatible object storage."""

from __future__ import annotations

from s3store.common.config import Settings, get_settings
from s3store.infra.storage import (
    AlreadyExistsError,
    NotFoundError,
    PreconditionFailedError,
    StorageError,
    StorageTransport,
    TransportError,
    UnsupportedOperationError,
)
from s3store.services import (
    JsonDocumentStore,
    ListingCursor,
    ListingPage,
    ObjectStoreClient,
    ObjectSummary,
    ResponseEnvelope,
    SerializationError,
    VersionToken,
    WriteResult,
    purge_prefix,
)


def create_s3_store(
    bucket: str | None = None,
    *,
    transport: StorageTransport | None = None,
    settings: Settings | None = None,
) -> ObjectStoreClient:
    """Build an :class:`ObjectStoreClient` for ``bucket``.

    The bucket falls back to ``S3_BUCKET`` and the transport to a boto3 client
    configured from settings.
    """
    settings = settings or get_settings()
    bucket = bucket or settings.S3_BUCKET
    if not bucket:
        raise ValueError("A bucket name or S3_BUCKET is required")
    if transport is None:
        from s3store.infra.storage.s3_client import S3Transport

        transport = S3Transport(settings=settings)
    return ObjectStoreClient(bucket, transport=transport, settings=settings)


def create_json_store(
    bucket: str | None = None,
    *,
    transport: StorageTransport | None = None,
    settings: Settings | None = None,
) -> JsonDocumentStore:
    return JsonDocumentStore(
        create_s3_store(bucket, transport=transport, settings=settings)
    )


__all__ = [
    "AlreadyExistsError",
    "JsonDocumentStore",
    "ListingCursor",
    "ListingPage",
    "NotFoundError",
    "ObjectStoreClient",
    "ObjectSummary",
    "PreconditionFailedError",
    "ResponseEnvelope",
    "SerializationError",
    "Settings",
    "StorageError",
    "StorageTransport",
    "TransportError",
    "UnsupportedOperationError",
    "VersionToken",
    "WriteResult",
    "create_json_store",
    "create_s3_store",
    "get_settings",
    "purge_prefix",
]
