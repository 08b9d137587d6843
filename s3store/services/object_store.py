"""Conditional create/update/get/delete over raw object bodies.

Every operation is a single round trip to the storage service. Concurrency
safety comes entirely from the service evaluating ``If-None-Match`` and
``If-Match`` atomically; this client holds no per-key state between calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from s3store.common.config import Settings, get_settings
from s3store.infra.storage.client import (
    AlreadyExistsError,
    ListResult,
    PreconditionFailedError,
    StorageTransport,
    UnsupportedOperationError,
)
from s3store.services.base import BaseService, logger
from s3store.services.envelope import ResponseEnvelope
from s3store.services.listing import ListingCursor
from s3store.services.tokens import VersionToken

Body = bytes | bytearray | memoryview | str


@dataclass(frozen=True, slots=True)
class WriteResult:
    """New version of a key plus the raw service response that produced it."""

    version: VersionToken
    response: Mapping[str, Any] = field(default_factory=dict)


def _to_bytes(body: Body) -> bytes:
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    raise TypeError(f"body must be bytes or str, not {type(body).__name__}")


class ObjectStoreClient(BaseService):
    """Versioned object access for a single bucket.

    Reads return a :class:`ResponseEnvelope`; writes return a
    :class:`WriteResult` whose ``version`` is the precondition for the next
    conditional call on the same key.
    """

    def __init__(
        self,
        bucket: str,
        *,
        transport: StorageTransport,
        settings: Settings | None = None,
    ) -> None:
        if not bucket:
            raise ValueError("bucket is required")
        super().__init__(transport, settings=settings or get_settings())
        self._bucket = bucket

    @property
    def bucket(self) -> str:
        return self._bucket

    def _content_type(self, content_type: str | None) -> str:
        return content_type or self.settings.DEFAULT_CONTENT_TYPE

    async def create_object(
        self,
        key: str,
        body: Body,
        content_type: str | None = None,
    ) -> WriteResult:
        """Write ``body`` under ``key`` only if the key has no current version.

        Raises:
            AlreadyExistsError: If the key already exists.
        """
        key = self._ensure_key(key)
        try:
            result = await self._call(
                "create",
                self.transport.put_object,
                bucket=self._bucket,
                key=key,
                body=_to_bytes(body),
                content_type=self._content_type(content_type),
                if_none_match="*",
            )
        except PreconditionFailedError as exc:
            raise AlreadyExistsError(f"Object already exists: {key}") from exc
        logger.debug("store_create key=%s version=%s", key, result.etag)
        return WriteResult(version=VersionToken(result.etag), response=result.response)

    async def update_object_if_match(
        self,
        key: str,
        body: Body,
        version: VersionToken,
        content_type: str | None = None,
    ) -> WriteResult:
        """Replace ``key`` only if its current version equals ``version``.

        Raises:
            PreconditionFailedError: If the object changed since ``version``.
            NotFoundError: If the object was deleted.
        """
        key = self._ensure_key(key)
        result = await self._call(
            "update",
            self.transport.put_object,
            bucket=self._bucket,
            key=key,
            body=_to_bytes(body),
            content_type=self._content_type(content_type),
            if_match=version.value,
        )
        logger.debug(
            "store_update key=%s version=%s previous=%s", key, result.etag, version
        )
        return WriteResult(version=VersionToken(result.etag), response=result.response)

    async def get_object(self, key: str) -> ResponseEnvelope:
        """Read ``key`` unconditionally.

        Raises:
            NotFoundError: If the key is absent.
        """
        key = self._ensure_key(key)
        result = await self._call(
            "get", self.transport.get_object, bucket=self._bucket, key=key
        )
        return ResponseEnvelope.from_result(result)

    async def get_object_if_match(
        self, key: str, version: VersionToken
    ) -> ResponseEnvelope:
        """Read ``key`` only if its current version equals ``version``.

        Raises:
            NotFoundError: If the key is absent, regardless of ``version``.
            PreconditionFailedError: If the key exists under another version.
        """
        key = self._ensure_key(key)
        result = await self._call(
            "get_if_match",
            self.transport.get_object,
            bucket=self._bucket,
            key=key,
            if_match=version.value,
        )
        return ResponseEnvelope.from_result(result)

    async def delete_object_if_match(self, key: str, version: VersionToken) -> None:
        """Delete ``key`` only if its current version equals ``version``.

        Raises:
            UnsupportedOperationError: If the transport cannot enforce the
                precondition.
            NotFoundError: If the key is absent.
            PreconditionFailedError: If the key exists under another version.
        """
        key = self._ensure_key(key)
        if not getattr(self.transport, "supports_conditional_delete", False):
            raise UnsupportedOperationError(
                "Conditional delete is not supported by this storage transport"
            )
        await self._call(
            "delete_if_match",
            self.transport.delete_object,
            bucket=self._bucket,
            key=key,
            if_match=version.value,
        )
        logger.debug("store_delete key=%s version=%s", key, version)

    async def delete_object(self, key: str) -> None:
        """Delete ``key`` without a precondition."""
        key = self._ensure_key(key)
        await self._call(
            "delete", self.transport.delete_object, bucket=self._bucket, key=key
        )
        logger.debug("store_delete key=%s version=*", key)

    async def delete_objects(self, keys: list[str]) -> int:
        """Delete ``keys`` without preconditions and return how many were removed."""
        if not keys:
            return 0
        return await self._call(
            "delete_batch",
            self.transport.delete_objects,
            bucket=self._bucket,
            keys=[self._ensure_key(k) for k in keys],
        )

    def list(self, prefix: str = "", *, page_size: int | None = None) -> ListingCursor:
        """Return a cursor over the keys under ``prefix``. Nothing is fetched yet."""
        return ListingCursor(
            self.list_page,
            prefix,
            page_size=page_size if page_size is not None else self.settings.LIST_PAGE_SIZE,
        )

    async def list_page(
        self,
        prefix: str,
        *,
        continuation_token: str | None,
        max_keys: int | None,
    ) -> ListResult:
        """Fetch a single LIST page. Most callers want :meth:`list` instead."""
        return await self._call(
            "list",
            self.transport.list_objects,
            bucket=self._bucket,
            prefix=prefix,
            continuation_token=continuation_token,
            max_keys=max_keys,
        )
