from __future__ import annotations

import json
from typing import Any

from s3store.services.base import SerializationError
from s3store.services.listing import ListingCursor
from s3store.services.object_store import ObjectStoreClient
from s3store.services.tokens import VersionToken

JSON_CONTENT_TYPE = "application/json"


def encode_document(value: Any) -> bytes:
    try:
        return json.dumps(
            value, ensure_ascii=False, separators=(",", ":"), allow_nan=False
        ).encode("utf-8")
    except (TypeError, ValueError, RecursionError) as exc:
        raise SerializationError(f"Value is not JSON serializable: {exc}") from exc


class JsonDocumentStore:
    """JSON documents on top of :class:`ObjectStoreClient`.

    Writes return only the new :class:`VersionToken`. ``get_object`` returns
    ``(value, version)`` because the caller has no token yet, while
    ``get_object_if_match`` returns the value alone since the caller already
    holds the token it passed in.
    """

    def __init__(self, store: ObjectStoreClient) -> None:
        self._store = store

    @property
    def store(self) -> ObjectStoreClient:
        return self._store

    @property
    def bucket(self) -> str:
        return self._store.bucket

    async def create_object(self, key: str, value: Any) -> VersionToken:
        result = await self._store.create_object(
            key, encode_document(value), JSON_CONTENT_TYPE
        )
        return result.version

    async def update_object_if_match(
        self, key: str, value: Any, version: VersionToken
    ) -> VersionToken:
        result = await self._store.update_object_if_match(
            key, encode_document(value), version, JSON_CONTENT_TYPE
        )
        return result.version

    async def get_object_if_match(self, key: str, version: VersionToken) -> Any:
        envelope = await self._store.get_object_if_match(key, version)
        return envelope.as_json()

    async def get_object(self, key: str) -> tuple[Any, VersionToken]:
        envelope = await self._store.get_object(key)
        return envelope.as_json(), envelope.version

    async def delete_object_if_match(self, key: str, version: VersionToken) -> None:
        await self._store.delete_object_if_match(key, version)

    async def delete_object(self, key: str) -> None:
        await self._store.delete_object(key)

    def list(self, prefix: str = "", *, page_size: int | None = None) -> ListingCursor:
        return self._store.list(prefix, page_size=page_size)
