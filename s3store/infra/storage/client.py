"""Storage transport protocol and data types.

This module defines the interface the versioned store expects from the
underlying object storage service: conditional PUT/GET/DELETE and prefix LIST.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Protocol, Sequence


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class NotFoundError(StorageError):
    """Raised when the requested key does not exist."""


class PreconditionFailedError(StorageError):
    """Raised when a version precondition does not match the current object."""


class AlreadyExistsError(StorageError):
    """Raised when a create-if-absent write targets an existing key."""


class TransportError(StorageError):
    """Raised for service or network faults that are not precondition related."""


class UnsupportedOperationError(StorageError):
    """Raised when the transport lacks a capability the caller asked for."""


@dataclass(frozen=True, slots=True)
class PutResult:
    """Outcome of a successful PUT."""

    etag: str
    response: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class GetResult:
    """Outcome of a successful GET, with the body already read."""

    body: bytes
    etag: str
    content_type: str | None
    response: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ListedObject:
    """One entry from a LIST response."""

    key: str
    size: int
    etag: str | None = None
    last_modified: datetime | None = None


@dataclass(frozen=True, slots=True)
class ListResult:
    """One page of a LIST response."""

    objects: tuple[ListedObject, ...]
    is_truncated: bool
    next_token: str | None = None


class StorageTransport(Protocol):
    """Protocol defining the primitives the versioned store builds on.

    Implementations are blocking; the store runs them off the event loop.
    """

    supports_conditional_delete: bool

    def put_object(
        self,
        *,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str,
        if_match: str | None = None,
        if_none_match: str | None = None,
    ) -> PutResult:
        """Write an object, optionally guarded by a precondition.

        Args:
            bucket: Target bucket name.
            key: Object key.
            body: Object content.
            content_type: MIME type of the object.
            if_match: Only write if the current ETag equals this value.
            if_none_match: ``"*"`` to only write if the key is absent.

        Returns:
            PutResult with the new ETag.

        Raises:
            NotFoundError: If ``if_match`` is given and the key is absent.
            PreconditionFailedError: If a precondition does not hold.
            TransportError: For any other failure.
        """
        ...

    def get_object(
        self,
        *,
        bucket: str,
        key: str,
        if_match: str | None = None,
    ) -> GetResult:
        """Read an object, optionally guarded by an ETag.

        Raises:
            NotFoundError: If the key is absent.
            PreconditionFailedError: If ``if_match`` differs from the current ETag.
            TransportError: For any other failure.
        """
        ...

    def delete_object(
        self,
        *,
        bucket: str,
        key: str,
        if_match: str | None = None,
    ) -> None:
        """Delete an object, optionally guarded by an ETag.

        Raises:
            NotFoundError: If ``if_match`` is given and the key is absent.
            PreconditionFailedError: If ``if_match`` differs from the current ETag.
            TransportError: For any other failure.
        """
        ...

    def delete_objects(self, *, bucket: str, keys: Sequence[str]) -> int:
        """Delete a batch of keys unconditionally and return how many were removed."""
        ...

    def list_objects(
        self,
        *,
        bucket: str,
        prefix: str,
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> ListResult:
        """Fetch one page of keys under ``prefix``.

        Raises:
            TransportError: If the operation fails.
        """
        ...
