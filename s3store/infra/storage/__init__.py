"""Object storage transport layer.

This module provides a protocol-based abstraction over S3-compatible storage,
exposing only the conditional primitives the versioned store needs.
"""

from .client import (
    AlreadyExistsError,
    GetResult,
    ListedObject,
    ListResult,
    NotFoundError,
    PreconditionFailedError,
    PutResult,
    StorageError,
    StorageTransport,
    TransportError,
    UnsupportedOperationError,
)

__all__ = [
    "AlreadyExistsError",
    "GetResult",
    "ListedObject",
    "ListResult",
    "NotFoundError",
    "PreconditionFailedError",
    "PutResult",
    "StorageError",
    "StorageTransport",
    "TransportError",
    "UnsupportedOperationError",
]
