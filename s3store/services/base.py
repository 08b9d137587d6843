from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, TypeVar

from s3store.common.config import Settings
from s3store.infra.observability.metrics import LATENCY, OPERATIONS
from s3store.infra.storage.client import (
    NotFoundError,
    PreconditionFailedError,
    StorageError,
    StorageTransport,
)

T = TypeVar("T")

logger = logging.getLogger("s3store.store")


class ServiceError(Exception):
    """Base class for store level exceptions that are not storage faults."""


class SerializationError(ServiceError, ValueError):
    """Raised when a value cannot be encoded to or decoded from JSON."""


def _outcome(exc: BaseException | None) -> str:
    if exc is None:
        return "ok"
    if isinstance(exc, NotFoundError):
        return "not_found"
    if isinstance(exc, PreconditionFailedError):
        return "conflict"
    return "error"


class BaseService:
    """Provides guard rails and helpers shared by the store services."""

    def __init__(self, transport: StorageTransport, *, settings: Settings):
        self._transport = transport
        self._settings = settings

    @property
    def transport(self) -> StorageTransport:
        return self._transport

    @property
    def settings(self) -> Settings:
        return self._settings

    def _ensure_key(self, key: str) -> str:
        if not isinstance(key, str) or not key:
            raise ValueError("key must be a non-empty string")
        return key

    async def _call(
        self, operation: str, func: Callable[..., T], /, **kwargs: Any
    ) -> T:
        """Run a blocking transport call off the event loop and record it."""
        start = time.perf_counter()
        error: BaseException | None = None
        try:
            return await asyncio.to_thread(func, **kwargs)
        except StorageError as exc:
            error = exc
            if isinstance(exc, (NotFoundError, PreconditionFailedError)):
                logger.info(
                    "store_%s_rejected key=%s reason=%s",
                    operation,
                    kwargs.get("key", kwargs.get("prefix")),
                    type(exc).__name__,
                )
            raise
        except Exception as exc:
            error = exc
            raise
        finally:
            if self._settings.ENABLE_METRICS:
                OPERATIONS.labels(operation=operation, outcome=_outcome(error)).inc()
                LATENCY.labels(operation=operation).observe(
                    time.perf_counter() - start
                )
