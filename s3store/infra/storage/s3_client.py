"""S3-compatible storage transport implementation.

This module provides the blocking transport used by the versioned store. It
works with AWS S3, MinIO, and other S3-compatible services that honour the
``If-Match`` and ``If-None-Match`` request headers.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from s3store.infra.storage.client import (
    GetResult,
    ListedObject,
    ListResult,
    NotFoundError,
    PreconditionFailedError,
    PutResult,
    StorageError,
    TransportError,
)

if TYPE_CHECKING:
    from s3store.common.config import Settings

logger = logging.getLogger("s3store.transport")

NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})
PRECONDITION_CODES = frozenset(
    {"PreconditionFailed", "412", "ConditionalRequestConflict", "409"}
)
# DeleteObjects caps a single request at 1000 keys
MAX_DELETE_BATCH = 1000


def _error_code(exc: ClientError) -> str:
    error = exc.response.get("Error") or {}
    code = str(error.get("Code") or "")
    if code:
        return code
    status = (exc.response.get("ResponseMetadata") or {}).get("HTTPStatusCode")
    return str(status or "")


def _translate(exc: Exception, action: str, key: str) -> StorageError:
    if isinstance(exc, ClientError):
        code = _error_code(exc)
        if code in NOT_FOUND_CODES:
            return NotFoundError(f"Object not found: {key}")
        if code in PRECONDITION_CODES:
            return PreconditionFailedError(f"Precondition failed for {key}: {code}")
        logger.warning("s3_client_error action=%s key=%s code=%s", action, key, code)
    else:
        logger.warning("s3_transport_error action=%s key=%s error=%s", action, key, exc)
    return TransportError(f"Failed to {action} {key}: {exc}")


class S3Transport:
    """S3-compatible storage transport.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations.
    """

    def __init__(self, *, settings: "Settings") -> None:
        """Initialize the S3 client with configuration from settings.

        Args:
            settings: Settings containing S3 configuration.
        """
        self._settings = settings
        self._client = self._build_client(settings)
        self.supports_conditional_delete = bool(settings.S3_CONDITIONAL_DELETE)

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        import boto3
        from botocore.config import Config

        config = Config(
            s3={"addressing_style": settings.S3_ADDRESSING_STYLE},
            connect_timeout=settings.S3_CONNECT_TIMEOUT,
            read_timeout=settings.S3_READ_TIMEOUT,
            retries={"max_attempts": settings.S3_MAX_ATTEMPTS, "mode": "standard"},
        )

        return boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            use_ssl=bool(settings.S3_USE_SSL),
            config=config,
        )

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
        """Write an object, optionally guarded by a precondition."""
        params: dict[str, Any] = {
            "Bucket": bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if if_match is not None:
            params["IfMatch"] = if_match
        if if_none_match is not None:
            params["IfNoneMatch"] = if_none_match

        try:
            response = self._client.put_object(**params)
        except (ClientError, BotoCoreError) as exc:
            raise _translate(exc, "put object", key) from exc

        etag = response.get("ETag")
        if not etag:
            raise TransportError("S3 response missing ETag")
        return PutResult(etag=str(etag), response=response)

    def get_object(
        self,
        *,
        bucket: str,
        key: str,
        if_match: str | None = None,
    ) -> GetResult:
        """Read an object and buffer its body."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": key}
        if if_match is not None:
            params["IfMatch"] = if_match

        try:
            response = self._client.get_object(**params)
            stream = response["Body"]
            try:
                body = stream.read()
            finally:
                stream.close()
        except (ClientError, BotoCoreError) as exc:
            raise _translate(exc, "get object", key) from exc

        etag = response.get("ETag")
        if not etag:
            raise TransportError("S3 response missing ETag")
        return GetResult(
            body=body,
            etag=str(etag),
            content_type=response.get("ContentType"),
            response={k: v for k, v in response.items() if k != "Body"},
        )

    def delete_object(
        self,
        *,
        bucket: str,
        key: str,
        if_match: str | None = None,
    ) -> None:
        """Delete an object, optionally guarded by an ETag."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": key}
        if if_match is not None:
            params["IfMatch"] = if_match

        try:
            self._client.delete_object(**params)
        except (ClientError, BotoCoreError) as exc:
            raise _translate(exc, "delete object", key) from exc

    def delete_objects(self, *, bucket: str, keys: Sequence[str]) -> int:
        """Delete keys in batches and return the number removed."""
        removed = 0
        for start in range(0, len(keys), MAX_DELETE_BATCH):
            batch = keys[start : start + MAX_DELETE_BATCH]
            try:
                response = self._client.delete_objects(
                    Bucket=bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            except (ClientError, BotoCoreError) as exc:
                raise _translate(exc, "delete objects under", batch[0]) from exc

            errors = response.get("Errors") or []
            failed = [e for e in errors if e.get("Code") not in NOT_FOUND_CODES]
            if failed:
                first = failed[0]
                raise TransportError(
                    f"Failed to delete {len(failed)} object(s), "
                    f"first {first.get('Key')}: {first.get('Code')}"
                )
            removed += len(batch)
        return removed

    def list_objects(
        self,
        *,
        bucket: str,
        prefix: str,
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> ListResult:
        """Fetch one page of keys under ``prefix``."""
        params: dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        if continuation_token:
            params["ContinuationToken"] = continuation_token
        if max_keys is not None:
            params["MaxKeys"] = int(max_keys)

        try:
            response = self._client.list_objects_v2(**params)
        except (ClientError, BotoCoreError) as exc:
            raise _translate(exc, "list objects under", prefix or "/") from exc

        objects = tuple(
            ListedObject(
                key=str(item["Key"]),
                size=int(item.get("Size") or 0),
                etag=item.get("ETag"),
                last_modified=item.get("LastModified"),
            )
            for item in response.get("Contents") or []
        )
        is_truncated = bool(response.get("IsTruncated"))
        next_token = response.get("NextContinuationToken") if is_truncated else None
        return ListResult(
            objects=objects,
            is_truncated=is_truncated,
            next_token=next_token,
        )
