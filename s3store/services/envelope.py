"""Read results returned by the object store."""

from __future__ import annotations

import io
import json
from typing import Any, Mapping

from s3store.infra.storage.client import GetResult
from s3store.services.base import SerializationError
from s3store.services.tokens import VersionToken


class ResponseEnvelope:
    """A single read result: buffered body, content type and version token.

    The body is read from the service once, when the object is fetched, so
    every decode method can be called any number of times and in any order.
    """

    __slots__ = ("_body", "_content_type", "_version", "_response")

    def __init__(
        self,
        body: bytes,
        *,
        version: VersionToken,
        content_type: str | None = None,
        response: Mapping[str, Any] | None = None,
    ) -> None:
        self._body = bytes(body)
        self._version = version
        self._content_type = content_type
        self._response = dict(response or {})

    @classmethod
    def from_result(cls, result: GetResult) -> "ResponseEnvelope":
        return cls(
            result.body,
            version=VersionToken(result.etag),
            content_type=result.content_type,
            response=result.response,
        )

    @property
    def version(self) -> VersionToken:
        return self._version

    @property
    def content_type(self) -> str | None:
        return self._content_type

    @property
    def response(self) -> Mapping[str, Any]:
        """Raw service response metadata, without the body stream."""
        return self._response

    def as_bytes(self) -> bytes:
        return self._body

    def as_text(self, encoding: str = "utf-8") -> str:
        return self._body.decode(encoding)

    def as_stream(self) -> io.BytesIO:
        """Return a fresh readable stream positioned at the start of the body."""
        return io.BytesIO(self._body)

    def as_json(self) -> Any:
        """Parse the body as JSON.

        Raises:
            SerializationError: If the body is not valid UTF-8 JSON.
        """
        try:
            return json.loads(self._body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError, RecursionError) as exc:
            raise SerializationError(f"Body is not valid JSON: {exc}") from exc

    def __len__(self) -> int:
        return len(self._body)

    def __repr__(self) -> str:
        return (
            f"ResponseEnvelope(version={self._version.value!r}, "
            f"content_type={self._content_type!r}, size={len(self._body)})"
        )
