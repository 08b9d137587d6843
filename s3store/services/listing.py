"""Page-at-a-time enumeration of keys under a prefix."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Protocol

from s3store.infra.storage.client import ListedObject, ListResult
from s3store.services.tokens import VersionToken


class PageFetcher(Protocol):
    """Fetches one LIST page; supplied by the store that owns the bucket."""

    def __call__(
        self,
        prefix: str,
        *,
        continuation_token: str | None,
        max_keys: int | None,
    ) -> Awaitable[ListResult]: ...


@dataclass(frozen=True, slots=True)
class ObjectSummary:
    """One key reported by a listing."""

    key: str
    size: int
    version: VersionToken | None = None
    last_modified: datetime | None = None

    @classmethod
    def from_listed(cls, item: ListedObject) -> "ObjectSummary":
        return cls(
            key=item.key,
            size=item.size,
            version=VersionToken(item.etag) if item.etag else None,
            last_modified=item.last_modified,
        )


@dataclass(frozen=True, slots=True)
class ListingPage:
    """One page of a listing with its continuation state."""

    objects: tuple[ObjectSummary, ...]
    is_truncated: bool
    next_token: str | None = None

    @property
    def keys(self) -> list[str]:
        return [item.key for item in self.objects]

    def __len__(self) -> int:
        return len(self.objects)


class ListingCursor:
    """Forward-only cursor over the pages of one prefix enumeration.

    Nothing is fetched until :meth:`next_page` is awaited, and each call
    fetches exactly one page. Once exhausted the cursor stays exhausted; start
    a new one from :meth:`ObjectStoreClient.list` to enumerate again.
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        prefix: str = "",
        *,
        page_size: int | None = None,
    ) -> None:
        if page_size is not None and page_size <= 0:
            raise ValueError("page_size must be a positive integer")
        self._fetch_page = fetch_page
        self._prefix = prefix or ""
        self._page_size = page_size
        self._token: str | None = None
        self._started = False
        self._exhausted = False

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    async def next_page(self) -> ListingPage | None:
        """Fetch the next page, or return None once the listing is complete."""
        if self._exhausted:
            return None
        if self._started and not self._token:
            self._exhausted = True
            return None

        self._started = True
        result = await self._fetch_page(
            self._prefix,
            continuation_token=self._token,
            max_keys=self._page_size,
        )
        page = ListingPage(
            objects=tuple(ObjectSummary.from_listed(item) for item in result.objects),
            is_truncated=result.is_truncated,
            next_token=result.next_token,
        )

        self._token = page.next_token if page.is_truncated else None
        if not page.objects:
            self._exhausted = True
            return None
        return page

    async def keys(self) -> list[str]:
        """Drain the remaining pages and return their keys in listing order."""
        collected: list[str] = []
        async for page in self:
            collected.extend(page.keys)
        return collected

    def __aiter__(self) -> "ListingCursor":
        return self

    async def __anext__(self) -> ListingPage:
        page = await self.next_page()
        if page is None:
            raise StopAsyncIteration
        return page
