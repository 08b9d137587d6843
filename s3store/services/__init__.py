from .base import SerializationError, ServiceError
from .envelope import ResponseEnvelope
from .json_store import JsonDocumentStore
from .listing import ListingCursor, ListingPage, ObjectSummary, PageFetcher
from .maintenance import purge_prefix
from .object_store import ObjectStoreClient, WriteResult
from .tokens import VersionToken

__all__ = [
    "JsonDocumentStore",
    "ListingCursor",
    "ListingPage",
    "ObjectStoreClient",
    "ObjectSummary",
    "PageFetcher",
    "ResponseEnvelope",
    "SerializationError",
    "ServiceError",
    "VersionToken",
    "WriteResult",
    "purge_prefix",
]
