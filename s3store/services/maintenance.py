"""Namespace clearing used by test fixtures and teardown scripts."""

from __future__ import annotations

import logging

from s3store.services.object_store import ObjectStoreClient

logger = logging.getLogger("s3store.maintenance")


async def purge_prefix(store: ObjectStoreClient, prefix: str = "") -> int:
    """Remove every key under ``prefix`` and return how many were removed.

    Each listed page is removed with one unconditional batch delete. Keys that
    disappear between listing and deleting are treated as removed.
    """
    removed = 0
    cursor = store.list(prefix)
    async for page in cursor:
        removed += await store.delete_objects(page.keys)
        logger.info(
            "purge_page bucket=%s prefix=%s removed=%s",
            store.bucket,
            prefix or "*",
            len(page),
        )
    logger.info("purge_done bucket=%s prefix=%s total=%s", store.bucket, prefix or "*", removed)
    return removed
