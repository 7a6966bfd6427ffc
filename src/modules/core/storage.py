"""Object storage collaborator for order documents.

Shipment proofs, signed reception proofs and non-conformity photos are
uploaded before a status transition and referenced by key afterwards.
``DjangoDocumentStorage`` adapts whichever Django storage backend is
registered under ``settings.DOCUMENTS_STORAGE_ALIAS``; the alias plays
the role of the bucket.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

import structlog
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import Storage, storages

logger = structlog.get_logger(__name__)


class IDocumentStorage(ABC):
    """Contract for the blob store holding order documents."""

    @abstractmethod
    def put(self, key: str, content: bytes) -> str:
        """Store *content* under *key* and return its public URL."""

    @abstractmethod
    def url(self, key: str) -> str:
        """Return the public URL of a stored document."""

    @abstractmethod
    def remove_objects(self, keys: Iterable[str]) -> List[str]:
        """Delete every key and return the keys that could not be removed.

        Keys are removed one at a time; a failure on one key never stops
        the others.
        """


class DjangoDocumentStorage(IDocumentStorage):
    """``IDocumentStorage`` backed by a Django ``Storage``."""

    def __init__(self, storage: Optional[Storage] = None) -> None:
        self._storage = storage or storages[settings.DOCUMENTS_STORAGE_ALIAS]

    def put(self, key: str, content: bytes) -> str:
        name = self._storage.save(key, ContentFile(content))
        logger.info("documents.stored", key=name, size=len(content))
        return self._storage.url(name)

    def url(self, key: str) -> str:
        return self._storage.url(key)

    def remove_objects(self, keys: Iterable[str]) -> List[str]:
        failed: List[str] = []
        removed = 0
        for key in keys:
            try:
                self._storage.delete(key)
            except Exception as exc:
                logger.warning("documents.delete_failed", key=key, error=str(exc))
                failed.append(key)
            else:
                removed += 1
        logger.info("documents.removed", removed=removed, failed=len(failed))
        return failed
