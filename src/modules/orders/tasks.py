"""Asynchronous tasks of the orders module."""

import structlog
from celery import shared_task
from django.conf import settings

from modules.core.storage import DjangoDocumentStorage

logger = structlog.get_logger(__name__)

PURGE_BACKOFF_BASE_SECONDS = 30
PURGE_BACKOFF_MAX_SECONDS = 3600


class DocumentPurgeIncomplete(Exception):
    """Some document keys are still present in storage."""

    def __init__(self, keys):
        super().__init__(f"{len(keys)} document(s) could not be removed")
        self.keys = list(keys)


@shared_task(name="orders.purge_documents", bind=True, max_retries=None)
def purge_documents(self, keys):
    """Remove documents left behind by a master order deletion.

    Each retry only carries the keys that failed on the previous attempt,
    with exponential backoff bounded by ``DOCUMENT_PURGE_MAX_RETRIES``.
    """
    log = logger.bind(attempt=self.request.retries + 1, keys=len(keys))
    failed = DjangoDocumentStorage().remove_objects(keys)
    if not failed:
        log.info("documents.purged")
        return {"removed": len(keys), "pending": 0}

    max_retries = settings.DOCUMENT_PURGE_MAX_RETRIES
    if self.request.retries >= max_retries:
        log.error("documents.purge_abandoned", pending_keys=failed)
    else:
        log.warning("documents.purge_incomplete", pending=len(failed))

    countdown = min(
        PURGE_BACKOFF_BASE_SECONDS * (2 ** self.request.retries),
        PURGE_BACKOFF_MAX_SECONDS,
    )
    raise self.retry(
        args=[failed],
        exc=DocumentPurgeIncomplete(failed),
        countdown=countdown,
        max_retries=max_retries,
    )
