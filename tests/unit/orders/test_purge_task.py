"""Unit tests for the ``orders.purge_documents`` Celery task."""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest
from django.core.files.base import ContentFile
from django.core.files.storage import storages

from modules.orders.tasks import DocumentPurgeIncomplete, purge_documents

pytestmark = pytest.mark.unit


@pytest.fixture()
def documents():
    backend = storages["documents"]
    keys = ["photos/purge-1.jpg", "photos/purge-2.jpg"]
    for key in keys:
        backend.save(key, ContentFile(b"jpeg"))
    yield backend, keys
    for key in keys:
        backend.delete(key)


def test_purge_removes_documents(documents):
    backend, keys = documents

    result = purge_documents.delay(keys)

    assert result.get() == {"removed": 2, "pending": 0}
    assert not any(backend.exists(key) for key in keys)


def test_purge_is_registered_under_its_name():
    assert purge_documents.name == "orders.purge_documents"


def test_incomplete_purge_retries_only_failed_keys():
    with patch("modules.orders.tasks.DjangoDocumentStorage") as storage_class:
        storage_class.return_value.remove_objects.return_value = ["b.jpg"]
        with patch.object(purge_documents, "retry", side_effect=DocumentPurgeIncomplete(["b.jpg"])) as retry:
            with pytest.raises(DocumentPurgeIncomplete):
                purge_documents(["a.jpg", "b.jpg"])

    kwargs = retry.call_args.kwargs
    assert kwargs["args"] == [["b.jpg"]]
    assert kwargs["countdown"] == 30
    assert isinstance(kwargs["exc"], DocumentPurgeIncomplete)
    assert kwargs["exc"].keys == ["b.jpg"]


def test_called_directly_raises_incomplete():
    with patch("modules.orders.tasks.DjangoDocumentStorage") as storage_class:
        storage_class.return_value.remove_objects.return_value = ["b.jpg"]
        with pytest.raises(DocumentPurgeIncomplete) as exc_info:
            purge_documents(["a.jpg", "b.jpg"])

    assert exc_info.value.keys == ["b.jpg"]


def test_exhausted_retries_logged_as_error(settings, caplog):
    settings.DOCUMENT_PURGE_MAX_RETRIES = 0
    with patch("modules.orders.tasks.DjangoDocumentStorage") as storage_class:
        storage_class.return_value.remove_objects.return_value = ["b.jpg"]
        with caplog.at_level(logging.WARNING):
            with pytest.raises(DocumentPurgeIncomplete):
                purge_documents(["b.jpg"])

    assert any(
        record.levelno == logging.ERROR and "documents.purge_abandoned" in record.getMessage()
        for record in caplog.records
    )
