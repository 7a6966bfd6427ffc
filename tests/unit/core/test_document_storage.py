"""Unit tests for the Django-backed document storage adapter."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest
from django.core.files.storage import InMemoryStorage

from modules.core.storage import DjangoDocumentStorage

pytestmark = pytest.mark.unit


@pytest.fixture()
def backend():
    return InMemoryStorage(base_url="/documents/")


@pytest.fixture()
def storage(backend):
    return DjangoDocumentStorage(storage=backend)


def test_put_stores_and_returns_url(storage, backend):
    url = storage.put("shipments/po-1.pdf", b"%PDF-1.7")
    assert backend.exists("shipments/po-1.pdf")
    assert url == "/documents/shipments/po-1.pdf"


def test_url(storage):
    assert storage.url("photos/a.jpg") == "/documents/photos/a.jpg"


def test_remove_objects_deletes_every_key(storage, backend):
    storage.put("a.pdf", b"a")
    storage.put("b.pdf", b"b")

    failed = storage.remove_objects(["a.pdf", "b.pdf"])

    assert failed == []
    assert not backend.exists("a.pdf")
    assert not backend.exists("b.pdf")


def test_remove_objects_tolerates_missing_keys(storage):
    assert storage.remove_objects(["never-uploaded.pdf"]) == []


def test_remove_objects_reports_failed_keys(caplog):
    backend = MagicMock()
    backend.delete.side_effect = [None, OSError("bucket unreachable"), None]
    storage = DjangoDocumentStorage(storage=backend)

    with caplog.at_level(logging.WARNING):
        failed = storage.remove_objects(["a.pdf", "b.pdf", "c.pdf"])

    assert failed == ["b.pdf"]
    assert backend.delete.call_count == 3
    assert any(
        "documents.delete_failed" in record.getMessage() for record in caplog.records
    )


def test_default_backend_is_documents_alias():
    storage = DjangoDocumentStorage()
    assert isinstance(storage._storage, InMemoryStorage)


class _ClientError(Exception):
    """Backend error that is not an ``OSError``, like botocore's."""


def test_backend_specific_error_only_fails_its_key():
    backend = MagicMock()
    backend.delete.side_effect = [_ClientError("AccessDenied"), None]
    storage = DjangoDocumentStorage(storage=backend)

    failed = storage.remove_objects(["a.pdf", "b.pdf"])

    assert failed == ["a.pdf"]
    assert backend.delete.call_count == 2
