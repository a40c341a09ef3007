"""Tests for keeping uploaded rosters in a Django storage backend.

Run with: pytest tests/test_storage.py -v
"""

import pytest
from django.core.files.storage import FileSystemStorage

from batches.services.storage import DjangoFileStorage


@pytest.fixture
def file_storage(tmp_path) -> DjangoFileStorage:
    return DjangoFileStorage(FileSystemStorage(location=tmp_path, base_url="/media/"))


class TestDjangoFileStorage:
    def test_store_saves_under_batch_reference(self, file_storage, tmp_path):
        url = file_storage.store(b"name,grade\n", "spring roster.csv", "BATCH-DPS01-ABC")

        assert url == "/media/batches/BATCH-DPS01-ABC/spring_roster.csv"
        saved = tmp_path / "batches" / "BATCH-DPS01-ABC" / "spring_roster.csv"
        assert saved.read_bytes() == b"name,grade\n"

    def test_delete_removes_stored_file(self, file_storage, tmp_path):
        file_storage.store(b"data", "roster.xlsx", "BATCH-DPS01-ABC")
        file_storage.delete("roster.xlsx", "BATCH-DPS01-ABC")

        assert not (tmp_path / "batches" / "BATCH-DPS01-ABC" / "roster.xlsx").exists()

    def test_delete_of_missing_file_is_ignored(self, file_storage):
        file_storage.delete("never-stored.csv", "BATCH-DPS01-XYZ")
