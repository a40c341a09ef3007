"""Storage of the original uploaded roster files."""

from abc import ABC, abstractmethod

from django.core.files.base import ContentFile
from django.core.files.storage import Storage, default_storage
from django.utils.text import get_valid_filename


class FileStorage(ABC):
    """Interface for keeping uploaded files next to their batch."""

    @abstractmethod
    def store(self, content: bytes, filename: str, batch_reference: str) -> str:
        """Save the file and return a retrievable URL."""
        ...

    @abstractmethod
    def delete(self, filename: str, batch_reference: str) -> None:
        """Remove a file saved by ``store``; missing files are ignored."""
        ...


class DjangoFileStorage(FileStorage):
    """Stores uploads through a Django storage backend."""

    def __init__(self, storage: Storage | None = None, prefix: str = "batches") -> None:
        self._storage = storage or default_storage
        self._prefix = prefix

    def store(self, content: bytes, filename: str, batch_reference: str) -> str:
        saved = self._storage.save(self._name(filename, batch_reference), ContentFile(content))
        return self._storage.url(saved)

    def delete(self, filename: str, batch_reference: str) -> None:
        self._storage.delete(self._name(filename, batch_reference))

    def _name(self, filename: str, batch_reference: str) -> str:
        return f"{self._prefix}/{batch_reference}/{get_valid_filename(filename)}"
