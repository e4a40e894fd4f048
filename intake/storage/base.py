from abc import ABC, abstractmethod


class BaseObjectStore(ABC):
    """Contract for durable object storage of uploaded file bytes.

    Keys follow the hierarchical scheme produced by ``build_storage_key``.
    """

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        """Persist ``data`` under ``key``.

        Raises:
            StorageError: if the write fails.
        """

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Read the bytes stored under ``key``.

        Raises:
            ObjectNotFoundError: if nothing is stored under ``key``.
            StorageError: if the read fails.
        """

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Return True if an object is stored under ``key``."""
