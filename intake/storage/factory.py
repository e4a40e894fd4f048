from collections.abc import Callable, Mapping
from pathlib import Path

from intake.config.backends import build_backend
from intake.config.settings import Settings
from intake.storage.base import BaseObjectStore
from intake.storage.filesystem_store import FilesystemObjectStore
from intake.storage.s3_store import S3ObjectStore, build_s3_client


def _local_store(settings: Settings) -> BaseObjectStore:
    return FilesystemObjectStore(Path(settings.files_root))


def _s3_store(settings: Settings) -> BaseObjectStore:
    return S3ObjectStore(settings.s3_bucket, build_s3_client(settings))


class ObjectStoreFactory:
    """Creates the object store for the configured storage disk."""

    DISKS: Mapping[str, Callable[[Settings], BaseObjectStore]] = {
        "local": _local_store,
        "s3": _s3_store,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseObjectStore:
        return build_backend("storage disk", settings.storage_disk, cls.DISKS, settings)
