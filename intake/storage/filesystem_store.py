import os
import tempfile
from pathlib import Path

from intake.ingestion.exceptions import ObjectNotFoundError, StorageError
from intake.storage.base import BaseObjectStore


class FilesystemObjectStore(BaseObjectStore):
    """Stores objects as files below a root directory, one file per key."""

    def __init__(self, root: Path) -> None:
        self._root = root.resolve()

    def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        path = self._resolve_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".upload-")
            try:
                with os.fdopen(fd, "wb") as tmp:
                    tmp.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Failed to write object {key}: {exc}") from exc

    def get(self, key: str) -> bytes:
        path = self._resolve_path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise ObjectNotFoundError(f"Object not found: {key}") from exc
        except OSError as exc:
            raise StorageError(f"Failed to read object {key}: {exc}") from exc

    def exists(self, key: str) -> bool:
        return self._resolve_path(key).is_file()

    def _resolve_path(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if not path.is_relative_to(self._root) or path == self._root:
            raise StorageError(f"Storage key escapes the storage root: {key}")
        return path
