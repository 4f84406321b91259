from __future__ import annotations

from pathlib import Path
from typing import Protocol

from docmarket.monetization.errors import NotFoundError, StorageError, ValidationError


class DocumentBlobNotFoundError(NotFoundError):
    pass


class DocumentStore(Protocol):
    def read(self, storage_key: str) -> bytes: ...

    def write(self, storage_key: str, payload: bytes) -> None: ...

    def delete(self, storage_key: str) -> None: ...


class LocalDocumentStore:
    """Blob store rooted at a local directory; keys are relative paths.

    Filesystem failures surface as ``StorageError``.
    """

    def __init__(self, root_dir: str | Path) -> None:
        self.root_dir = Path(root_dir).resolve()

    def _resolve(self, storage_key: str) -> Path:
        key = (storage_key or "").strip().lstrip("/")
        if not key:
            raise ValidationError("storage key is required")
        path = (self.root_dir / key).resolve()
        if not path.is_relative_to(self.root_dir):
            raise ValidationError("storage key escapes the storage root")
        return path

    def read(self, storage_key: str) -> bytes:
        path = self._resolve(storage_key)
        if not path.is_file():
            raise DocumentBlobNotFoundError(storage_key)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError(f"cannot read blob {storage_key!r}") from exc

    def write(self, storage_key: str, payload: bytes) -> None:
        path = self._resolve(storage_key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(payload)
        except OSError as exc:
            raise StorageError(f"cannot write blob {storage_key!r}") from exc

    def delete(self, storage_key: str) -> None:
        path = self._resolve(storage_key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"cannot delete blob {storage_key!r}") from exc
