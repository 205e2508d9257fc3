"""Local filesystem storage for uploaded documents."""

import logging
import uuid
from pathlib import Path
from typing import BinaryIO, Protocol

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a stored object cannot be read or written."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class FileStorage(Protocol):
    def get_file(self, path: str) -> BinaryIO:
        ...

    def delete_file(self, path: str) -> None:
        ...


class LocalFileStorage:
    """
    Stores objects under {root}/{organization}/{project}/{uuid}{ext}.

    Paths handed out and accepted are relative to the root; anything that would
    resolve outside the root is rejected.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        root = self.root.resolve()
        full = (root / path).resolve()
        if root != full and root not in full.parents:
            raise StorageError(f"Storage path escapes the storage root: {path!r}")
        return full

    def save_file(
        self,
        data: bytes,
        file_name: str,
        organization_id: uuid.UUID,
        project_id: uuid.UUID,
    ) -> str:
        """Write bytes and return the relative storage path."""
        suffix = Path(file_name).suffix.lower()
        relative = f"{organization_id}/{project_id}/{uuid.uuid4()}{suffix}"
        full = self._resolve(relative)
        try:
            full.parent.mkdir(parents=True, exist_ok=True)
            full.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Could not store file {file_name!r}.", cause=e) from e
        return relative

    def get_file(self, path: str) -> BinaryIO:
        full = self._resolve(path)
        try:
            return full.open("rb")
        except OSError as e:
            raise StorageError(f"Stored file not found: {path!r}", cause=e) from e

    def delete_file(self, path: str) -> None:
        full = self._resolve(path)
        try:
            full.unlink()
        except FileNotFoundError:
            logger.info("Stored file already absent", extra={"storage_path": path})
        except OSError as e:
            raise StorageError(f"Could not delete stored file {path!r}.", cause=e) from e


def delete_file_best_effort(storage: FileStorage, path: str | None) -> bool:
    """Delete a stored file; failures are logged and reported as False, never raised."""
    if not path:
        return False
    try:
        storage.delete_file(path)
        return True
    except Exception:
        logger.warning(
            "Storage cleanup failed; continuing",
            extra={"storage_path": path},
            exc_info=True,
        )
        return False
