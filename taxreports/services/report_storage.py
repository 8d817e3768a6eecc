"""
Blob storage for rendered report files.

Keys look like ``reports/<account_id>/<year>/<hex>_<file_name>``. The local
implementation keeps them under ``settings.report_storage_dir``.
"""
import logging
import uuid
from pathlib import Path
from typing import Protocol

from taxreports.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class ReportStorage(Protocol):
    def put(self, storage_key: str, content: bytes) -> None: ...

    def get(self, storage_key: str) -> bytes: ...

    def delete(self, storage_key: str) -> None: ...


def build_storage_key(account_id: uuid.UUID, year: int, file_name: str) -> str:
    return f"reports/{account_id}/{year}/{uuid.uuid4().hex}_{file_name}"


class LocalReportStorage:
    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, storage_key: str) -> Path:
        root = self.root.resolve()
        path = (root / storage_key).resolve()
        if root not in path.parents:
            raise StorageError(f"Invalid storage key: {storage_key}")
        return path

    def put(self, storage_key: str, content: bytes) -> None:
        path = self._path(storage_key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as exc:
            logger.error("Failed to save report %s: %s", storage_key, exc)
            raise StorageError(f"Failed to save report: {exc}") from exc
        logger.info("Saved report %s (%d bytes)", storage_key, len(content))

    def get(self, storage_key: str) -> bytes:
        path = self._path(storage_key)
        try:
            content = path.read_bytes()
        except FileNotFoundError as exc:
            logger.warning("Report not found in storage: %s", storage_key)
            raise StorageError(f"Report not found: {storage_key}") from exc
        except OSError as exc:
            logger.error("Failed to read report %s: %s", storage_key, exc)
            raise StorageError(f"Failed to retrieve report: {exc}") from exc
        return content

    def delete(self, storage_key: str) -> None:
        path = self._path(storage_key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Failed to delete report %s: %s", storage_key, exc)
            raise StorageError(f"Failed to delete report: {exc}") from exc
        logger.info("Deleted report %s", storage_key)
