"""
Stockage des fichiers / File store.
Dépôt de blobs par chemin opaque sur disque local.
Blob put/get/delete by opaque path on local disk.
"""

import logging
import uuid
from pathlib import Path

from tariff_manager.config import settings
from tariff_manager.exceptions import StorageUnavailable, ValidationError

logger = logging.getLogger(__name__)


class LocalFileStore:

    def __init__(self, root: str | Path | None = None):
        self.root = Path(root or settings.FILE_STORE_DIR)

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise ValidationError("Invalid file path", details={"path": path})
        return target

    def put(self, prefix: str, filename: str, content: bytes) -> str:
        """Déposer un blob ; retourne le chemin opaque / Store a blob and return its opaque path."""
        suffix = Path(filename).suffix[:10]
        path = f"{prefix}/{uuid.uuid4().hex}{suffix}"
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        return path

    def get(self, path: str) -> bytes:
        try:
            return self._resolve(path).read_bytes()
        except OSError as exc:
            logger.error("File store read failed for %s: %s", path, exc)
            raise StorageUnavailable("Stored file could not be read", details={"path": path}) from exc

    def delete(self, path: str) -> None:
        try:
            self._resolve(path).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("File store delete failed for %s: %s", path, exc)


def get_file_store() -> LocalFileStore:
    """Dépendance FastAPI / FastAPI dependency."""
    return LocalFileStore()
