from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional
from urllib.parse import quote
import logging
import re
import time

from tripboard.core.config import settings
from tripboard.core.errors import StorageError

logger = logging.getLogger(__name__)

BROCHURE_PREFIX = "brochures"
GALLERY_PREFIX = "gallery"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: Optional[str]) -> str:
    """Reduce an uploaded filename to a storage-safe basename."""
    name = PurePosixPath((filename or "").replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("-", name).strip(".-")
    return name or "upload"


def build_object_path(prefix: str, filename: str, timestamp_ms: Optional[int] = None) -> str:
    """Build ``<prefix>/<timestamp>-<filename>`` keys."""
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    return f"{prefix}/{timestamp_ms}-{safe_filename(filename)}"


class ObjectStorage(ABC):
    """A single bucket of uploaded trip files."""

    def __init__(self, bucket: str, public_url: str):
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")

    def object_key(self, path: str) -> str:
        """Key of a stored path inside the bucket.

        Bare filenames were stored under a folder named after the bucket.
        """
        path = path.strip().lstrip("/")
        return path if "/" in path else f"{self.bucket}/{path}"

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        """Store ``data`` under ``path`` and return the stored path. Never overwrites."""
        pass

    @abstractmethod
    def download(self, path: str) -> bytes:
        pass

    @abstractmethod
    def remove(self, paths: Iterable[str]) -> List[str]:
        """Remove objects, returning the paths that were actually removed."""
        pass

    def get_public_url(self, path: str) -> str:
        """Public URL of an object; empty for an empty path."""
        if not path:
            return ""
        return f"{self.public_url}/{quote(self.bucket)}/{quote(self.object_key(path))}"

    def new_object_path(self, prefix: str, filename: str) -> str:
        """Fresh timestamped path that does not collide with an existing object."""
        timestamp_ms = time.time_ns() // 1_000_000
        path = build_object_path(prefix, filename, timestamp_ms)
        while self.exists(path):
            timestamp_ms += 1
            path = build_object_path(prefix, filename, timestamp_ms)
        return path


class LocalObjectStorage(ObjectStorage):
    """Bucket stored on the local filesystem under ``<root>/<bucket>``."""

    def __init__(self, root: str, bucket: str, public_url: str):
        super().__init__(bucket, public_url)
        self.root = Path(root).resolve()
        self.bucket_dir = self.root / bucket
        self.bucket_dir.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        target = (self.bucket_dir / self.object_key(path)).resolve()
        if self.bucket_dir not in target.parents:
            raise StorageError(f"Path escapes bucket: {path}")
        return target

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        target = self._resolve(path)
        if target.exists():
            raise StorageError(f"Object already exists: {path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to upload {path}: {e}") from e

        logger.info(f"Uploaded {path} ({len(data)} bytes, {content_type or 'unknown type'})")
        return path

    def download(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return target.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to download {path}: {e}") from e

    def remove(self, paths: Iterable[str]) -> List[str]:
        removed = []
        for path in paths:
            target = self._resolve(path)
            try:
                target.unlink()
            except FileNotFoundError:
                logger.warning(f"Object {path} was already missing")
                continue
            except OSError as e:
                raise StorageError(f"Failed to remove {path}: {e}") from e
            removed.append(path)
        return removed


_storage: Optional[ObjectStorage] = None


def get_storage() -> ObjectStorage:
    """FastAPI dependency returning the configured bucket."""
    global _storage
    if _storage is None:
        _storage = LocalObjectStorage(
            root=settings.storage_root,
            bucket=settings.storage_bucket,
            public_url=settings.storage_public_url,
        )
    return _storage
