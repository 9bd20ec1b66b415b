"""
Local-directory implementation of the storage interface.

Reads a bucket mirrored to disk (for example with "gsutil -m rsync") laid out
as <root>/<bucket>/<object path>. Useful offline and in tests.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from prow_common.errors import ObjectNotFoundError, StorageError
from prow_common.storage import StorageClient

logger = logging.getLogger(__name__)


class LocalStorageClient(StorageClient):
    """Filesystem-backed blob store rooted at a directory."""

    def __init__(self, root: str | Path):
        """
        Initialize the local store.

        Args:
            root: Directory containing one sub-directory per bucket
        """
        self.root = Path(root)

    def authenticate(self, credential: str | None = None) -> None:
        """Local files need no credential; only check the root exists."""
        if not self.root.is_dir():
            raise StorageError(f"Storage root is not a directory: {self.root}")

    def _resolve(self, bucket: str, path: str) -> Path:
        bucket_dir = (self.root / bucket).resolve()
        target = (bucket_dir / path.strip("/")).resolve()
        if target != bucket_dir and bucket_dir not in target.parents:
            raise StorageError(f"Path escapes bucket {bucket}: {path}")
        return target

    def exists(self, bucket: str, path: str) -> bool:
        return self._resolve(bucket, path).is_file()

    def read(self, bucket: str, path: str) -> bytes:
        target = self._resolve(bucket, path)
        if not target.is_file():
            raise ObjectNotFoundError(bucket, path)
        try:
            return target.read_bytes()
        except OSError as e:
            raise StorageError(f"Error reading {bucket}/{path}: {e}") from e

    def list_children(self, bucket: str, prefix: str) -> list[str]:
        """Children as bucket-relative paths; directories end with "/"."""
        directory = self._resolve(bucket, prefix)
        if not directory.is_dir():
            return []

        base = prefix.strip("/")
        children = []
        for child in directory.iterdir():
            name = f"{base}/{child.name}" if base else child.name
            children.append(name + "/" if child.is_dir() else name)
        return children

    @contextmanager
    def open_reader(self, bucket: str, path: str) -> Iterator[Iterator[str]]:
        """Lines end at LF only; one trailing CR is dropped."""
        target = self._resolve(bucket, path)
        if not target.is_file():
            raise ObjectNotFoundError(bucket, path)
        try:
            f = open(target, encoding="utf-8", errors="replace", newline="\n")
        except FileNotFoundError as e:
            raise ObjectNotFoundError(bucket, path) from e
        except OSError as e:
            raise StorageError(f"Error opening {bucket}/{path}: {e}") from e

        with f:
            yield self._iter_lines(f, bucket, path)

    @staticmethod
    def _iter_lines(f, bucket: str, path: str) -> Iterator[str]:
        try:
            for line in f:
                yield line.removesuffix("\n").removesuffix("\r")
        except OSError as e:
            raise StorageError(f"Error streaming {bucket}/{path}: {e}") from e
