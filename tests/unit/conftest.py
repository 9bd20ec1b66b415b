"""
Shared fixtures for unit tests.

FakeStorage keeps objects in memory and records how log streams are opened
and closed, so the core logic can be tested without a blob store.
"""

import json
from contextlib import contextmanager

import pytest

from prow_common.errors import ObjectNotFoundError, StorageError
from prow_common.storage import StorageClient


class FakeStorage(StorageClient):
    """In-memory StorageClient."""

    def __init__(self):
        self.objects: dict[tuple[str, str], bytes] = {}
        self.children: dict[tuple[str, str], list[str]] = {}
        self.unreadable: set[tuple[str, str]] = set()
        self.fail_stream_after: dict[tuple[str, str], int] = {}
        self.credential: str | None = None
        self.opened = 0
        self.closed = 0

    def put(self, bucket: str, path: str, data: bytes | str) -> None:
        self.objects[(bucket, path)] = data.encode() if isinstance(data, str) else data

    def put_json(self, bucket: str, path: str, data: object) -> None:
        self.put(bucket, path, json.dumps(data))

    def authenticate(self, credential=None):
        self.credential = credential

    def exists(self, bucket, path):
        return (bucket, path) in self.objects

    def read(self, bucket, path):
        if (bucket, path) in self.unreadable:
            raise StorageError(f"permission denied: {bucket}/{path}")
        if (bucket, path) not in self.objects:
            raise ObjectNotFoundError(bucket, path)
        return self.objects[(bucket, path)]

    def list_children(self, bucket, prefix):
        return list(self.children.get((bucket, prefix), []))

    @contextmanager
    def open_reader(self, bucket, path):
        if (bucket, path) not in self.objects:
            raise ObjectNotFoundError(bucket, path)
        self.opened += 1
        try:
            yield self._lines(bucket, path)
        finally:
            self.closed += 1

    def _lines(self, bucket, path):
        limit = self.fail_stream_after.get((bucket, path))
        for index, line in enumerate(self.objects[(bucket, path)].decode().splitlines()):
            if limit is not None and index >= limit:
                raise StorageError("connection reset")
            yield line


@pytest.fixture
def storage():
    """Create an empty in-memory storage."""
    return FakeStorage()
