"""
Abstract storage interface for the CI blob store.

This module defines the contract any blob-store backend must follow, allowing
the build lookups to run against GCS, a local mirror, or a test fake.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import AbstractContextManager


class StorageClient(ABC):
    """
    Abstract base class for read-only blob-store operations.

    An instance is the authenticated handle: create it once, call
    authenticate() before anything else, then pass it to the components
    that need storage.
    """

    @abstractmethod
    def authenticate(self, credential: str | None = None) -> None:
        """
        Set up access to the store.

        Args:
            credential: Backend-specific credential, None for anonymous access

        Raises:
            StorageError: If the credential cannot be used
        """
        pass

    @abstractmethod
    def exists(self, bucket: str, path: str) -> bool:
        """
        Check whether an object exists.

        Args:
            bucket: Bucket name
            path: Object path inside the bucket

        Returns:
            True if the object exists, False otherwise

        Raises:
            StorageError: If the store cannot answer
        """
        pass

    @abstractmethod
    def read(self, bucket: str, path: str) -> bytes:
        """
        Read a whole object.

        Args:
            bucket: Bucket name
            path: Object path inside the bucket

        Returns:
            The object's bytes

        Raises:
            ObjectNotFoundError: If the object does not exist
            StorageError: For any other failure
        """
        pass

    @abstractmethod
    def list_children(self, bucket: str, prefix: str) -> list[str]:
        """
        List the immediate children of a prefix (non-recursive).

        Args:
            bucket: Bucket name
            prefix: Directory-like prefix, with or without trailing slash

        Returns:
            Child paths in no guaranteed order; sub-directories may end with "/"

        Raises:
            StorageError: If listing fails
        """
        pass

    @abstractmethod
    def open_reader(
        self, bucket: str, path: str
    ) -> AbstractContextManager[Iterator[str]]:
        """
        Open a streaming reader over a text object.

        The returned context manager yields an iterator of lines (without
        line terminators) and releases the underlying stream on exit.

        Raises:
            ObjectNotFoundError: If the object does not exist
            StorageError: If opening or reading fails
        """
        pass
