"""
Prow Storage module.

This module contains the blob-store backends implementing
prow_common.storage.StorageClient: Google Cloud Storage over its JSON API,
and a local directory mirror.
"""

from .gcs_storage import GCSStorageClient
from .local_storage import LocalStorageClient

__all__ = ["GCSStorageClient", "LocalStorageClient"]
