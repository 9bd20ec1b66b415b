"""
Prow Common module.

This module contains the storage layout, domain models, errors and the
storage interface shared by the prow_* packages.

The common module has no dependencies on other prow_* modules, making it
a pure domain layer that can be imported by any component.
"""

from .errors import (
    ConfigurationError,
    LatestBuildError,
    LogReadError,
    MetadataDecodeError,
    ObjectNotFoundError,
    ProwError,
    StorageError,
    UnknownJobTypeError,
)
from .models import Build, FinishedMetadata, Job, StartedMetadata, new_job
from .paths import BUCKET_NAME, ORG_NAME, JobType
from .storage import StorageClient

__all__ = [
    "BUCKET_NAME",
    "ORG_NAME",
    "Build",
    "ConfigurationError",
    "FinishedMetadata",
    "Job",
    "JobType",
    "LatestBuildError",
    "LogReadError",
    "MetadataDecodeError",
    "ObjectNotFoundError",
    "ProwError",
    "StartedMetadata",
    "StorageClient",
    "StorageError",
    "UnknownJobTypeError",
    "new_job",
]
