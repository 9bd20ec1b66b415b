"""
Exception hierarchy shared by every prow_* package.

Configuration errors mean the caller asked for something that can never have
a storage location (an unknown job type). Storage errors are runtime
conditions: a missing object, an unreadable marker, a broken stream.
"""


class ProwError(Exception):
    """Base class for all errors raised by this project."""


class ConfigurationError(ProwError):
    """Raised for programming or configuration mistakes."""


class UnknownJobTypeError(ConfigurationError):
    """Raised when a job type has no storage layout."""

    def __init__(self, job_type: object):
        super().__init__(f"unknown job spec type: {job_type}")
        self.job_type = job_type


class StorageError(ProwError):
    """Raised when the blob store cannot satisfy a request."""


class ObjectNotFoundError(StorageError):
    """Raised when a required object does not exist."""

    def __init__(self, bucket: str, path: str):
        super().__init__(f"object not found: {bucket}/{path}")
        self.bucket = bucket
        self.path = path


class MetadataDecodeError(StorageError):
    """Raised when a marker object is not valid metadata JSON."""


class LatestBuildError(StorageError):
    """Raised when latest-build.txt does not hold a build number."""


class LogReadError(StorageError):
    """
    Raised when a build log stream fails part way through.

    The fragments extracted before the failure are kept on the exception.
    """

    def __init__(self, message: str, fragments: list[str] | None = None):
        super().__init__(message)
        self.fragments = list(fragments or [])
