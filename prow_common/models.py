"""
Data models for jobs and builds stored in the CI blob store.

These models are value objects: they are built from caller-supplied identity
and never change afterwards. Nothing here talks to storage.
"""

import posixpath
from dataclasses import dataclass, field
from typing import Any

from . import paths
from .errors import MetadataDecodeError
from .paths import BUCKET_NAME, FatalReporter, JobType, raise_fatal


@dataclass(frozen=True)
class Build:
    """
    Represents one execution of a job, stored under "<job prefix>/<build_id>".
    """

    job_name: str
    build_id: int
    storage_path: str
    bucket: str = BUCKET_NAME

    def __post_init__(self):
        if isinstance(self.build_id, bool) or not isinstance(self.build_id, int):
            raise ValueError(f"build id must be an integer, got {self.build_id!r}")
        if self.build_id < 0:
            raise ValueError(f"build id must be non-negative, got {self.build_id}")
        if posixpath.basename(self.storage_path) != str(self.build_id):
            raise ValueError(
                f"storage path {self.storage_path!r} does not end with build id "
                f"{self.build_id}"
            )

    @property
    def artifacts_dir(self) -> str:
        """Prefix holding the build's artifacts."""
        return paths.artifacts_path(self.storage_path)

    @property
    def build_log_path(self) -> str:
        """Path of the build's build-log.txt."""
        return paths.build_log_path(self.storage_path)

    def to_dict(self) -> dict[str, Any]:
        """Convert build to dictionary format (for JSON output)."""
        return {
            "job_name": self.job_name,
            "build_id": self.build_id,
            "storage_path": self.storage_path,
            "bucket": self.bucket,
        }


@dataclass(frozen=True)
class Job:
    """
    Represents a job directory in the blob store.

    Use new_job() to construct one; it derives storage_path from the job type.
    pull_id is only meaningful for presubmit jobs.
    """

    name: str
    job_type: JobType
    storage_path: str
    bucket: str = BUCKET_NAME
    repo: str | None = None
    pull_id: int = 0

    def new_build(self, build_id: int) -> Build:
        """Build value for build_id under this job. No storage access."""
        return Build(
            job_name=self.name,
            build_id=build_id,
            storage_path=paths.build_storage_path(self.storage_path, build_id),
            bucket=self.bucket,
        )

    @property
    def latest_build_path(self) -> str:
        return paths.latest_build_path(self.storage_path)

    def to_dict(self) -> dict[str, Any]:
        """Convert job to dictionary format (for JSON output)."""
        return {
            "name": self.name,
            "type": self.job_type.value,
            "bucket": self.bucket,
            "repo": self.repo,
            "pull_id": self.pull_id,
            "storage_path": self.storage_path,
        }


def new_job(
    name: str,
    job_type: JobType | str,
    repo: str | None = None,
    pull_id: int = 0,
    bucket: str = BUCKET_NAME,
    report_fatal: FatalReporter = raise_fatal,
) -> Job:
    """
    Create a Job with its storage path derived from its type.

    Args:
        name: Job name (must be non-empty)
        job_type: JobType member or its string value
        repo: Repository name, required to locate presubmit jobs
        pull_id: Pull request number, kept only for presubmit jobs
        bucket: Bucket holding the job
        report_fatal: Reporter invoked for unknown job types

    Raises:
        ValueError: If name is empty
        UnknownJobTypeError: If job_type has no storage layout
    """
    if not name:
        raise ValueError("job name must not be empty")

    storage_path = paths.derive_storage_path(
        job_type, name, repo=repo, pull_id=pull_id, report_fatal=report_fatal
    )
    kind = JobType(job_type)
    return Job(
        name=name,
        job_type=kind,
        storage_path=storage_path,
        bucket=bucket,
        repo=repo,
        pull_id=pull_id if kind is JobType.PRESUBMIT else 0,
    )


def _require_int(data: dict[str, Any], key: str, source: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    # bool is an int subclass but never a timestamp
    if isinstance(value, bool) or not isinstance(value, int):
        raise MetadataDecodeError(f"{source}: {key!r} is not an integer: {value!r}")
    return value


def _require_str(data: dict[str, Any], key: str, source: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MetadataDecodeError(f"{source}: {key!r} is not a string: {value!r}")
    return value


def _require_bool(data: dict[str, Any], key: str, source: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise MetadataDecodeError(f"{source}: {key!r} is not a boolean: {value!r}")
    return value


def _require_object(data: Any, source: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise MetadataDecodeError(f"{source}: expected a JSON object")
    return data


@dataclass(frozen=True)
class StartedMetadata:
    """
    Values of a build's started.json.

    Keys this model does not know about are kept in extra.
    """

    timestamp: int  # epoch seconds
    repo_version: str = ""
    node: str = ""
    pull: str = ""
    repos: dict[str, str] = field(default_factory=dict)  # repo -> branch_or_pull
    extra: dict[str, Any] = field(default_factory=dict)

    KNOWN_KEYS = ("timestamp", "repo-version", "node", "pull", "repos")

    @classmethod
    def from_dict(cls, data: Any) -> "StartedMetadata":
        """Create started metadata from decoded started.json content."""
        data = _require_object(data, "started.json")
        repos = data.get("repos")
        if repos is None:
            repos = {}
        if not isinstance(repos, dict) or not all(
            isinstance(v, str) for v in repos.values()
        ):
            raise MetadataDecodeError(
                "started.json: 'repos' is not an object of strings"
            )
        return cls(
            timestamp=_require_int(data, "timestamp", "started.json"),
            repo_version=_require_str(data, "repo-version", "started.json"),
            node=_require_str(data, "node", "started.json"),
            pull=_require_str(data, "pull", "started.json"),
            repos=repos,
            extra={k: v for k, v in data.items() if k not in cls.KNOWN_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "timestamp": self.timestamp,
            "repo-version": self.repo_version,
            "node": self.node,
            "pull": self.pull,
            "repos": dict(self.repos),
        }


@dataclass(frozen=True)
class FinishedMetadata:
    """
    Values of a build's finished.json.

    metadata is free-form and passed through as decoded.
    """

    timestamp: int  # epoch seconds
    passed: bool = False
    job_version: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    KNOWN_KEYS = ("timestamp", "passed", "job-version", "metadata")

    @classmethod
    def from_dict(cls, data: Any) -> "FinishedMetadata":
        """Create finished metadata from decoded finished.json content."""
        data = _require_object(data, "finished.json")
        metadata = data.get("metadata")
        if metadata is None:
            metadata = {}
        if not isinstance(metadata, dict):
            raise MetadataDecodeError("finished.json: 'metadata' is not an object")
        return cls(
            timestamp=_require_int(data, "timestamp", "finished.json"),
            passed=_require_bool(data, "passed", "finished.json"),
            job_version=_require_str(data, "job-version", "finished.json"),
            metadata=metadata,
            extra={k: v for k, v in data.items() if k not in cls.KNOWN_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "timestamp": self.timestamp,
            "passed": self.passed,
            "job-version": self.job_version,
            "metadata": dict(self.metadata),
        }
