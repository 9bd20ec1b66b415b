"""
Storage layout of the CI system's blob store.

Every function here is pure: it turns job and build identity into object
paths and performs no I/O. All paths are forward-slash separated and relative
to the bucket root.
"""

import posixpath
from collections.abc import Callable
from enum import Enum

from .errors import ConfigurationError, UnknownJobTypeError

# Name of the GitHub org whose repos are built
ORG_NAME = "knative"

# Bucket holding every build of the org
BUCKET_NAME = "knative-prow"

# Object and directory names inside job and build prefixes
LATEST_BUILD = "latest-build.txt"
BUILD_LOG = "build-log.txt"
STARTED_JSON = "started.json"
FINISHED_JSON = "finished.json"
ARTIFACTS_DIR = "artifacts"


class JobType(str, Enum):
    """Job spec types understood by the storage layout."""

    PRESUBMIT = "presubmit"  # runs on unmerged PRs
    POSTSUBMIT = "postsubmit"  # runs on each new commit
    PERIODIC = "periodic"  # runs on a time basis
    BATCH = "batch"  # tests several unmerged PRs together


FatalReporter = Callable[[ConfigurationError], None]


def raise_fatal(error: ConfigurationError) -> None:
    """Default fatal reporter: raise the configuration error."""
    raise error


def derive_storage_path(
    job_type: "JobType | str",
    job_name: str,
    repo: str | None = None,
    pull_id: int = 0,
    report_fatal: FatalReporter = raise_fatal,
) -> str:
    """
    Compute the storage prefix under which a job's builds live.

    Args:
        job_type: One of the JobType values (enum member or its string value)
        job_name: Name of the job
        repo: Repository name, used only by presubmit jobs
        pull_id: Pull request number, used only by presubmit jobs
        report_fatal: Called with an UnknownJobTypeError for unknown types

    Returns:
        Prefix such as "logs/<job>" or "pr-logs/pull/<org>_<repo>/<pr>/<job>"

    Raises:
        UnknownJobTypeError: If job_type is not a JobType, even when a
            substituted reporter returns instead of raising
    """
    try:
        kind = JobType(job_type)
    except ValueError:
        error = UnknownJobTypeError(job_type)
        report_fatal(error)
        raise error

    if kind in (JobType.PERIODIC, JobType.POSTSUBMIT):
        return posixpath.join("logs", job_name)
    if kind is JobType.PRESUBMIT:
        return posixpath.join(
            "pr-logs", "pull", f"{ORG_NAME}_{repo or ''}", str(pull_id), job_name
        )
    return posixpath.join("pr-logs", "pull", "batch", job_name)


def build_storage_path(job_storage_path: str, build_id: int) -> str:
    """Prefix of a single build under its job's prefix."""
    if build_id < 0:
        raise ValueError(f"build id must be non-negative, got {build_id}")
    return posixpath.join(job_storage_path, str(build_id))


def latest_build_path(job_storage_path: str) -> str:
    return posixpath.join(job_storage_path, LATEST_BUILD)


def started_path(build_storage_path: str) -> str:
    return posixpath.join(build_storage_path, STARTED_JSON)


def finished_path(build_storage_path: str) -> str:
    return posixpath.join(build_storage_path, FINISHED_JSON)


def build_log_path(build_storage_path: str) -> str:
    return posixpath.join(build_storage_path, BUILD_LOG)


def artifacts_path(build_storage_path: str) -> str:
    return posixpath.join(build_storage_path, ARTIFACTS_DIR)


def build_id_from_path(build_path: str) -> int | None:
    """
    Extract the build id from a listed build path.

    Trailing slashes and spaces are ignored and only the last segment counts.
    The segment parses when it is an optional "-" followed by ASCII digits;
    negative numbers parse but are not build ids.

    Returns:
        The build id, or None when the segment is not a build directory
    """
    segment = posixpath.basename(build_path.rstrip(" /"))
    digits = segment[1:] if segment.startswith("-") else segment
    if not digits or not digits.isascii() or not digits.isdigit():
        return None
    build_id = int(segment)
    if build_id < 0:
        return None
    return build_id
