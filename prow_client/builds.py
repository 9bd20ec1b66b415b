"""
Build discovery, status checks and ranking over the CI blob store.

The blob store gives every build directory the same placeholder creation
time, so "latest" is decided from the timestamps inside the marker objects
rather than from storage metadata.
"""

import json
import logging
from collections.abc import Iterable

from prow_common import paths
from prow_common.errors import LatestBuildError, MetadataDecodeError, StorageError
from prow_common.models import Build, FinishedMetadata, Job, StartedMetadata
from prow_common.storage import StorageClient

logger = logging.getLogger(__name__)

# Timestamp reported when a marker cannot be read or decoded
UNKNOWN_TIMESTAMP = -1


class BuildStatusReader:
    """
    Reads the started/finished markers of builds.

    A build is started once started.json exists and finished once
    finished.json exists, whatever its pass/fail outcome.
    """

    def __init__(self, storage: StorageClient):
        self.storage = storage

    def is_started(self, build: Build) -> bool:
        return self.storage.exists(build.bucket, paths.started_path(build.storage_path))

    def is_finished(self, build: Build) -> bool:
        return self.storage.exists(
            build.bucket, paths.finished_path(build.storage_path)
        )

    def _read_json(self, bucket: str, path: str) -> object:
        contents = self.storage.read(bucket, path)
        try:
            return json.loads(contents)
        except ValueError as e:
            raise MetadataDecodeError(f"Invalid JSON in {bucket}/{path}: {e}") from e

    def get_started(self, build: Build) -> StartedMetadata:
        """
        Decode the build's started.json.

        Raises:
            ObjectNotFoundError: If the build has not started
            MetadataDecodeError: If the marker is not valid started metadata
            StorageError: For any other read failure
        """
        data = self._read_json(build.bucket, paths.started_path(build.storage_path))
        return StartedMetadata.from_dict(data)

    def get_finished(self, build: Build) -> FinishedMetadata:
        """
        Decode the build's finished.json.

        Raises:
            ObjectNotFoundError: If the build has not finished
            MetadataDecodeError: If the marker is not valid finished metadata
            StorageError: For any other read failure
        """
        data = self._read_json(build.bucket, paths.finished_path(build.storage_path))
        return FinishedMetadata.from_dict(data)

    def get_started_time(self, build: Build) -> int:
        """Start time of the build in epoch seconds, from started.json."""
        return self.get_started(build).timestamp

    def get_finished_time(self, build: Build) -> int:
        """Finish time of the build in epoch seconds, from finished.json."""
        return self.get_finished(build).timestamp

    def started_time_or_unknown(self, build: Build) -> int:
        """Like get_started_time(), but UNKNOWN_TIMESTAMP on storage errors."""
        try:
            return self.get_started_time(build)
        except StorageError as e:
            logger.warning(f"Cannot read start time of {build.storage_path}: {e}")
            return UNKNOWN_TIMESTAMP

    def finished_time_or_unknown(self, build: Build) -> int:
        """Like get_finished_time(), but UNKNOWN_TIMESTAMP on storage errors."""
        try:
            return self.get_finished_time(build)
        except StorageError as e:
            logger.warning(f"Cannot read finish time of {build.storage_path}: {e}")
            return UNKNOWN_TIMESTAMP


def rank_latest_builds(
    builds: Iterable[Build], status: BuildStatusReader, count: int
) -> list[Build]:
    """
    Order finished builds by start time, newest first, and keep count of them.

    Builds whose start time cannot be read sort after every build with a
    known start time and keep their input order among themselves.

    Args:
        builds: Candidate builds, typically everything under one job
        status: Reader used to check markers
        count: Maximum number of builds to return

    Returns:
        At most count finished builds, most recent first
    """
    if count <= 0:
        return []

    finished = [build for build in builds if status.is_finished(build)]
    started_times: dict[str, int | None] = {}
    for build in finished:
        try:
            started_times[build.storage_path] = status.get_started_time(build)
        except StorageError as e:
            logger.warning(f"Cannot read start time of {build.storage_path}: {e}")
            # None, not UNKNOWN_TIMESTAMP: a stored timestamp may itself be -1
            started_times[build.storage_path] = None

    def sort_key(build: Build) -> tuple[bool, int]:
        started = started_times[build.storage_path]
        if started is None:
            return (True, 0)
        return (False, -started)

    return sorted(finished, key=sort_key)[:count]


class BuildResolver:
    """
    Finds the builds recorded under a job.

    Only child directories whose name is a non-negative integer are builds;
    anything else under the job prefix (latest-build.txt, stray files) is
    skipped.
    """

    def __init__(
        self, storage: StorageClient, status: BuildStatusReader | None = None
    ):
        """
        Initialize the resolver.

        Args:
            storage: Authenticated storage client
            status: Status reader, one sharing storage by default
        """
        self.storage = storage
        self.status = status or BuildStatusReader(storage)

    def get_builds(self, job: Job) -> list[Build]:
        """All builds stored under the job, in listing order."""
        builds = []
        for child in self.storage.list_children(job.bucket, job.storage_path):
            build_id = paths.build_id_from_path(child)
            if build_id is None:
                logger.debug(f"Skipping non-build path {child}")
                continue
            builds.append(job.new_build(build_id))
        logger.debug(f"Found {len(builds)} builds under {job.storage_path}")
        return builds

    def get_finished_builds(self, job: Job) -> list[Build]:
        """Builds of the job that have a finished.json."""
        return [
            build for build in self.get_builds(job) if self.status.is_finished(build)
        ]

    def get_latest_builds(self, job: Job, count: int) -> list[Build]:
        """The count most recently started finished builds of the job."""
        return rank_latest_builds(self.get_builds(job), self.status, count)

    def get_latest_build_number(self, job: Job) -> int:
        """
        Read the job's latest-build.txt.

        Raises:
            ObjectNotFoundError: If the job has no latest-build.txt
            LatestBuildError: If its content is not a build number
        """
        contents = self.storage.read(job.bucket, job.latest_build_path)
        text = contents.decode("utf-8", errors="replace").removesuffix("\n")
        try:
            return int(text)
        except ValueError as e:
            raise LatestBuildError(
                f"Invalid build number in {job.bucket}/{job.latest_build_path}: {text!r}"
            ) from e
