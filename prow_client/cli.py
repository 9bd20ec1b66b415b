"""
Command line tool for inspecting CI builds in the blob store.

Provides commands to list builds, find the latest ones, show build status,
scan build logs and print the local artifacts directory.
"""

import functools
import json
import logging
import sys
from datetime import UTC, datetime

import click

from prow_common.errors import ProwError
from prow_common.models import Job, new_job
from prow_common.paths import JobType
from prow_common.storage import StorageClient

from . import config
from .builds import UNKNOWN_TIMESTAMP, BuildResolver, BuildStatusReader
from .logs import first_token_is, parse_log, tokens_containing

logger = logging.getLogger(__name__)


class Context:
    """Settings shared by all commands; storage is created on first use."""

    def __init__(self, storage_root: str | None, bucket: str, token: str | None):
        self.storage_root = storage_root
        self.bucket = bucket
        self.token = token
        self._storage: StorageClient | None = None

    @property
    def storage(self) -> StorageClient:
        if self._storage is None:
            self._storage = config.create_storage(self.storage_root, self.token)
        return self._storage


def job_options(command):
    """Add the job identity arguments and pass a Job to the command."""

    @click.argument("job_name")
    @click.option(
        "--type",
        "job_type",
        type=click.Choice([t.value for t in JobType]),
        default=JobType.PERIODIC.value,
        show_default=True,
        help="Job spec type",
    )
    @click.option("--repo", help="Repository name (presubmit jobs)")
    @click.option("--pull", "pull_id", type=int, default=0, help="Pull request number")
    @click.pass_obj
    @functools.wraps(command)
    def wrapper(obj: Context, job_name, job_type, repo, pull_id, **kwargs):
        if job_type == JobType.PRESUBMIT.value and not repo:
            fail("--repo is required for presubmit jobs")
        job = new_job(
            job_name, job_type, repo=repo, pull_id=pull_id, bucket=obj.bucket
        )
        return command(obj, job, **kwargs)

    return wrapper


def handle_errors(command):
    """Report ProwError as "Error: ..." and exit with status 1."""

    @functools.wraps(command)
    def wrapper(*args, **kwargs):
        try:
            return command(*args, **kwargs)
        except ProwError as e:
            logger.debug("Command failed", exc_info=True)
            fail(str(e))

    return wrapper


def fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def format_timestamp(timestamp: int) -> str:
    """Format epoch seconds to human-readable format."""
    if timestamp == UNKNOWN_TIMESTAMP:
        return "N/A"
    return datetime.fromtimestamp(timestamp, UTC).strftime("%Y-%m-%d %H:%M:%S")


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Logging level",
)
@click.option("--storage-root", help="Read a local bucket mirror instead of GCS")
@click.option("--bucket", help="Bucket name (default: PROW_BUCKET or knative-prow)")
@click.option("--token", help="GCS access token (default: PROW_TOKEN)")
@click.pass_context
def cli(ctx, log_level: str, storage_root, bucket, token):
    """Prow - Inspect CI jobs and builds stored in the log bucket."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = Context(storage_root, config.get_bucket(bucket), token)


@cli.command("builds")
@job_options
@click.option("--finished", is_flag=True, help="Only list finished builds")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@handle_errors
def builds_command(obj: Context, job: Job, finished: bool, json_output: bool):
    """List the builds of a job."""
    resolver = BuildResolver(obj.storage)
    builds = resolver.get_finished_builds(job) if finished else resolver.get_builds(job)
    builds.sort(key=lambda b: b.build_id)

    if json_output:
        click.echo(json.dumps([b.to_dict() for b in builds], indent=2))
        return

    if not builds:
        click.echo("No builds found.")
        return
    for build in builds:
        click.echo(f"{build.build_id:<12} {build.storage_path}")


@cli.command("latest")
@job_options
@click.option("--count", default=1, show_default=True, help="Number of builds")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@handle_errors
def latest_command(obj: Context, job: Job, count: int, json_output: bool):
    """Show the most recently started finished builds of a job."""
    resolver = BuildResolver(obj.storage)
    builds = resolver.get_latest_builds(job, count)
    started = {b.build_id: resolver.status.started_time_or_unknown(b) for b in builds}

    if json_output:
        data = [{**b.to_dict(), "started": started[b.build_id]} for b in builds]
        click.echo(json.dumps(data, indent=2))
        return

    if not builds:
        click.echo("No finished builds found.")
        return
    click.echo(f"{'BUILD':<12} {'STARTED':<22} PATH")
    for build in builds:
        click.echo(
            f"{build.build_id:<12} {format_timestamp(started[build.build_id]):<22} "
            f"{build.storage_path}"
        )


@cli.command("latest-number")
@job_options
@handle_errors
def latest_number_command(obj: Context, job: Job):
    """Print the build number recorded in the job's latest-build.txt."""
    click.echo(BuildResolver(obj.storage).get_latest_build_number(job))


@cli.command("status")
@job_options
@click.argument("build_id", type=click.IntRange(min=0))
@handle_errors
def status_command(obj: Context, job: Job, build_id: int):
    """Show whether a build started and finished, and when."""
    build = job.new_build(build_id)
    status = BuildStatusReader(obj.storage)

    started = status.is_started(build)
    finished = status.is_finished(build)
    click.echo(f"Build:    {build.storage_path}")
    click.echo(f"Started:  {'yes' if started else 'no'}")
    if started:
        click.echo(f"  At:     {format_timestamp(status.started_time_or_unknown(build))}")
    click.echo(f"Finished: {'yes' if finished else 'no'}")
    if finished:
        result = status.get_finished(build)
        click.echo(f"  At:     {format_timestamp(result.timestamp)}")
        click.echo(f"  Passed: {'yes' if result.passed else 'no'}")


@cli.command("grep")
@job_options
@click.argument("build_id", type=click.IntRange(min=0))
@click.argument("needle")
@click.option(
    "--first-word",
    is_flag=True,
    help="Match lines whose first word equals NEEDLE instead of containing it",
)
@handle_errors
def grep_command(obj: Context, job: Job, build_id: int, needle: str, first_word: bool):
    """Print the log lines of a build that match NEEDLE."""
    check_line = first_token_is(needle) if first_word else tokens_containing(needle)
    for fragment in parse_log(obj.storage, job.new_build(build_id), check_line):
        click.echo(fragment)


@cli.command("artifacts-dir")
def artifacts_dir_command():
    """Print where the running build should write its artifacts."""
    click.echo(config.get_local_artifacts_dir())


def main():
    """Main entry point for the prow CLI."""
    cli()


if __name__ == "__main__":
    main()
