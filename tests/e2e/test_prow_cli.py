"""
End-to-end tests for the prow CLI.

Runs the installed "prow" command against a bucket mirrored into a
temporary directory.
"""

import json
import os
import subprocess

import pytest


@pytest.fixture
def storage_root(tmp_path):
    """Create a local bucket with one periodic and one presubmit job."""
    bucket = tmp_path / "knative-prow"
    job = bucket / "logs" / "ci-serving"

    builds = {
        "100": {"started": 1000, "finished": 1100, "passed": True},
        "101": {"started": 2000, "finished": 2100, "passed": False},
        "102": {"started": 3000},
    }
    for build_id, markers in builds.items():
        build_dir = job / build_id
        build_dir.mkdir(parents=True)
        (build_dir / "started.json").write_text(
            json.dumps({"timestamp": markers["started"]})
        )
        if "finished" in markers:
            (build_dir / "finished.json").write_text(
                json.dumps({"timestamp": markers["finished"], "passed": markers["passed"]})
            )
    (job / "latest-build.txt").write_text("102\n")
    (job / "101" / "build-log.txt").write_text(
        "build ok\nERROR disk full\n--- FAIL: TestRoute\nbuild ok\n"
    )

    pr_build = bucket / "pr-logs" / "pull" / "knative_serving" / "55" / "unit" / "7"
    pr_build.mkdir(parents=True)
    (pr_build / "started.json").write_text(json.dumps({"timestamp": 10}))

    return tmp_path


def run_prow(*args, storage_root=None, env=None):
    """Helper to run prow commands."""
    cmd_env = os.environ.copy()
    cmd_env.pop("PROW_TOKEN", None)
    cmd_env.pop("PROW_BUCKET", None)
    cmd_env.pop("ARTIFACTS", None)
    cmd_env.update(env or {})
    if storage_root is not None:
        cmd_env["PROW_STORAGE_ROOT"] = str(storage_root)

    return subprocess.run(
        ["prow", *args],
        capture_output=True,
        text=True,
        env=cmd_env,
    )


class TestBuildCommands:
    """Test suite for build discovery commands."""

    def test_list_builds(self, storage_root):
        result = run_prow("builds", "ci-serving", storage_root=storage_root)

        assert result.returncode == 0, result.stderr
        ids = [line.split()[0] for line in result.stdout.splitlines()]
        assert ids == ["100", "101", "102"]

    def test_list_finished_builds_json(self, storage_root):
        result = run_prow(
            "builds", "ci-serving", "--finished", "--json", storage_root=storage_root
        )

        assert result.returncode == 0, result.stderr
        builds = json.loads(result.stdout)
        assert [b["build_id"] for b in builds] == [100, 101]
        assert builds[0]["storage_path"] == "logs/ci-serving/100"

    def test_latest(self, storage_root):
        result = run_prow(
            "latest", "ci-serving", "--count", "5", "--json", storage_root=storage_root
        )

        assert result.returncode == 0, result.stderr
        latest = json.loads(result.stdout)
        assert [(b["build_id"], b["started"]) for b in latest] == [(101, 2000), (100, 1000)]

    def test_latest_number(self, storage_root):
        result = run_prow("latest-number", "ci-serving", storage_root=storage_root)

        assert result.returncode == 0, result.stderr
        assert result.stdout.strip() == "102"

    def test_presubmit_job(self, storage_root):
        result = run_prow(
            "builds", "unit", "--type", "presubmit", "--repo", "serving", "--pull", "55",
            storage_root=storage_root,
        )

        assert result.returncode == 0, result.stderr
        assert "pr-logs/pull/knative_serving/55/unit/7" in result.stdout

    def test_presubmit_requires_repo(self, storage_root):
        result = run_prow("builds", "unit", "--type", "presubmit", storage_root=storage_root)

        assert result.returncode == 1
        assert "--repo is required" in result.stderr

    def test_unknown_type_rejected(self, storage_root):
        result = run_prow("builds", "job", "--type", "weekly", storage_root=storage_root)

        assert result.returncode != 0


class TestStatusAndGrep:
    """Test suite for status and log commands."""

    def test_status_finished_build(self, storage_root):
        result = run_prow("status", "ci-serving", "101", storage_root=storage_root)

        assert result.returncode == 0, result.stderr
        assert "Started:  yes" in result.stdout
        assert "Finished: yes" in result.stdout
        assert "Passed: no" in result.stdout

    def test_status_running_build(self, storage_root):
        result = run_prow("status", "ci-serving", "102", storage_root=storage_root)

        assert result.returncode == 0, result.stderr
        assert "Finished: no" in result.stdout

    def test_grep_first_word(self, storage_root):
        result = run_prow(
            "grep", "ci-serving", "101", "ERROR", "--first-word", storage_root=storage_root
        )

        assert result.returncode == 0, result.stderr
        assert result.stdout.splitlines() == ["ERROR disk full"]

    def test_grep_contains(self, storage_root):
        result = run_prow("grep", "ci-serving", "101", "FAIL", storage_root=storage_root)

        assert result.returncode == 0, result.stderr
        assert result.stdout.splitlines() == ["--- FAIL: TestRoute"]

    def test_grep_missing_log(self, storage_root):
        result = run_prow("grep", "ci-serving", "100", "ERROR", storage_root=storage_root)

        assert result.returncode == 1
        assert "Error: object not found" in result.stderr


class TestArtifactsDir:
    """Test suite for the artifacts-dir command."""

    def test_uses_artifacts_env(self, tmp_path):
        result = run_prow("artifacts-dir", env={"ARTIFACTS": str(tmp_path / "out")})

        assert result.returncode == 0, result.stderr
        assert result.stdout.strip() == str(tmp_path / "out")

    def test_defaults_to_artifacts(self):
        """Test the fallback when ARTIFACTS is unset."""
        result = run_prow("artifacts-dir")

        assert result.returncode == 0, result.stderr
        assert result.stdout.strip() == "artifacts"
