"""
Unit tests for prow_client.logs.

Tests streaming log scanning, extractor behaviour and stream release on
every exit path.
"""

import pytest

from prow_client.logs import first_token_is, parse_log, tokens_containing
from prow_common.errors import LogReadError, ObjectNotFoundError
from prow_common.models import new_job
from prow_common.paths import BUCKET_NAME, JobType

BUILD = new_job("ci-serving", JobType.PERIODIC).new_build(42)
LOG_PATH = "logs/ci-serving/42/build-log.txt"


def error_lines(tokens):
    """Keep the line verbatim when its first word is ERROR."""
    if tokens and tokens[0] == "ERROR":
        return " ".join(tokens)
    return None


class TestParseLog:
    """Test suite for parse_log."""

    def test_extracts_matching_lines_in_order(self, storage):
        """Test the basic match/extract flow."""
        storage.put(BUCKET_NAME, LOG_PATH, "build ok\nERROR disk full\nbuild ok\n")

        assert parse_log(storage, BUILD, error_lines) == ["ERROR disk full"]
        assert storage.opened == storage.closed == 1

    def test_keeps_encounter_order(self, storage):
        """Test that several matches come back in file order."""
        storage.put(
            BUCKET_NAME,
            LOG_PATH,
            "ERROR first\ninfo\nERROR second\nERROR third\n",
        )

        assert parse_log(storage, BUILD, error_lines) == [
            "ERROR first",
            "ERROR second",
            "ERROR third",
        ]

    def test_passes_whitespace_tokens(self, storage):
        """Test that lines are split on any run of whitespace."""
        storage.put(BUCKET_NAME, LOG_PATH, "  a\tb   c  \n\n")
        seen = []

        def record(tokens):
            seen.append(tokens)
            return None

        assert parse_log(storage, BUILD, record) == []
        assert seen == [["a", "b", "c"], []]

    def test_empty_results_are_skipped(self, storage):
        """Test that empty-string extractions are not collected."""
        storage.put(BUCKET_NAME, LOG_PATH, "one\ntwo\n")

        assert parse_log(storage, BUILD, lambda tokens: "") == []

    def test_extractor_may_return_fragment(self, storage):
        """Test that the extractor decides what part of a line is kept."""
        storage.put(BUCKET_NAME, LOG_PATH, "step 1 took 5s\nstep 2 took 9s\n")

        durations = parse_log(storage, BUILD, lambda t: t[-1] if t[:1] == ["step"] else None)

        assert durations == ["5s", "9s"]

    def test_zero_length_log(self, storage):
        """Test that an empty log returns no fragments and no error."""
        storage.put(BUCKET_NAME, LOG_PATH, b"")

        assert parse_log(storage, BUILD, error_lines) == []
        assert storage.opened == storage.closed == 1

    def test_missing_log_raises_without_leak(self, storage):
        """Test that a missing log raises and leaves no open stream."""
        with pytest.raises(ObjectNotFoundError):
            parse_log(storage, BUILD, error_lines)

        assert storage.opened == storage.closed

    def test_read_error_carries_partial_fragments(self, storage):
        """Test that a mid-stream failure keeps what was extracted."""
        storage.put(BUCKET_NAME, LOG_PATH, "ERROR one\nok\nERROR two\nERROR three\n")
        storage.fail_stream_after[(BUCKET_NAME, LOG_PATH)] = 3

        with pytest.raises(LogReadError) as exc_info:
            parse_log(storage, BUILD, error_lines)

        assert exc_info.value.fragments == ["ERROR one", "ERROR two"]
        assert storage.opened == storage.closed == 1

    def test_extractor_exception_releases_stream(self, storage):
        """Test that the stream is closed when the extractor raises."""
        storage.put(BUCKET_NAME, LOG_PATH, "boom\n")

        def explode(tokens):
            raise RuntimeError("bad extractor")

        with pytest.raises(RuntimeError):
            parse_log(storage, BUILD, explode)

        assert storage.opened == storage.closed == 1


class TestExtractors:
    """Test suite for the ready-made extractors."""

    def test_first_token_is(self):
        check = first_token_is("ERROR")

        assert check(["ERROR", "disk", "full"]) == "ERROR disk full"
        assert check(["build", "ERROR"]) is None
        assert check([]) is None

    def test_tokens_containing(self):
        check = tokens_containing("FAIL")

        assert check(["---", "FAIL:", "TestFoo"]) == "--- FAIL: TestFoo"
        assert check(["PASS"]) is None
