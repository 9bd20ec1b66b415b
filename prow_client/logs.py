"""
Build log scanning.

A build log is streamed line by line and each line, split into whitespace
separated words, is handed to a caller-supplied extractor. Whatever the
extractor returns (when non-empty) is collected in file order.
"""

import logging
from collections.abc import Callable

from prow_common.errors import LogReadError, StorageError
from prow_common.models import Build
from prow_common.storage import StorageClient

logger = logging.getLogger(__name__)

# Takes the words of one log line, returns the fragment to keep or None
LineExtractor = Callable[[list[str]], str | None]


def parse_log(
    storage: StorageClient, build: Build, check_line: LineExtractor
) -> list[str]:
    """
    Scan a build's build-log.txt with check_line.

    Args:
        storage: Authenticated storage client
        build: Build whose log is scanned
        check_line: Extractor called with each line's words

    Returns:
        Non-empty results of check_line, in log order

    Raises:
        ObjectNotFoundError: If the build has no log
        StorageError: If the log cannot be opened
        LogReadError: If reading fails part way; carries the fragments
            collected before the failure
    """
    fragments: list[str] = []

    with storage.open_reader(build.bucket, build.build_log_path) as lines:
        try:
            for line in lines:
                fragment = check_line(line.split())
                if fragment:
                    fragments.append(fragment)
        except LogReadError:
            raise
        except StorageError as e:
            raise LogReadError(
                f"Error reading log of {build.storage_path}: {e}", fragments
            ) from e

    logger.debug(f"Extracted {len(fragments)} fragments from {build.build_log_path}")
    return fragments


def first_token_is(word: str) -> LineExtractor:
    """Extractor keeping whole lines whose first word is word."""

    def check_line(tokens: list[str]) -> str | None:
        if tokens and tokens[0] == word:
            return " ".join(tokens)
        return None

    return check_line


def tokens_containing(needle: str) -> LineExtractor:
    """Extractor keeping whole lines where any word contains needle."""

    def check_line(tokens: list[str]) -> str | None:
        if any(needle in token for token in tokens):
            return " ".join(tokens)
        return None

    return check_line
