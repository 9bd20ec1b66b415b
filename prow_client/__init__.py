"""
Prow Client module.

Build discovery, ranking and log scanning on top of a storage client, plus
configuration lookup and the "prow" command line tool.
"""

from .builds import (
    UNKNOWN_TIMESTAMP,
    BuildResolver,
    BuildStatusReader,
    rank_latest_builds,
)
from .logs import LineExtractor, first_token_is, parse_log, tokens_containing

__all__ = [
    "UNKNOWN_TIMESTAMP",
    "BuildResolver",
    "BuildStatusReader",
    "LineExtractor",
    "first_token_is",
    "parse_log",
    "rank_latest_builds",
    "tokens_containing",
]
