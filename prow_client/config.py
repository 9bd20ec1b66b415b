"""
Configuration lookup for the prow tools.

Values come from, in priority order: command line arguments, environment
variables, then the config file ~/.prow/config (one key=value per line).
"""

import logging
import os
from pathlib import Path

from prow_common.paths import ARTIFACTS_DIR, BUCKET_NAME
from prow_common.storage import StorageClient
from prow_storage import GCSStorageClient, LocalStorageClient

logger = logging.getLogger(__name__)


def get_config_path() -> Path:
    return Path.home() / ".prow" / "config"


def read_config_file(path: Path | None = None) -> dict[str, str]:
    """
    Read key=value pairs from the config file.

    Missing or unreadable files yield an empty mapping. Blank lines and lines
    starting with "#" are ignored.
    """
    path = path or get_config_path()
    values: dict[str, str] = {}
    if not path.exists():
        return values
    try:
        content = path.read_text()
    except OSError as e:
        logger.warning(f"Cannot read config file {path}: {e}")
        return values

    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip()
    return values


def _lookup(cli_arg: str | None, env_var: str, config_key: str) -> str | None:
    # Priority 1: Command line argument
    if cli_arg:
        return cli_arg

    # Priority 2: Environment variable
    env_value = os.environ.get(env_var)
    if env_value:
        return env_value

    # Priority 3: Config file
    return read_config_file().get(config_key) or None


def get_bucket(cli_arg: str | None = None) -> str:
    """Bucket to read from (PROW_BUCKET, config "bucket", default knative-prow)."""
    return _lookup(cli_arg, "PROW_BUCKET", "bucket") or BUCKET_NAME


def get_token(cli_arg: str | None = None) -> str | None:
    """OAuth2 access token for GCS (PROW_TOKEN, config "token"), None if unset."""
    return _lookup(cli_arg, "PROW_TOKEN", "token")


def get_storage_root(cli_arg: str | None = None) -> str | None:
    """Local mirror directory (PROW_STORAGE_ROOT, config "storage_root")."""
    return _lookup(cli_arg, "PROW_STORAGE_ROOT", "storage_root")


def get_local_artifacts_dir() -> str:
    """
    Directory where the CI system collects artifacts of the running build.

    Taken from the ARTIFACTS environment variable, "artifacts" when unset.
    """
    directory = os.environ.get("ARTIFACTS")
    if not directory:
        logger.info(f"Env variable ARTIFACTS not set. Using {ARTIFACTS_DIR} instead.")
        directory = ARTIFACTS_DIR
    return directory


def create_storage(
    storage_root: str | None = None, token: str | None = None
) -> StorageClient:
    """
    Create and authenticate the storage client.

    A configured storage root selects the local mirror, GCS otherwise.
    """
    root = get_storage_root(storage_root)
    storage: StorageClient
    if root:
        logger.info(f"Using local storage at {root}")
        storage = LocalStorageClient(root)
    else:
        storage = GCSStorageClient()
    storage.authenticate(get_token(token))
    return storage
