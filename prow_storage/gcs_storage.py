"""
Google Cloud Storage implementation of the storage interface.

Talks to the GCS JSON API with requests. Public buckets such as the CI
system's log bucket can be read anonymously; private buckets need an OAuth2
access token passed to authenticate().
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
from urllib.parse import quote

import requests

from prow_common.errors import ObjectNotFoundError, StorageError
from prow_common.storage import StorageClient

logger = logging.getLogger(__name__)

GCS_API_URL = "https://storage.googleapis.com/storage/v1"


class GCSStorageClient(StorageClient):
    """
    GCS-backed blob store.

    One requests.Session is shared by every call so the credential set by
    authenticate() applies to all of them.
    """

    def __init__(
        self,
        api_url: str = GCS_API_URL,
        timeout: float = 30,
        session: requests.Session | None = None,
        chunk_size: int = 64 * 1024,
    ):
        """
        Initialize the GCS client.

        Args:
            api_url: Base URL of the JSON API (overridable for emulators)
            timeout: Seconds to wait for each HTTP response
            session: Session to use, a new one by default
            chunk_size: Bytes read per chunk when streaming logs
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.chunk_size = chunk_size

    def authenticate(self, credential: str | None = None) -> None:
        """Use credential as a bearer token, or go anonymous when None."""
        if credential:
            self.session.headers["Authorization"] = f"Bearer {credential}"
            logger.debug("GCS client authenticated with bearer token")
        else:
            self.session.headers.pop("Authorization", None)
            logger.debug("GCS client using anonymous access")

    def _object_url(self, bucket: str, path: str) -> str:
        return f"{self.api_url}/b/{quote(bucket, safe='')}/o/{quote(path, safe='')}"

    def _get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        stream: bool = False,
    ) -> requests.Response:
        try:
            return self.session.get(
                url, params=params, stream=stream, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise StorageError(f"Error contacting GCS: {e}") from e

    @staticmethod
    def _raise_for_status(response: requests.Response, bucket: str, path: str) -> None:
        if response.status_code == 404:
            response.close()
            raise ObjectNotFoundError(bucket, path)
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            response.close()
            raise StorageError(f"Error reading {bucket}/{path}: {e}") from e

    def exists(self, bucket: str, path: str) -> bool:
        response = self._get(self._object_url(bucket, path))
        if response.status_code == 404:
            return False
        self._raise_for_status(response, bucket, path)
        return True

    def read(self, bucket: str, path: str) -> bytes:
        response = self._get(self._object_url(bucket, path), params={"alt": "media"})
        self._raise_for_status(response, bucket, path)
        return response.content

    def list_children(self, bucket: str, prefix: str) -> list[str]:
        """
        List objects and sub-prefixes directly under prefix.

        Follows nextPageToken until the listing is exhausted.
        """
        prefix = prefix.rstrip("/") + "/"
        url = f"{self.api_url}/b/{quote(bucket, safe='')}/o"
        params: dict[str, Any] = {"prefix": prefix, "delimiter": "/"}
        children: list[str] = []

        while True:
            response = self._get(url, params=params)
            self._raise_for_status(response, bucket, prefix)
            try:
                page = response.json()
            except ValueError as e:
                raise StorageError(f"Invalid listing for {bucket}/{prefix}: {e}") from e

            children.extend(page.get("prefixes", []))
            children.extend(
                item["name"]
                for item in page.get("items", [])
                if item.get("name") and item["name"] != prefix
            )

            token = page.get("nextPageToken")
            if not token:
                break
            params["pageToken"] = token

        logger.debug(f"Listed {len(children)} children under {bucket}/{prefix}")
        return children

    @contextmanager
    def open_reader(self, bucket: str, path: str) -> Iterator[Iterator[str]]:
        response = self._get(
            self._object_url(bucket, path), params={"alt": "media"}, stream=True
        )
        self._raise_for_status(response, bucket, path)
        try:
            yield self._iter_lines(response, bucket, path)
        finally:
            response.close()

    def _iter_lines(
        self, response: requests.Response, bucket: str, path: str
    ) -> Iterator[str]:
        """
        Split the body on LF only, dropping one trailing CR per line.

        response.iter_lines() also breaks on CR and other Unicode line
        boundaries, which would cut carriage-return progress output apart.
        """
        # GCS serves logs without a charset
        response.encoding = response.encoding or "utf-8"
        pending = ""
        try:
            for chunk in response.iter_content(
                chunk_size=self.chunk_size, decode_unicode=True
            ):
                pending += chunk
                *lines, pending = pending.split("\n")
                for line in lines:
                    yield line.removesuffix("\r")
        except requests.exceptions.RequestException as e:
            raise StorageError(f"Error streaming {bucket}/{path}: {e}") from e
        if pending:
            yield pending.removesuffix("\r")
