"""Moving export and import files in and out of the process.

The exchange core only ever sees bytes; a transport decides where they
live. Two implementations ship here: a local directory and an HTTP
endpoint that serves files by name.
"""

import random
import time
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable
from urllib.parse import quote, urlparse

import requests  # type: ignore[import-untyped]

from catalog_exchange.config import (
    HTTP_BACKOFF_BASE,
    HTTP_HEADERS,
    HTTP_MAX_BACKOFF,
    HTTP_MAX_RETRIES,
    HTTP_RETRY_STATUS_CODES,
    HTTP_TIMEOUT,
)
from catalog_exchange.errors import TransportError
from catalog_exchange.logging_config import get_logger

__all__ = [
    "TransportAdapter",
    "FileSystemTransport",
    "HttpTransport",
    "create_session",
]

logger = get_logger("transport")


@runtime_checkable
class TransportAdapter(Protocol):
    """Byte-level file access used by export and import workflows."""

    def save_file(self, data: bytes, filename: str) -> str:
        """Store data under filename and return where it went."""
        ...

    def read_file(self, filename: str) -> bytes:
        ...


def _safe_name(filename: str) -> str:
    if not filename or filename in (".", "..") or "/" in filename or "\\" in filename:
        raise TransportError(f"Invalid file name: {filename!r}")
    return filename


class FileSystemTransport:
    """Reads and writes files inside one directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def save_file(self, data: bytes, filename: str) -> str:
        path = self.directory / _safe_name(filename)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise TransportError(f"Could not write {path}: {e}") from e
        logger.info(f"Wrote {len(data)} bytes to {path}")
        return str(path)

    def read_file(self, filename: str) -> bytes:
        path = self.directory / _safe_name(filename)
        try:
            return path.read_bytes()
        except OSError as e:
            raise TransportError(f"Could not read {path}: {e}") from e


def create_session() -> requests.Session:
    """Create a requests Session with the exchange headers."""
    session = requests.Session()
    session.headers.update(HTTP_HEADERS)
    session.headers.setdefault("Accept-Encoding", "gzip, deflate")
    return session


class HttpTransport:
    """Files addressed as `<base_url>/<filename>`: GET to read, PUT to save.

    Retries with exponential backoff on connection errors, timeouts and
    429/5xx responses.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = HTTP_TIMEOUT,
        max_retries: int = HTTP_MAX_RETRIES,
        sleep=time.sleep,
    ):
        parsed = urlparse(base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise TransportError(f"Unsupported transport URL: {base_url!r}")
        self.base_url = base_url.rstrip("/")
        self.session = session or create_session()
        self.timeout = timeout
        self.max_retries = max_retries
        self._sleep = sleep

    def _url(self, filename: str) -> str:
        return f"{self.base_url}/{quote(_safe_name(filename))}"

    def _backoff(self, attempt: int, reason: str) -> None:
        delay = min(HTTP_BACKOFF_BASE ** attempt, HTTP_MAX_BACKOFF) + random.uniform(0, 1)
        logger.warning(
            f"{reason}, backing off {delay:.1f}s (attempt {attempt + 1}/{self.max_retries})"
        )
        self._sleep(delay)

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        for attempt in range(self.max_retries + 1):
            try:
                resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                if attempt < self.max_retries:
                    self._backoff(attempt, f"{type(e).__name__} on {method} {url}")
                    continue
                logger.error(f"{method} {url} failed: {e}")
                raise TransportError(f"{method} {url} failed: {e}") from e

            if resp.status_code in HTTP_RETRY_STATUS_CODES and attempt < self.max_retries:
                self._backoff(attempt, f"Received {resp.status_code}")
                continue

            try:
                resp.raise_for_status()
            except requests.exceptions.HTTPError as e:
                logger.error(f"HTTP error on {method} {url}: {e}")
                raise TransportError(
                    f"HTTP Error {resp.status_code}: {resp.reason} ({method} {url})"
                ) from e
            return resp

        raise TransportError(f"{method} {url} failed")  # pragma: no cover

    def save_file(self, data: bytes, filename: str) -> str:
        url = self._url(filename)
        self._request("PUT", url, data=data, headers={"Content-Type": "text/csv; charset=utf-8"})
        logger.info(f"Uploaded {len(data)} bytes to {url}")
        return url

    def read_file(self, filename: str) -> bytes:
        return self._request("GET", self._url(filename)).content
