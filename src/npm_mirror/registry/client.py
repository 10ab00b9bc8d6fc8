"""Retrying, concurrency-limited HTTP client for npm registries.

Requests are issued with ``requests`` on a thread pool and awaited from
asyncio. Every attempt of every request takes a permit from the process-wide
admission gate, so at most ``ADMISSION_QUOTA`` requests are in flight across
all clients and event loops. A client's ``concurrency`` can only narrow that
limit for its own requests.

Failed attempts are retried immediately, up to ``RETRY_ATTEMPTS`` in total,
with no delay between them.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Protocol
from urllib.parse import quote

import requests
from requests import Response
from tenacity import retry, retry_if_exception_type, stop_after_attempt

from ..errors import NetworkError, NotFoundError
from ..models.manifest import PackageInfo

logger = logging.getLogger(__name__)

ADMISSION_QUOTA = 50
RETRY_ATTEMPTS = 5
DEFAULT_TIMEOUT = 30.0
USER_AGENT = "npm-mirror (+https://github.com/npm-mirror/npm-mirror)"

_RETRYABLE = (requests.RequestException, ValueError)

# Shared by every client in the process; acquired around each outbound attempt.
_ADMISSION_GATE = threading.BoundedSemaphore(ADMISSION_QUOTA)


class HttpGet(Protocol):
    def __call__(self, url: str, *, headers: dict[str, str], timeout: float) -> Response: ...


def _http_get(url: str, *, headers: dict[str, str], timeout: float) -> Response:
    return requests.get(url, headers=headers, timeout=timeout)


def package_url(registry: str, package: str) -> str:
    """Return the metadata URL of ``package`` on ``registry``.

    Scoped names keep their ``@`` but have the separating slash encoded.
    """
    return f"{registry.rstrip('/')}/{quote(package, safe='@')}"


class RegistryClient:
    """Fetch package documents and tarballs from npm registries."""

    def __init__(
        self,
        *,
        concurrency: int = ADMISSION_QUOTA,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = USER_AGENT,
        http_get: HttpGet | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = min(concurrency, ADMISSION_QUOTA)
        self.timeout = timeout
        self.user_agent = user_agent
        self._http_get = http_get or _http_get
        self._executor: ThreadPoolExecutor | None = None
        self._gate: asyncio.Semaphore | None = None
        self._gate_loop: asyncio.AbstractEventLoop | None = None

    def __enter__(self) -> RegistryClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _client_gate(self) -> asyncio.Semaphore:
        # asyncio primitives are bound to one loop; a new run gets a fresh one.
        loop = asyncio.get_running_loop()
        if self._gate is None or self._gate_loop is not loop:
            self._gate = asyncio.Semaphore(self.concurrency)
            self._gate_loop = loop
        return self._gate

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.concurrency, thread_name_prefix="npm-mirror-http"
            )
        return self._executor

    async def _send(self, url: str) -> Response:
        """Perform one attempt under the client limit and an admission permit."""
        async with self._client_gate():
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._pool(), partial(self._admitted_get, url))

    def _admitted_get(self, url: str) -> Response:
        with _ADMISSION_GATE:
            return self._http_get(
                url, headers={"User-Agent": self.user_agent}, timeout=self.timeout
            )

    @retry(
        reraise=True,
        stop=stop_after_attempt(RETRY_ATTEMPTS),
        retry=retry_if_exception_type(_RETRYABLE),
    )
    async def _get_document(self, url: str) -> Any | None:
        """Return the decoded JSON document at ``url``, or None on HTTP 404."""
        response = await self._send(url)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        document = json.loads(response.content)
        if not isinstance(document, dict):
            raise ValueError(f"Expected a JSON object from {url}")
        return document

    @retry(
        reraise=True,
        stop=stop_after_attempt(RETRY_ATTEMPTS),
        retry=retry_if_exception_type(_RETRYABLE),
    )
    async def _get_bytes(self, url: str) -> bytes:
        response = await self._send(url)
        response.raise_for_status()
        return response.content

    async def fetch_package_info(self, registry: str, package: str) -> PackageInfo:
        """Return every published version of ``package`` on ``registry``.

        Raises:
            NotFoundError: if the registry answers 404 for the package.
            NetworkError: if every attempt failed.
        """
        url = package_url(registry, package)
        logger.debug("Fetching package document %s", url)
        try:
            document = await self._get_document(url)
        except _RETRYABLE as exc:
            raise NetworkError(url, str(exc)) from exc
        if document is None:
            raise NotFoundError(package)
        try:
            return PackageInfo.from_dict(package, document)
        except ValueError as exc:
            raise NetworkError(url, str(exc)) from exc

    async def fetch_bytes(self, url: str) -> bytes:
        """Return the raw body at ``url``, raising NetworkError once retries run out."""
        logger.debug("Downloading %s", url)
        try:
            return await self._get_bytes(url)
        except _RETRYABLE as exc:
            raise NetworkError(url, str(exc)) from exc
