from __future__ import annotations

import json
import threading
import time
from typing import Any
from urllib.parse import unquote

import pytest
import requests

from npm_mirror.registry.client import RegistryClient

TARGET = "https://new"


def make_response(url: str, status: int, content: bytes = b"") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = content
    response.url = url
    return response


class FakeRegistry:
    """In-process stand-in for an npm registry, callable like ``requests.get``."""

    def __init__(self, base: str = TARGET) -> None:
        self.base = base
        self.documents: dict[str, dict[str, Any]] = {}
        self.tarballs: dict[str, bytes] = {}
        self.failures: dict[str, int] = {}
        self.statuses: dict[str, int] = {}
        self.calls: list[str] = []
        self.delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def publish(
        self,
        name: str,
        version: str,
        *,
        integrity: str | None = None,
        shasum: str | None = None,
        content: bytes | None = None,
    ) -> str:
        short = name.rsplit("/", 1)[-1]
        tarball = f"{self.base}/{name}/-/{short}-{version}.tgz"
        dist: dict[str, Any] = {"tarball": tarball}
        if integrity is not None:
            dist["integrity"] = integrity
        if shasum is not None:
            dist["shasum"] = shasum
        document = self.documents.setdefault(name, {"name": name, "versions": {}})
        document["versions"][version] = {"name": name, "version": version, "dist": dist}
        self.tarballs[tarball] = content if content is not None else f"{name}@{version}".encode()
        return tarball

    def calls_to(self, url: str) -> int:
        return sum(1 for call in self.calls if call == url)

    def __call__(self, url: str, *, headers: dict[str, str], timeout: float) -> requests.Response:
        with self._lock:
            self.calls.append(url)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            remaining = self.failures.get(url, 0)
            if remaining:
                self.failures[url] = remaining - 1
        try:
            if self.delay:
                time.sleep(self.delay)
            if remaining:
                raise requests.ConnectionError(f"connection reset: {url}")
            if url in self.statuses:
                return make_response(url, self.statuses[url])
            if url in self.tarballs:
                return make_response(url, 200, self.tarballs[url])
            if url.startswith(self.base + "/"):
                name = unquote(url[len(self.base) + 1 :])
                if name in self.documents:
                    return make_response(url, 200, json.dumps(self.documents[name]).encode())
            return make_response(url, 404, b'{"error":"Not found"}')
        finally:
            with self._lock:
                self.in_flight -= 1


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def client(registry: FakeRegistry):
    with RegistryClient(concurrency=8, timeout=5.0, http_get=registry) as client:
        yield client


def lockfile_bytes(document: dict[str, Any]) -> bytes:
    return (json.dumps(document, indent=2) + "\n").encode("utf-8")
