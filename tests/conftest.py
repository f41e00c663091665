"""Pytest configuration for netimport tests.

Every test gets its own HOME, cache directory and log file, and network
access goes through ``FakeRemote`` (an ``httpx.MockTransport``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

import httpx
import pytest
from rich.logging import RichHandler

from netimport_cli.logging_setup import JsonlHandler
from netimport_cli.runtime import RunConfig
from netimport_cli.runtime import Runtime
from netimport_cli.runtime import create_runtime
from netimport_cli.settings import NetImportSettings


@dataclass
class FakeRemote:
    """In-memory web server: URL -> (body, content type, status)."""

    modules: dict[str, tuple[bytes, str | None, int]] = field(default_factory=dict)
    requests: list[str] = field(default_factory=list)

    def add(self, url: str, body: str | bytes, content_type: str | None = "text/javascript", status: int = 200):
        if isinstance(body, str):
            body = body.encode()
        self.modules[url] = (body, content_type, status)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url not in self.modules:
            return httpx.Response(404, content=b"not found")
        body, content_type, status = self.modules[url]
        headers = {"content-type": content_type} if content_type else {}
        return httpx.Response(status, content=body, headers=headers)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def count(self, url: str) -> int:
        return self.requests.count(url)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point HOME, the cache and the log file into the test's tmp_path."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("NETIMPORT_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setattr("netimport_cli.logging_setup.DEFAULT_PATH", str(tmp_path / "logs" / "netimport.log.jsonl"))
    yield home

    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, (JsonlHandler, RichHandler)):
            root.removeHandler(handler)


@pytest.fixture
def cache_dir(tmp_path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def project(tmp_path, monkeypatch) -> Path:
    """Empty project directory used as cwd."""
    root = tmp_path / "project"
    root.mkdir()
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def offline() -> FakeRemote:
    """A remote serving nothing, for runs that must not need the network."""
    return FakeRemote()


@pytest.fixture
def make_runtime(project, remote):
    """Factory for runtimes wired to the fake remote."""

    def _make(
        script: str = "main.js",
        mode: str = "run",
        import_map: Path | None = None,
        aliases: dict[str, str] | None = None,
        fake: FakeRemote | None = None,
    ) -> Runtime:
        config = RunConfig(
            script=script,
            mode=mode,
            settings=NetImportSettings(aliases=aliases or {}),
            import_map=import_map,
            root=project,
        )
        return create_runtime(config, transport=(fake or remote).transport)

    return _make
