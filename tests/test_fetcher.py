"""Tests for ModuleFetcher."""

import httpx
import pytest

from netimport_cli.errors import NetworkFailure
from netimport_cli.errors import UnresolvableExtension
from netimport_cli.module_resolution.fetcher import ModuleFetcher
from netimport_cli.module_resolution.identity import filename_for
from netimport_cli.module_resolution.metadata import MetadataCache


def _fetcher(tmp_path, remote):
    cache = MetadataCache(tmp_path / "cache")
    return ModuleFetcher(cache, httpx.AsyncClient(transport=remote.transport)), cache


@pytest.mark.asyncio
async def test_fetch_writes_artifact_and_metadata(tmp_path, remote):
    url = "https://example.test/a.js"
    remote.add(url, "export default 1;\n")
    fetcher, cache = _fetcher(tmp_path, remote)

    path = await fetcher.fetch_and_persist(url)
    await fetcher.client.aclose()

    assert path == cache.root / filename_for(url)
    assert path.read_text() == "export default 1;\n"
    record = cache.lookup(url)
    assert record is not None
    assert record.path == path


@pytest.mark.asyncio
async def test_extension_from_content_type(tmp_path, remote):
    url = "https://esm.example/react@18.2.0"
    remote.add(url, "export default {};\n", content_type="application/javascript; charset=utf-8")
    fetcher, _ = _fetcher(tmp_path, remote)

    path = await fetcher.fetch_and_persist(url)
    await fetcher.client.aclose()

    assert path.suffix == ".js"


@pytest.mark.asyncio
async def test_url_extension_beats_content_type(tmp_path, remote):
    url = "https://example.test/types.ts"
    remote.add(url, "export const x: number = 1;\n", content_type="text/plain")
    fetcher, _ = _fetcher(tmp_path, remote)

    path = await fetcher.fetch_and_persist(url)
    await fetcher.client.aclose()

    assert path.suffix == ".ts"


@pytest.mark.asyncio
async def test_http_error_raises_network_failure(tmp_path, remote):
    url = "https://example.test/missing.js"
    fetcher, cache = _fetcher(tmp_path, remote)

    with pytest.raises(NetworkFailure) as exc_info:
        await fetcher.fetch_and_persist(url)
    await fetcher.client.aclose()

    assert exc_info.value.specifier == url
    assert "404" in str(exc_info.value)
    assert cache.lookup(url) is None


@pytest.mark.asyncio
async def test_transport_error_raises_network_failure(tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    cache = MetadataCache(tmp_path / "cache")
    fetcher = ModuleFetcher(cache, httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    with pytest.raises(NetworkFailure):
        await fetcher.fetch_and_persist("https://example.test/a.js")
    await fetcher.client.aclose()


@pytest.mark.asyncio
async def test_unmappable_content_type_stores_nothing(tmp_path, remote):
    url = "https://example.test/page"
    remote.add(url, "<html></html>", content_type="text/html")
    fetcher, cache = _fetcher(tmp_path, remote)

    with pytest.raises(UnresolvableExtension):
        await fetcher.fetch_and_persist(url)
    await fetcher.client.aclose()

    assert not cache.meta_path(url).exists()
    assert cache.records() == []
