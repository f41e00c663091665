"""Fetcher - downloads remote modules into the cache root.

The artifact is written first and the metadata record second, so an
interrupted fetch leaves at worst an orphaned artifact that the next run
overwrites, never a record pointing at a truncated file.
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from ..console import console
from ..errors import NetworkFailure
from ..utils.error_format import escape_markup
from ..utils.error_format import format_error_message
from .identity import filename_for
from .metadata import MetadataCache

logger = logging.getLogger(__name__)


class ModuleFetcher:
    """Fetch modules over HTTP and persist them with their metadata."""

    def __init__(self, cache: MetadataCache, client: httpx.AsyncClient):
        """Initialize fetcher.

        Args:
            cache: Metadata cache whose root receives the artifacts
            client: HTTP client used for every request (owned by the caller)
        """
        self.cache = cache
        self.client = client

    async def fetch_and_persist(self, url: str) -> Path:
        """Download a module and store it in the cache.

        Args:
            url: Module URL

        Returns:
            Path to the cached artifact

        Raises:
            NetworkFailure: Request error or non-success status
            UnresolvableExtension: No supported extension could be determined
        """
        console.print(f"[green]Download[/green] {escape_markup(url)}")
        logger.info(f"Downloading module: {url}")

        try:
            response = await self.client.get(url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkFailure(
                f"Failed to fetch {url}: HTTP {e.response.status_code}",
                specifier=url,
            ) from e
        except httpx.HTTPError as e:
            raise NetworkFailure(f"Failed to fetch {url}: {format_error_message(e)}", specifier=url) from e

        filename = filename_for(url, response.headers.get("content-type"))
        destination = self.cache.root / filename
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(response.content)

        self.cache.store(url, self.cache.record_for(url, destination))
        logger.debug(f"Cached {url} -> {destination}")
        return destination
