"""Resolution stages, in chain order.

1. ManifestOverrideStage - vendored manifest entries win over everything
2. VendorCaptureStage - copies what the later stages resolve into the vendor root
3. RelativeRewriteStage - resolves ``./x`` and ``/x`` inside remote modules in URL space
4. NetworkFetchStage - serves URLs from the run table, the cache or the network
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..vendor.manifest import copy_into_vendor
from ..vendor.manifest import module_to_vendor_path
from .chain import DEFER
from .chain import ResolutionContext
from .chain import ResolutionOutcome
from .chain import ResolutionStage
from .chain import Resolved
from .identity import is_url
from .identity import resolve_relative
from .identity import vendor_path_for_url

logger = logging.getLogger(__name__)


class ManifestOverrideStage:
    """Resolve specifiers listed in a loaded manifest to their vendored copy.

    Never touches the network, even for specifiers that are URLs. Entries
    pointing outside the vendor root are ignored.
    """

    name = "manifest"

    async def try_resolve(self, specifier: str, importer: str | None, ctx: ResolutionContext) -> ResolutionOutcome:
        if ctx.manifest is None:
            return DEFER
        relative = ctx.manifest.imports.get(specifier)
        if relative is None:
            return DEFER

        path = ctx.vendor_dir / relative
        vendor_root = Path(os.path.normpath(ctx.vendor_dir))
        if not Path(os.path.normpath(path)).is_relative_to(vendor_root):
            logger.warning(f"Ignoring manifest entry {specifier}: {relative} is outside {ctx.vendor_dir}")
            return DEFER

        # Lets relative imports inside the vendored copy resolve in URL space.
        url = _source_url(specifier, relative, ctx.manifest.imports, ctx.aliases)
        if url is not None:
            ctx.resolution_table.setdefault(url, path)
        return Resolved(path)


def _source_url(specifier: str, relative: str, imports: dict[str, str], aliases: dict[str, str]) -> str | None:
    """URL a manifest entry was vendored from, if it came from the network."""
    url = aliases.get(specifier, specifier)
    if is_url(url):
        return url
    # Aliases are also recorded under their URL when vendored.
    for key, value in imports.items():
        if value == relative and is_url(key):
            return key
    return None


class VendorCaptureStage:
    """Observe resolutions while vendoring and archive the resolved files.

    Always defers, so the vendoring run executes exactly what a normal run would.
    """

    name = "vendor"

    async def try_resolve(self, specifier: str, importer: str | None, ctx: ResolutionContext) -> ResolutionOutcome:
        if not ctx.vendoring or ctx.vendor is None or ctx.chain is None:
            return DEFER
        if specifier.startswith((".", "/")) or specifier in ctx.vendor.imports:
            return DEFER

        outcome = await ctx.chain.resolve_after(self, specifier, importer)
        if not isinstance(outcome, Resolved):
            logger.debug(f"Not vendoring {specifier}: left to the runtime")
            return DEFER

        url = ctx.aliases.get(specifier, specifier)
        if is_url(url):
            relative = vendor_path_for_url(url, outcome.path.suffix)
        else:
            relative = module_to_vendor_path(outcome.path)

        copy_into_vendor(specifier, outcome.path, ctx.vendor_dir / relative)
        ctx.vendor.imports[specifier] = relative
        if url != specifier:
            # Keeps offline replay of the alias working without the settings file.
            ctx.vendor.imports.setdefault(url, relative)
        return DEFER


class RelativeRewriteStage:
    """Resolve relative imports of network modules against their original URL.

    The transformer only sees the cached file, so ``./b.js`` imported from the
    cached copy of ``https://host/dir/a.js`` is rewritten to
    ``https://host/dir/b.js`` and sent through the chain again. Root-relative
    specifiers such as ``/v135/x.js`` resolve against the importer's origin.
    """

    name = "relative"

    async def try_resolve(self, specifier: str, importer: str | None, ctx: ResolutionContext) -> ResolutionOutcome:
        if importer is None or not specifier.startswith((".", "/")) or ctx.chain is None:
            return DEFER
        base_url = ctx.url_for_path(importer)
        if base_url is None:
            return DEFER

        url = resolve_relative(base_url, specifier)
        logger.debug(f"[resolve] {specifier} from {base_url} -> {url}")
        return await ctx.chain.resolve(url, importer)


class NetworkFetchStage:
    """Resolve URLs (and aliases of URLs) to cached local files.

    Order: this run's resolution table, then the metadata cache, then the
    network. Each URL is fetched at most once per run.
    """

    name = "network"

    async def try_resolve(self, specifier: str, importer: str | None, ctx: ResolutionContext) -> ResolutionOutcome:
        url = ctx.aliases.get(specifier, specifier)
        if not is_url(url):
            return DEFER

        if (path := ctx.resolution_table.get(url)) is not None:
            return Resolved(path)

        record = ctx.cache.lookup(url)
        if record is not None:
            logger.debug(f"Using cached module: {url} -> {record.path}")
            path = record.path
        else:
            path = await ctx.fetcher.fetch_and_persist(url)

        ctx.resolution_table[url] = path
        return Resolved(path)


def default_stages() -> list[ResolutionStage]:
    """Stages in their fixed precedence order."""
    return [ManifestOverrideStage(), VendorCaptureStage(), RelativeRewriteStage(), NetworkFetchStage()]
