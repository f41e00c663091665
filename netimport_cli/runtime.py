"""Run assembly - single entry point for wiring a netimport run.

The canonical assembly order:
1. Pick the cache, vendor and build directories
2. Create the HTTP client, metadata cache and fetcher
3. Create the resolution context for the mode (manifest / vendor / plain)
4. Build the resolution chain in front of the native resolver
5. Create the script transformer

Run and vendor modes are mutually exclusive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Literal

import httpx

from .errors import FATAL_ERRORS
from .module_resolution.chain import ResolutionChain
from .module_resolution.chain import ResolutionContext
from .module_resolution.fetcher import ModuleFetcher
from .module_resolution.metadata import MetadataCache
from .module_resolution.stages import default_stages
from .paths import get_build_dir
from .paths import get_cache_dir
from .paths import get_vendor_dir
from .settings import NetImportSettings
from .transform.resolver import NodeStyleResolver
from .transform.script import ScriptTransformer
from .vendor.builder import VendorManifestBuilder
from .vendor.manifest import VendorManifest
from .vendor.manifest import load_manifest

logger = logging.getLogger(__name__)

USER_AGENT = "netimport"


@dataclass
class RunConfig:
    """All parameters of a single run."""

    script: str
    mode: Literal["run", "vendor"] = "run"
    settings: NetImportSettings = field(default_factory=NetImportSettings)
    import_map: Path | None = None
    root: Path = field(default_factory=Path.cwd)
    script_args: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.mode == "vendor" and self.import_map is not None:
            raise ValueError("Vendoring and --import-map are mutually exclusive")


@dataclass
class Runtime:
    """Everything a run needs, ready for execution or vendoring."""

    config: RunConfig
    context: ResolutionContext
    chain: ResolutionChain
    transformer: ScriptTransformer
    client: httpx.AsyncClient

    @property
    def vendor_dir(self) -> Path:
        return self.context.vendor_dir

    async def cleanup(self) -> None:
        await self.client.aclose()


def create_http_client(
    settings: NetImportSettings, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=settings.http.timeout,
        transport=transport,
        headers={"User-Agent": USER_AGENT},
    )


def create_runtime(config: RunConfig, transport: httpx.AsyncBaseTransport | None = None) -> Runtime:
    """Assemble a runtime for a run.

    Args:
        config: Run parameters
        transport: Optional HTTP transport (tests inject ``httpx.MockTransport``)

    Returns:
        Runtime; the caller must ``await runtime.cleanup()``
    """
    settings = config.settings
    root = config.root.absolute()
    cache_dir = get_cache_dir(settings)

    manifest = None
    if config.import_map is not None:
        import_map = config.import_map if config.import_map.is_absolute() else root / config.import_map
        manifest = load_manifest(import_map)
        if manifest is None:
            logger.warning(f"No usable manifest at {import_map}, resolving without it")
        # Manifest paths are relative to the directory holding the manifest.
        vendor_dir = import_map.parent
    else:
        vendor_dir = get_vendor_dir(settings, root)

    client = create_http_client(settings, transport)
    cache = MetadataCache(cache_dir)
    context = ResolutionContext(
        cache=cache,
        fetcher=ModuleFetcher(cache, client),
        vendor_dir=vendor_dir,
        aliases=dict(settings.aliases),
        manifest=manifest,
        vendor=VendorManifest() if config.mode == "vendor" else None,
    )
    chain = ResolutionChain(context, default_stages(), native=NodeStyleResolver(root))
    transformer = ScriptTransformer(chain, root, get_build_dir(cache_dir), node=settings.runtime.node)

    logger.debug(f"Runtime ready: mode={config.mode} cache={cache_dir} vendor={vendor_dir} {chain}")
    return Runtime(config=config, context=context, chain=chain, transformer=transformer, client=client)


async def execute_script(runtime: Runtime) -> None:
    """Run the configured script, closing the runtime afterwards."""
    try:
        await runtime.transformer.execute(runtime.config.script, runtime.config.script_args)
    finally:
        await runtime.cleanup()


async def vendor_script(runtime: Runtime) -> tuple[Path, BaseException | None]:
    """Vendor the configured script's dependency graph.

    Fetch, extension, copy and empty-graph failures abort the run without
    writing a manifest. Any other failure while walking the graph is returned
    alongside the manifest path; the manifest collected so far is still written.

    Returns:
        Tuple of (manifest path, non-fatal error or None)
    """
    if runtime.context.vendor is None:
        raise ValueError("Runtime was not created in vendor mode")
    builder = VendorManifestBuilder(runtime.transformer, runtime.context.vendor, runtime.vendor_dir)

    error: BaseException | None = None
    try:
        await builder.run(runtime.config.script)
    except FATAL_ERRORS:
        raise
    except Exception as e:
        logger.error(f"Vendoring {runtime.config.script} failed: {e}")
        error = e
    finally:
        await runtime.cleanup()

    return builder.persist(), error
