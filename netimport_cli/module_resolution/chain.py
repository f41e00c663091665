"""Resolution chain - ordered, short-circuiting resolution of import specifiers.

Every specifier the transformer meets is offered to each stage in turn. A
stage answers with one of three outcomes:

- ``Resolved(path)``: the specifier maps to a local file, stop here
- ``DEFER``: not mine, ask the next stage
- ``External(specifier)``: leave the specifier for the runtime to handle

When every stage defers, the transformer's native resolver decides.

All per-run state (resolution table, loaded manifest, vendor accumulator)
lives in a ``ResolutionContext`` passed to every stage call.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import TYPE_CHECKING
from typing import Protocol
from typing import runtime_checkable

if TYPE_CHECKING:
    from ..vendor.manifest import VendorManifest
    from .fetcher import ModuleFetcher
    from .metadata import MetadataCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolved:
    path: Path


@dataclass(frozen=True)
class External:
    specifier: str


class _Defer:
    _instance: _Defer | None = None

    def __new__(cls) -> _Defer:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DEFER"


DEFER = _Defer()

ResolutionOutcome = Resolved | External | _Defer

NativeResolver = Callable[[str, str | None], Awaitable[ResolutionOutcome]]


@dataclass
class ResolutionContext:
    """Per-run resolution state shared by every stage.

    Attributes:
        cache: Durable metadata cache
        fetcher: Fetcher used on cache misses
        vendor_dir: Root of vendored copies (read in manifest mode, written when vendoring)
        aliases: User-declared specifier -> URL aliases
        manifest: Loaded manifest; set only in manifest mode
        vendor: Manifest accumulator; set only in vendoring mode
        resolution_table: URL -> local path for every module resolved this run
    """

    cache: MetadataCache
    fetcher: ModuleFetcher
    vendor_dir: Path
    aliases: dict[str, str] = field(default_factory=dict)
    manifest: VendorManifest | None = None
    vendor: VendorManifest | None = None
    resolution_table: dict[str, Path] = field(default_factory=dict)
    chain: ResolutionChain | None = None

    @property
    def vendoring(self) -> bool:
        return self.vendor is not None and self.manifest is None

    def url_for_path(self, path: str | Path) -> str | None:
        """Return the URL a local path was resolved from this run, if any."""
        target = Path(path)
        for url, local in self.resolution_table.items():
            if local == target:
                return url
        return None


@runtime_checkable
class ResolutionStage(Protocol):
    """A single stage of the resolution chain."""

    name: str

    async def try_resolve(
        self, specifier: str, importer: str | None, ctx: ResolutionContext
    ) -> ResolutionOutcome: ...


class ResolutionChain:
    """Ordered list of stages in front of the transformer's native resolver."""

    def __init__(
        self,
        ctx: ResolutionContext,
        stages: Sequence[ResolutionStage],
        native: NativeResolver | None = None,
    ):
        self.ctx = ctx
        self.stages = list(stages)
        self.native = native
        ctx.chain = self

    async def resolve(self, specifier: str, importer: str | None = None) -> ResolutionOutcome:
        """Resolve a specifier through every stage, then native resolution."""
        return await self._run(self.stages, specifier, importer)

    async def resolve_after(
        self, stage: ResolutionStage, specifier: str, importer: str | None = None
    ) -> ResolutionOutcome:
        """Resolve a specifier with only the stages that follow ``stage``.

        Used by observing stages that need to know where a specifier would
        end up without redirecting it themselves.
        """
        index = self.stages.index(stage)
        return await self._run(self.stages[index + 1 :], specifier, importer)

    async def _run(
        self, stages: Sequence[ResolutionStage], specifier: str, importer: str | None
    ) -> ResolutionOutcome:
        for stage in stages:
            outcome = await stage.try_resolve(specifier, importer, self.ctx)
            if outcome is not DEFER:
                logger.debug(f"[resolve] {specifier} -> {outcome} ({stage.name})")
                return outcome

        if self.native is not None:
            return await self.native(specifier, importer)
        return External(specifier)

    def __repr__(self) -> str:
        return f"ResolutionChain({', '.join(s.name for s in self.stages)})"
