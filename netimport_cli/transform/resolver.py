"""Native resolution used when every resolution stage defers.

Follows Node's lookup for local files (exact path, added extension, directory
index) and for packages (``node_modules`` directories walking up from the
importer, ``module``/``main`` entry of ``package.json``). Anything it cannot
find is left external for the runtime to handle.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from urllib.parse import urlsplit
from urllib.request import url2pathname

from ..module_resolution.chain import External
from ..module_resolution.chain import ResolutionOutcome
from ..module_resolution.chain import Resolved

logger = logging.getLogger(__name__)

RESOLVE_EXTENSIONS = (".js", ".mjs", ".cjs", ".ts", ".mts", ".jsx", ".tsx", ".json")

EXTERNAL_PREFIXES = ("node:", "data:", "bun:", "npm:")


class NodeStyleResolver:
    """Resolve local paths and installed packages the way Node does."""

    def __init__(self, root: Path):
        self.root = root

    async def __call__(self, specifier: str, importer: str | None) -> ResolutionOutcome:
        return self.resolve(specifier, importer)

    def resolve(self, specifier: str, importer: str | None) -> ResolutionOutcome:
        if specifier.startswith(EXTERNAL_PREFIXES):
            return External(specifier)

        base = Path(importer).parent if importer else self.root

        if specifier.startswith("file:"):
            found = self._probe(Path(url2pathname(urlsplit(specifier).path)))
        elif specifier.startswith("."):
            found = self._probe(Path(os.path.normpath(base / specifier)))
        elif specifier.startswith("/"):
            found = self._probe(Path(specifier))
        else:
            found = self._resolve_package(specifier, base)

        if found is None:
            logger.debug(f"[resolve] {specifier} left to the runtime")
            return External(specifier)
        return Resolved(found)

    def _probe(self, candidate: Path) -> Path | None:
        """Try the exact file, then added extensions, then a directory index."""
        if candidate.is_file():
            return candidate
        for ext in RESOLVE_EXTENSIONS:
            with_ext = candidate.with_name(candidate.name + ext)
            if with_ext.is_file():
                return with_ext
        if candidate.is_dir():
            for ext in RESOLVE_EXTENSIONS:
                index = candidate / f"index{ext}"
                if index.is_file():
                    return index
        return None

    def _resolve_package(self, specifier: str, base: Path) -> Path | None:
        name, subpath = _split_package(specifier)
        for directory in (base, *base.parents):
            package_dir = directory / "node_modules" / name
            if not package_dir.is_dir():
                continue
            if subpath:
                return self._probe(package_dir / subpath)
            return self._package_entry(package_dir)
        return None

    def _package_entry(self, package_dir: Path) -> Path | None:
        manifest = package_dir / "package.json"
        entry = "index.js"
        if manifest.is_file():
            try:
                data = json.loads(manifest.read_text(encoding="utf-8"))
                entry = data.get("module") or data.get("main") or entry
            except (OSError, json.JSONDecodeError) as e:
                logger.debug(f"Could not read {manifest}: {e}")
        return self._probe(Path(os.path.normpath(package_dir / entry)))

    def __repr__(self) -> str:
        return f"NodeStyleResolver({self.root})"


def _split_package(specifier: str) -> tuple[str, str]:
    """Split ``@scope/pkg/sub/path`` into ``("@scope/pkg", "sub/path")``."""
    parts = specifier.split("/")
    count = 2 if specifier.startswith("@") else 1
    return "/".join(parts[:count]), "/".join(parts[count:])
