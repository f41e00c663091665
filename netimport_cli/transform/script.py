"""Script transformer - static import discovery, specifier rewriting and execution.

Each module is scanned for static ``import``/``export ... from`` specifiers.
Specifiers are resolved through the resolution chain, and the ones that land
on local files are rewritten to ``file://`` URLs of rewritten copies in the
build directory. The entry copy is then executed with Node.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import re
from pathlib import Path

from ..errors import ExecutionFailure
from ..module_resolution.chain import ResolutionChain
from ..module_resolution.chain import Resolved
from ..module_resolution.identity import is_url
from .protocol import TransformResult

logger = logging.getLogger(__name__)

IMPORT_PATTERN = re.compile(
    r"""(?P<prefix>(?<![\w$.])(?:import|export)\s*(?:[\w$*{}\s,]*?\s*\bfrom\s*)?)"""
    r"""(?P<quote>["'])(?P<specifier>[^"'\n]+)(?P=quote)"""
)

UNSCANNED_SUFFIXES = frozenset({".json"})


def scan_imports(source: str) -> list[str]:
    """Return the static import specifiers of a module, in order, without duplicates."""
    seen: dict[str, None] = {}
    for match in IMPORT_PATTERN.finditer(source):
        seen.setdefault(match.group("specifier"), None)
    return list(seen)


class ScriptTransformer:
    """Transform and run ES module scripts whose imports go through a resolution chain."""

    def __init__(self, chain: ResolutionChain, root: Path, build_dir: Path, node: str = "node"):
        """Initialize transformer.

        Args:
            chain: Resolution chain consulted for every import specifier
            root: Directory relative entry paths are resolved from
            build_dir: Directory receiving rewritten copies for execution
            node: Node executable used to run the entry module
        """
        self.chain = chain
        self.root = root
        self.build_dir = build_dir
        self.node = node
        self._results: dict[str, TransformResult] = {}

    async def locate(self, module_id: str) -> Path:
        """Turn a module id (local path or URL) into a local file path."""
        if is_url(module_id):
            outcome = await self.chain.resolve(module_id)
            if not isinstance(outcome, Resolved):
                raise FileNotFoundError(f"Cannot resolve entry module {module_id}")
            return outcome.path
        path = Path(module_id)
        return path if path.is_absolute() else (self.root / path).absolute()

    async def transform(self, module_id: str) -> TransformResult:
        """Transform a module once; later calls return the memoized result."""
        path = await self.locate(module_id)
        key = str(path)
        if key in self._results:
            return self._results[key]

        source = path.read_text(encoding="utf-8")
        if path.suffix in UNSCANNED_SUFFIXES:
            result = TransformResult(id=key, code=source)
            self._results[key] = result
            return result

        deps: list[str] = []
        rewrites: dict[str, str] = {}
        for specifier in scan_imports(source):
            outcome = await self.chain.resolve(specifier, key)
            if not isinstance(outcome, Resolved):
                continue
            dep = str(outcome.path)
            if dep not in deps:
                deps.append(dep)
            rewrites[specifier] = self.output_path(outcome.path).as_uri()

        def _rewrite(match: re.Match) -> str:
            target = rewrites.get(match.group("specifier"))
            if target is None:
                return match.group(0)
            quote = match.group("quote")
            return f"{match.group('prefix')}{quote}{target}{quote}"

        result = TransformResult(id=key, code=IMPORT_PATTERN.sub(_rewrite, source), deps=deps)
        self._results[key] = result
        logger.debug(f"Transformed {key} ({len(deps)} deps)")
        return result

    def output_path(self, path: Path) -> Path:
        """Location of the rewritten copy of a module in the build directory."""
        digest = hashlib.sha256(str(path).encode()).hexdigest()[:16]
        suffix = ".mjs" if path.suffix in (".js", ".mjs") else path.suffix
        return self.build_dir / f"{path.stem}.{digest}{suffix}"

    async def build(self, module_id: str) -> Path:
        """Transform a module graph and write every rewritten module to the build dir.

        Returns:
            Path of the rewritten entry module
        """
        entry = await self.transform(module_id)
        pending = [entry]
        written: set[str] = set()
        while pending:
            result = pending.pop()
            if result.id in written:
                continue
            written.add(result.id)
            target = self.output_path(Path(result.id))
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(result.code, encoding="utf-8")
            for dep in result.deps:
                if dep not in written:
                    pending.append(await self.transform(dep))
        return self.output_path(Path(entry.id))

    async def execute(self, module_id: str, args: tuple[str, ...] = ()) -> None:
        """Build and run a module with Node.

        Raises:
            ExecutionFailure: Node could not be started or exited non-zero
        """
        entry = await self.build(module_id)
        logger.info(f"Executing {module_id} via {entry}")
        try:
            process = await asyncio.create_subprocess_exec(self.node, str(entry), *args)
        except OSError as e:
            raise ExecutionFailure(f"Could not start '{self.node}': {e}", specifier=module_id) from e

        returncode = await process.wait()
        if returncode != 0:
            raise ExecutionFailure(
                f"{module_id} exited with status {returncode}",
                specifier=module_id,
                returncode=returncode,
            )

    def __repr__(self) -> str:
        return f"ScriptTransformer(root={self.root}, build_dir={self.build_dir})"
