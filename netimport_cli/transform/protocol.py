"""Contract between the resolver core and the module transformer/runner."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Protocol
from typing import runtime_checkable


@dataclass
class TransformResult:
    """Outcome of transforming one module.

    Attributes:
        id: Local path of the transformed module
        code: Module source with resolved specifiers rewritten
        deps: Local paths of the module's direct static dependencies
    """

    id: str
    code: str
    deps: list[str] = field(default_factory=list)


@runtime_checkable
class ModuleTransformer(Protocol):
    """What the core needs from a transformer: dependency discovery and execution."""

    async def transform(self, module_id: str) -> TransformResult:
        """Transform a module and report its direct dependencies."""
        ...

    async def execute(self, module_id: str, args: tuple[str, ...] = ()) -> None:
        """Run a module to completion, raising if it fails."""
        ...
