"""Module transformer contract and the bundled script transformer."""

from .protocol import ModuleTransformer
from .protocol import TransformResult
from .resolver import NodeStyleResolver
from .script import ScriptTransformer
from .script import scan_imports

__all__ = [
    "ModuleTransformer",
    "NodeStyleResolver",
    "ScriptTransformer",
    "TransformResult",
    "scan_imports",
]
