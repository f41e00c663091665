"""CLI command groups for netimport."""

__all__ = [
    "alias",
    "cache",
    "run",
    "vendor",
]
