"""Console presentation helpers."""

from .error_display import display_error

__all__ = ["display_error"]
