"""Error kinds raised while resolving, fetching, vendoring and running modules.

Every error names the specifier that caused it so the CLI can print a
diagnostic that points at the failing import.
"""

from __future__ import annotations


class NetImportError(Exception):
    """Base class for unrecoverable netimport failures."""

    exit_code = 1

    def __init__(self, message: str, specifier: str | None = None):
        super().__init__(message)
        self.specifier = specifier


class NetworkFailure(NetImportError):
    """Raised when a request fails or returns a non-success status."""


class UnresolvableExtension(NetImportError):
    """Raised when neither the URL nor the content type yields a module extension."""


class VendorCopyFailure(NetImportError):
    """Raised when a resolved artifact cannot be copied into the vendor root."""


class NoDependenciesFound(NetImportError):
    """Raised when vendoring is requested for a script without dependencies."""


class ExecutionFailure(NetImportError):
    """Raised when the target script fails during execution."""

    def __init__(self, message: str, specifier: str | None = None, returncode: int | None = None):
        super().__init__(message, specifier)
        self.returncode = returncode


class SettingsError(NetImportError):
    """Raised when the merged settings files fail validation."""


# Failures that abort a run immediately, without persisting a vendor manifest.
FATAL_ERRORS: tuple[type[NetImportError], ...] = (
    NetworkFailure,
    UnresolvableExtension,
    VendorCopyFailure,
    NoDependenciesFound,
)
