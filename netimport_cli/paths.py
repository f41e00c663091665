"""CLI path policy - where the cache, vendor and build directories live.

Libraries receive paths via injection; this module provides the CLI's choices.
All returned paths are absolute so that paths recorded during a run compare
equal no matter which directory they were computed from.
"""

import os
from pathlib import Path

from .settings import NetImportSettings

CACHE_DIR_ENV = "NETIMPORT_CACHE_DIR"
BUILD_DIRNAME = ".build"


def get_cache_dir(settings: NetImportSettings | None = None) -> Path:
    """Get the module cache directory.

    Resolution order:
    1. NETIMPORT_CACHE_DIR environment variable
    2. cache.dir from settings
    3. ~/.netimport/cache
    """
    if env_value := os.environ.get(CACHE_DIR_ENV):
        return Path(env_value).expanduser().absolute()
    if settings is not None and settings.cache.dir is not None:
        return settings.cache.dir.expanduser().absolute()
    return Path.home() / ".netimport" / "cache"


def get_vendor_dir(settings: NetImportSettings | None = None, base: Path | None = None) -> Path:
    """Get the vendor root, relative to ``base`` (default: cwd) unless absolute."""
    vendor = settings.vendor.dir if settings is not None else Path("vendor")
    vendor = vendor.expanduser()
    if vendor.is_absolute():
        return vendor
    return ((base or Path.cwd()) / vendor).absolute()


def get_build_dir(cache_dir: Path) -> Path:
    """Directory for rewritten modules handed to the runtime.

    Host directories never start with a dot, so this never collides with a
    cached artifact.
    """
    return cache_dir / BUILD_DIRNAME
