"""Settings manager for netimport settings.yaml files.

Manages three-scope settings:
- User global (~/.netimport/settings.yaml)
- Project (.netimport/settings.yaml)
- Local (.netimport/settings.local.yaml)

Example settings.yaml:

    aliases:
      left-pad: https://esm.example/left-pad.js
    cache:
      dir: ~/.netimport/cache
    vendor:
      dir: vendor
    http:
      timeout: 30
    runtime:
      node: node
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator

from .errors import SettingsError

logger = logging.getLogger(__name__)


class CacheSettings(BaseModel):
    dir: Path | None = None


class VendorSettings(BaseModel):
    dir: Path = Path("vendor")


class HttpSettings(BaseModel):
    timeout: float = 30.0


class RuntimeSettings(BaseModel):
    node: str = "node"


class NetImportSettings(BaseModel):
    """Validated, merged view of all settings scopes."""

    aliases: dict[str, str] = Field(default_factory=dict)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    vendor: VendorSettings = Field(default_factory=VendorSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)

    @field_validator("aliases")
    @classmethod
    def _aliases_are_urls(cls, value: dict[str, str]) -> dict[str, str]:
        for name, target in value.items():
            if not target.startswith(("http://", "https://")):
                raise ValueError(f"Alias '{name}' must point at an http(s) URL, got '{target}'")
        return value


class SettingsManager:
    """Manages settings across user/project/local scopes."""

    def __init__(self, netimport_dir: Path | None = None, user_dir: Path | None = None):
        """Initialize settings manager with standard paths.

        Args:
            netimport_dir: Base directory for project/local settings (for testing).
                          If None, uses .netimport in current directory.
            user_dir: Base directory for user settings (for testing).
                      If None, uses ~/.netimport.
        """
        if netimport_dir is None:
            netimport_dir = Path(".netimport")
        if user_dir is None:
            user_dir = Path.home() / ".netimport"

        self.user_settings_file = user_dir / "settings.yaml"
        self.project_settings_file = netimport_dir / "settings.yaml"
        self.local_settings_file = netimport_dir / "settings.local.yaml"

    def load(self) -> NetImportSettings:
        """Load and validate merged settings.

        Raises:
            pydantic.ValidationError: Merged settings are invalid
        """
        return NetImportSettings.model_validate(self.get_merged_settings())

    def get_aliases(self) -> dict[str, str]:
        """Get specifier aliases merged from all settings.

        Returns:
            Dict of specifier -> URL
        """
        return dict(self.get_merged_settings().get("aliases") or {})

    def add_alias(self, specifier: str, url: str, scope: str = "project") -> None:
        """Add a specifier alias.

        Args:
            specifier: Specifier as written in import statements
            url: URL the specifier resolves to
            scope: "user", "project", or "local"
        """
        self._update_settings(self._scope_file(scope), {"aliases": {specifier: url}})
        logger.info(f"Added {scope} alias {specifier} -> {url}")

    def remove_alias(self, specifier: str, scope: str = "project") -> bool:
        """Remove a specifier alias.

        Returns:
            True if removed, False if not found
        """
        target_file = self._scope_file(scope)
        settings = self._read_settings(target_file)

        if not settings or "aliases" not in settings or specifier not in settings["aliases"]:
            return False

        del settings["aliases"][specifier]
        if not settings["aliases"]:
            del settings["aliases"]

        self._write_settings(target_file, settings)
        logger.info(f"Removed {scope} alias {specifier}")
        return True

    def get_merged_settings(self) -> dict[str, Any]:
        """Get merged settings from all scopes.

        Merge order (later overrides earlier):
        1. User settings
        2. Project settings
        3. Local settings
        """
        merged: dict[str, Any] = {}
        for path in (self.user_settings_file, self.project_settings_file, self.local_settings_file):
            settings = self._read_settings(path)
            if settings:
                merged = self._deep_merge(merged, settings)
        return merged

    def _scope_file(self, scope: str) -> Path:
        file_map = {
            "user": self.user_settings_file,
            "project": self.project_settings_file,
            "local": self.local_settings_file,
        }
        return file_map.get(scope, self.project_settings_file)

    def _read_settings(self, path: Path) -> dict[str, Any] | None:
        """Read settings from YAML file.

        Returns:
            Settings dict or None if the file doesn't exist or can't be read
        """
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to read settings from {path}: {e}")
            return None

        if data and not isinstance(data, dict):
            logger.warning(f"Ignoring settings in {path}: expected a mapping")
            return None
        return data or {}

    def _write_settings(self, path: Path, settings: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(settings, f, default_flow_style=False, sort_keys=False)

    def _update_settings(self, path: Path, updates: dict[str, Any]) -> None:
        existing = self._read_settings(path) or {}
        self._write_settings(path, self._deep_merge(existing, updates))

    def _deep_merge(self, base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries (overlay takes precedence)."""
        result = base.copy()

        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def load_settings(manager: SettingsManager | None = None) -> NetImportSettings:
    """Load merged settings, wrapping validation problems in a SettingsError."""
    try:
        return (manager or SettingsManager()).load()
    except ValidationError as e:
        raise SettingsError(f"Invalid netimport settings: {e}") from e
