"""Remote module resolution: identity codec, metadata cache, fetcher and resolution chain."""

from .chain import DEFER
from .chain import External
from .chain import ResolutionChain
from .chain import ResolutionContext
from .chain import Resolved
from .fetcher import ModuleFetcher
from .metadata import MetadataCache
from .metadata import MetadataRecord
from .stages import ManifestOverrideStage
from .stages import NetworkFetchStage
from .stages import RelativeRewriteStage
from .stages import VendorCaptureStage
from .stages import default_stages

__all__ = [
    "DEFER",
    "External",
    "ManifestOverrideStage",
    "MetadataCache",
    "MetadataRecord",
    "ModuleFetcher",
    "NetworkFetchStage",
    "RelativeRewriteStage",
    "ResolutionChain",
    "ResolutionContext",
    "Resolved",
    "VendorCaptureStage",
    "default_stages",
]
