"""Metadata cache - sidecar records for fetched modules.

Each fetched URL gets a ``<host>/<hash>.meta`` JSON record next to its
artifact inside the cache root. A record that cannot be read, does not parse
or points at a missing artifact counts as a cache miss, so a cache left behind
by an interrupted run heals itself by re-fetching.

Records are never revalidated against the remote resource: a URL stays cached
until the cache root is cleared.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import BaseModel

from .identity import url_hash
from .identity import url_to_filename

logger = logging.getLogger(__name__)

META_SUFFIX = ".meta"


class MetadataRecord(BaseModel):
    """Where a fetched module lives and the identity hash it was stored under."""

    path: Path
    hash: str


class MetadataCache:
    """Durable URL -> artifact index stored under a cache root."""

    def __init__(self, root: Path):
        self.root = root

    def meta_path(self, url: str) -> Path:
        return self.root / (url_to_filename(url) + META_SUFFIX)

    def lookup(self, url: str) -> MetadataRecord | None:
        """Return the cached record for a URL, or None on any kind of miss."""
        meta_file = self.meta_path(url)
        try:
            record = MetadataRecord.model_validate_json(meta_file.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.debug(f"Ignoring unreadable metadata {meta_file}: {e}")
            return None

        if not record.path.is_file():
            logger.debug(f"Metadata for {url} points at missing artifact {record.path}")
            return None
        return record

    def store(self, url: str, record: MetadataRecord) -> Path:
        """Write the record for a URL.

        Must only be called once the artifact at ``record.path`` is complete.
        """
        meta_file = self.meta_path(url)
        meta_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = meta_file.with_name(meta_file.name + ".tmp")
        tmp_file.write_text(record.model_dump_json(), encoding="utf-8")
        os.replace(tmp_file, meta_file)
        return meta_file

    def records(self) -> list[tuple[str, MetadataRecord]]:
        """Return ``(host, record)`` for every readable record, sorted by host then path.

        Unreadable records and records whose artifact is gone are skipped.
        """
        if not self.root.is_dir():
            return []

        found: list[tuple[str, MetadataRecord]] = []
        for meta_file in self.root.glob(f"*/*{META_SUFFIX}"):
            try:
                record = MetadataRecord.model_validate_json(meta_file.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.debug(f"Skipping unreadable metadata {meta_file}: {e}")
                continue
            if record.path.is_file():
                found.append((meta_file.parent.name, record))
        found.sort(key=lambda item: (item[0], str(item[1].path)))
        return found

    def record_for(self, url: str, path: Path) -> MetadataRecord:
        return MetadataRecord(path=path, hash=url_hash(url))

    def __repr__(self) -> str:
        return f"MetadataCache({self.root})"
