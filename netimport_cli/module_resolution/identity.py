"""Identity codec - deterministic mapping from module URLs to local filenames.

A module URL is normalized (lowercase scheme and host, fragment dropped) and
hashed; the hash names the cached artifact and its metadata sidecar. The
extension comes from the URL path when it carries a recognized one, otherwise
from the response content type at fetch time.

Layout produced for ``https://example.test/dir/a.js``::

    example.test/<sha256[:16]>.js      cached artifact
    example.test/<sha256[:16]>.meta    metadata sidecar
    example.test/dir/a.<sha256[:8]>.js vendored copy
"""

from __future__ import annotations

import hashlib
import mimetypes
import posixpath
import re
from pathlib import PurePosixPath
from urllib.parse import urljoin
from urllib.parse import urlsplit
from urllib.parse import urlunsplit

from ..errors import UnresolvableExtension

URL_SCHEMES = ("http://", "https://")

MODULE_EXTENSIONS: frozenset[str] = frozenset(
    {".js", ".mjs", ".cjs", ".ts", ".mts", ".cts", ".jsx", ".tsx", ".json"}
)

HASH_LENGTH = 16
VENDOR_HASH_LENGTH = 8

_MIME_TO_EXTENSION: dict[str, str] = {
    "text/javascript": ".js",
    "application/javascript": ".js",
    "application/x-javascript": ".js",
    "application/ecmascript": ".js",
    "text/ecmascript": ".js",
    "text/jsx": ".jsx",
    "application/typescript": ".ts",
    "text/typescript": ".ts",
    "text/x-typescript": ".ts",
    "text/tsx": ".tsx",
    "application/json": ".json",
    "text/x-json": ".json",
}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._@+\-/]")


def is_url(specifier: str) -> bool:
    """Check whether a specifier is a fully-qualified network URL."""
    return specifier.startswith(URL_SCHEMES)


def normalize_url(url: str) -> str:
    """Return the canonical string form of a URL.

    Scheme and host are lowercased, an empty path becomes ``/`` and the
    fragment is dropped. Path and query are kept verbatim so that URLs
    differing in either never share an identity.
    """
    parts = urlsplit(url)
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), parts.path or "/", parts.query, ""))


def url_hash(url: str) -> str:
    """Stable hash of the normalized URL, used as the cache key."""
    return hashlib.sha256(normalize_url(url).encode()).hexdigest()[:HASH_LENGTH]


def _host_dir(url: str) -> str:
    parts = urlsplit(url)
    host = (parts.hostname or "unknown-host").lower()
    if parts.port:
        host = f"{host}_{parts.port}"
    return host


def host_dirname(authority: str) -> str:
    """Cache directory name for a ``host[:port]`` authority, e.g. ``localhost_8080``."""
    return _host_dir(f"//{authority}")


def url_to_filename(url: str) -> str:
    """Return ``<host>/<hash>`` - the extensionless cache name of a URL."""
    return f"{_host_dir(url)}/{url_hash(url)}"


def filename_with_extension(url: str, ext: str) -> str:
    return url_to_filename(url) + ext


def resolve_extension(url: str) -> str | None:
    """Return the recognized module extension on the URL path, if any."""
    suffix = PurePosixPath(urlsplit(url).path).suffix.lower()
    return suffix if suffix in MODULE_EXTENSIONS else None


def is_valid_extension(candidate: str | None) -> bool:
    return candidate in MODULE_EXTENSIONS


def extension_for_content_type(content_type: str | None) -> str | None:
    """Map a Content-Type header value to a file extension.

    Parameters such as ``charset`` are ignored. Unknown types fall back to the
    standard MIME registry, so the result may still be outside the module
    extension set and must be checked with :func:`is_valid_extension`.
    """
    if not content_type:
        return None
    media_type = content_type.split(";", 1)[0].strip().lower()
    if not media_type:
        return None
    return _MIME_TO_EXTENSION.get(media_type) or mimetypes.guess_extension(media_type)


def filename_for(url: str, content_type: str | None = None) -> str:
    """Return the local cache filename for a URL.

    Args:
        url: Module URL
        content_type: Content-Type of the fetched response, used when the URL
            has no recognized extension

    Returns:
        Relative filename ``<host>/<hash><ext>``

    Raises:
        UnresolvableExtension: Neither the URL nor the content type yields a
            supported module extension
    """
    ext = resolve_extension(url) or extension_for_content_type(content_type)
    if not is_valid_extension(ext):
        raise UnresolvableExtension(
            f"Unknown extension for {url} (content-type: {content_type or 'none'})",
            specifier=url,
        )
    return filename_with_extension(url, ext)


def filename_without_hash(url: str) -> str:
    """Return a readable ``<host>/<path>`` name for a URL, without extension.

    ``..`` segments are dropped so the name never escapes the directory it is
    joined to. A directory URL maps to ``index``.
    """
    parts = urlsplit(url)
    path = posixpath.normpath("/" + parts.path) if parts.path else "/"
    if parts.path.endswith("/") or path == "/":
        path = posixpath.join(path, "index")
    segments = [s for s in path.split("/") if s and s not in (".", "..")]
    stem = "/".join(segments)

    ext = resolve_extension(url)
    if ext and stem.lower().endswith(ext):
        stem = stem[: -len(ext)]
    if parts.query:
        stem = f"{stem}_{parts.query}"
    return f"{_host_dir(url)}/{_UNSAFE_CHARS.sub('_', stem)}"


def vendor_path_for_url(url: str, ext: str) -> str:
    """Return the hash-qualified vendor subpath for a URL.

    Example: ``https://example.test/dir/a.js`` -> ``example.test/dir/a.1a2b3c4d.js``
    """
    return f"{filename_without_hash(url)}.{url_hash(url)[:VENDOR_HASH_LENGTH]}{ext}"


def resolve_relative(base_url: str, specifier: str) -> str:
    """Resolve a relative specifier against the URL of the importing module."""
    return urljoin(base_url, specifier)
