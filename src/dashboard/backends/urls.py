"""Hosted object URLs.

Hosted storage serves objects at ``<scheme>://<host>/v0/b/<bucket>/o/<path>``
where ``<path>`` is the percent-encoded object path (``/`` becomes ``%2F``),
usually followed by a query such as ``?alt=media&token=...``.
"""

from __future__ import annotations

import re
from urllib.parse import quote, unquote, urlsplit

DEFAULT_PUBLIC_HOST = "firebasestorage.googleapis.com"

_OBJECT_PATH_RE = re.compile(r"^/v0/b/[^/]+/o/(?P<encoded>[^?#]+)$")


def object_path_from_url(uri: str | None) -> str | None:
    """Return the decoded object path of a hosted object URL.

    Anything that does not have the hosted URL shape (third-party image
    URLs, data URIs, bare paths) yields None.
    """
    if not uri:
        return None

    try:
        parts = urlsplit(uri.strip())
    except ValueError:
        return None

    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None

    match = _OBJECT_PATH_RE.match(parts.path)
    if match is None:
        return None

    path = unquote(match.group("encoded"))
    return path or None


def hosted_object_url(host: str, bucket: str, path: str, *, scheme: str = "https") -> str:
    """Build the public URL under which ``path`` is served."""
    encoded = quote(path, safe="")
    return f"{scheme}://{host}/v0/b/{bucket}/o/{encoded}?alt=media"


def is_hosted_object_url(uri: str | None) -> bool:
    return object_path_from_url(uri) is not None
