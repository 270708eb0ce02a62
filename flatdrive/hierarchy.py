"""
Directory listing semantics on top of the flat record store.

The store only knows (owner, path) keys. A folder listing is computed from the records sharing a prefix
by keeping only the direct children of the requested folder.
"""

from typing import Iterable

from flatdrive.models import Record
from flatdrive.paths import path_depth


def is_root(requested_path: str | None) -> bool:
    return requested_path is None or requested_path in ("", "/")


def listing_prefix(requested_path: str | None) -> str:
    """
    The prefix to query the store with: empty for the root (scan all of the owner's records),
    otherwise the requested path with exactly one trailing slash
    """
    if is_root(requested_path):
        return ""
    assert requested_path is not None
    return requested_path if requested_path.endswith("/") else requested_path + "/"


def resolve_children(records: Iterable[Record], requested_path: str | None) -> list[Record]:
    """
    Filter the records of one owner down to the direct children of requested_path.

    For the root this is every record with depth 1. For other paths it is every record below the
    prefix with depth exactly one more than the prefix, excluding the folder record itself.
    The requested path should already be normalized (no .. segments), the result is not ordered.
    """
    if is_root(requested_path):
        return [r for r in records if path_depth(r.path) == 1]

    prefix = listing_prefix(requested_path)
    child_depth = path_depth(prefix) + 1
    return [
        r
        for r in records
        if r.path.startswith(prefix)
        and not (r.is_folder and r.path == prefix)
        and path_depth(r.path) == child_depth
    ]


def listing_order(records: Iterable[Record]) -> list[Record]:
    """Presentation order of a listing: folders first, then by name"""
    return sorted(records, key=lambda r: (not r.is_folder, r.name.casefold(), r.path))


def parent_path(path: str) -> str:
    """The (listing) path of the folder containing this path, empty string for top-level records"""
    segments = [s for s in path.split("/") if s]
    if len(segments) <= 1:
        return ""
    return "/".join(segments[:-1]) + "/"
