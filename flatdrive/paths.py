"""
Canonical forms for the paths stored in the record store.

Paths are relative to the owner's root and never start with a slash. Folder paths always end with exactly
one slash, file paths never do. All functions here are pure.
"""

from typing import NamedTuple

from flatdrive.errors import ValidationError

FORBIDDEN_SEGMENTS = {".", ".."}


class FolderPath(NamedTuple):
    path: str
    name: str


def _segments(path: str) -> list[str]:
    return [s for s in path.split("/") if s]


def _check_segments(segments: list[str], raw: str) -> None:
    if not segments:
        raise ValidationError("Path cannot be empty")
    for segment in segments:
        if not segment.strip():
            raise ValidationError(f"Invalid path {raw!r}: blank path segment")
        if segment in FORBIDDEN_SEGMENTS:
            raise ValidationError(f"Invalid path {raw!r}: relative segments are not allowed")


def path_depth(path: str) -> int:
    """Number of non-empty segments, e.g. a/b/ and a/b both have depth 2"""
    return len(_segments(path))


def record_name(path: str) -> str:
    segments = _segments(path)
    return segments[-1] if segments else ""


def normalize_folder_path(raw: str) -> FolderPath:
    """
    Canonicalize a user supplied folder path into the format used as sort key.

    Surrounding whitespace, leading and trailing slashes and empty segments are removed and a single
    trailing slash is added: "  //foo//bar///  " becomes "foo/bar/" with name "bar".
    Raises ValidationError if nothing remains or the path contains . or .. segments.
    """
    if not isinstance(raw, str):
        raise ValidationError("Folder path must be a string")
    segments = _segments(raw.strip())
    _check_segments(segments, raw)
    return FolderPath(path="/".join(segments) + "/", name=segments[-1])


def listing_path(raw: str | None) -> str:
    """
    The folder path to list for a requested path: an empty string for the root, otherwise the
    normalized folder path
    """
    if raw is None or raw.strip() in ("", "/"):
        return ""
    return normalize_folder_path(raw).path


def normalize_file_key(raw: str) -> str:
    """Canonicalize the path of a file (relative to the owner's root), rejecting folders and traversal"""
    key = (raw or "").strip().lstrip("/")
    if not key:
        raise ValidationError("File key cannot be empty")
    if key.endswith("/"):
        raise ValidationError(f"Invalid file key {raw!r}: files cannot end with a slash")
    segments = key.split("/")
    if "" in segments:
        raise ValidationError(f"Invalid file key {raw!r}: empty path segment")
    _check_segments(segments, raw)
    return key


def join_file_path(folder: str | None, filename: str) -> str:
    """Path of a file called filename inside the given folder (root if folder is empty)"""
    filename = (filename or "").strip()
    if not filename or "/" in filename or filename in FORBIDDEN_SEGMENTS:
        raise ValidationError(f"Invalid file name {filename!r}")
    prefix = listing_path(folder)
    return f"{prefix}{filename}"
