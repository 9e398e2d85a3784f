"""
Storage namespace conventions.

Raw uploads live under ``raw/``, derived thumbnails under ``thumbnails/`` and
stitched output under ``processed/``. Everything after the namespace prefix is
kept; stitched output is always mp4, so ``raw/fleet/abc.mov`` maps to
``processed/fleet/abc.mp4``.
"""

from pathlib import PurePosixPath
from typing import Tuple
from urllib.parse import unquote, urlparse

RAW_PREFIX = "raw/"
THUMBNAILS_PREFIX = "thumbnails/"
PROCESSED_PREFIX = "processed/"


def is_raw_path(name: str | None) -> bool:
    return bool(name) and name.startswith(RAW_PREFIX)


def video_id_from_raw_path(raw_path: str) -> str:
    """``raw/abc123.mp4`` -> ``abc123``"""
    return PurePosixPath(raw_path).stem


def translate_namespace(raw_path: str, target_prefix: str, *, extension: str | None = None, suffix: str = "") -> str:
    """Move a raw object path into another namespace, optionally swapping its extension.

    Args:
        raw_path: Object name under ``raw/``
        target_prefix: Destination namespace, e.g. ``processed/``
        extension: New extension including the dot; keeps the original when None
        suffix: Appended to the file stem before the extension
    """
    if not is_raw_path(raw_path):
        raise ValueError(f"Not a raw media path: {raw_path!r}")

    relative = PurePosixPath(raw_path[len(RAW_PREFIX):])
    new_suffix = extension if extension is not None else relative.suffix
    renamed = relative.with_name(f"{relative.stem}{suffix}{new_suffix}")
    return f"{target_prefix}{renamed.as_posix()}"


def thumbnail_path_for(raw_path: str, suffix: str = "") -> str:
    return translate_namespace(raw_path, THUMBNAILS_PREFIX, extension=".jpg", suffix=suffix)


def processed_path_for(raw_path: str, suffix: str = "") -> str:
    return translate_namespace(raw_path, PROCESSED_PREFIX, extension=".mp4", suffix=suffix)


def resolve_object_location(path_or_url: str, default_bucket: str) -> Tuple[str, str]:
    """Split a storage reference into (bucket, object name).

    Accepts plain object paths (resolved against ``default_bucket``),
    ``gs://bucket/object`` URIs and public ``https://host/bucket/object`` URLs.
    URLs that do not carry both a bucket and an object are treated as plain paths.
    """
    if path_or_url.startswith("gs://"):
        bucket, _, name = path_or_url[len("gs://"):].partition("/")
        if bucket and name:
            return bucket, name

    if path_or_url.startswith(("http://", "https://")):
        parsed = urlparse(path_or_url)
        parts = parsed.path.lstrip("/").split("/", 1)
        if len(parts) == 2 and parts[0] and parts[1]:
            return parts[0], unquote(parts[1])

    return default_bucket, path_or_url
