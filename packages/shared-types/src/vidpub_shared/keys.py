"""
Remote folder and object key conventions.

Single source of truth: the publish coordinator builds folders and the object
store builds keys using only these functions.

Rendition folder:  {videos_folder}/{asset_id}
Thumbnail folder:  {thumbnails_folder}/{asset_id}
Object key:        {folder}/{token}{suffix}

Parser behaviour: Invalid keys return None. Callers must check and handle accordingly.
"""

import re

DEFAULT_VIDEOS_FOLDER = "videos"
DEFAULT_THUMBNAILS_FOLDER = "thumbnails"

_FOLDER_SEGMENT_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def _clean_folder(folder: str) -> str:
    folder = folder.strip("/")
    if not folder or any(not _FOLDER_SEGMENT_RE.match(p) for p in folder.split("/")):
        raise ValueError(f"Invalid remote folder: {folder!r}")
    return folder


def build_rendition_folder(asset_id: str, videos_folder: str = DEFAULT_VIDEOS_FOLDER) -> str:
    """Folder that holds every rendition of one asset."""
    return _clean_folder(f"{videos_folder}/{asset_id}")


def build_thumbnail_folder(
    asset_id: str, thumbnails_folder: str = DEFAULT_THUMBNAILS_FOLDER
) -> str:
    """Folder that holds the thumbnail of one asset."""
    return _clean_folder(f"{thumbnails_folder}/{asset_id}")


def build_object_key(remote_folder: str, token: str, suffix: str = "") -> str:
    """
    Build an object key under remote_folder.

    suffix is the local file extension (".mp4", ".jpg") and is lowercased so
    content-type lookup on the key is stable.
    """
    if not token:
        raise ValueError("token must be non-empty")
    return f"{_clean_folder(remote_folder)}/{token}{suffix.lower()}"


def parse_object_folder(object_id: str) -> str | None:
    """Return the folder part of an object key, or None if the key has no folder."""
    if "/" not in object_id:
        return None
    folder, _, name = object_id.rpartition("/")
    if not folder or not name:
        return None
    return folder
