"""File listing and virtual folder explorer

Folders are not stored entities: they are derived from key prefixes on every
listing. Zero-byte keys ending in ``/`` are explicit (possibly empty) folders;
they never show up as file rows.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from bucket_panel.config import settings
from bucket_panel.models.base import to_iso, utc_now
from bucket_panel.services.storage_service import build_public_url, to_cdn_url
from bucket_panel.utils.file_types import guess_content_type

DEFAULT_OWNER = "Sistema"


def normalize_prefix(value: Optional[str]) -> str:
    """Trim whitespace and leading/trailing slashes ("/a/b/" -> "a/b")"""
    return (value or "").strip().strip("/")


def _iso(value: Any) -> str:
    if isinstance(value, datetime):
        return to_iso(value)
    if value:
        return str(value)
    return to_iso(utc_now())


def is_folder_placeholder(key: str, size: int) -> bool:
    return key.endswith("/") and size == 0


def map_object(obj: Dict[str, Any], bucket_name: str, region: str, cdn_host: str = "") -> Dict[str, Any]:
    """Turn a ListObjectsV2 entry into a file entry"""
    key = obj["Key"]
    size = int(obj.get("Size") or 0)
    owner = (obj.get("Owner") or {}).get("DisplayName") or DEFAULT_OWNER
    url = build_public_url(bucket_name, region, key)
    placeholder = is_folder_placeholder(key, size)
    file_name = key.rstrip("/").split("/")[-1] if placeholder else key.split("/")[-1]

    return {
        "key": key,
        "fileName": file_name or key,
        "size": size,
        "lastModified": _iso(obj.get("LastModified")),
        "uploadedBy": owner,
        "url": url,
        "cdnUrl": to_cdn_url(url, cdn_host),
        "contentType": None if placeholder else guess_content_type(key),
        "isFolderPlaceholder": placeholder,
    }


def build_listing(
    objects: List[Dict[str, Any]],
    bucket_name: str,
    region: str,
    cdn_host: str = "",
) -> Dict[str, Any]:
    """
    Build the listing payload.

    Returns:
        Dict with files (newest first), stats and recentUploads
    """
    files = [map_object(obj, bucket_name, region, cdn_host) for obj in objects]
    files.sort(key=lambda f: f["lastModified"], reverse=True)

    real_files = [f for f in files if not f["isFolderPlaceholder"]]

    return {
        "files": files,
        "stats": {
            "totalFiles": len(real_files),
            "totalSize": sum(f["size"] for f in real_files),
            "lastUpdated": _iso(None),
            "bucket": bucket_name,
            "cdnHost": cdn_host or "",
        },
        "recentUploads": [
            {
                "id": f["key"],
                "fileName": f["fileName"],
                "uploadedAt": f["lastModified"],
                "uploadedBy": f["uploadedBy"],
                "size": f["size"],
            }
            for f in real_files[: settings.recent_uploads_limit]
        ],
        "setupRequired": False,
    }


def empty_listing() -> Dict[str, Any]:
    """Listing returned while storage credentials are not configured"""
    return {
        "files": [],
        "stats": {
            "totalFiles": 0,
            "totalSize": 0,
            "lastUpdated": _iso(None),
            "bucket": "",
            "cdnHost": "",
        },
        "recentUploads": [],
        "setupRequired": True,
    }


def infer_folders(files: List[Dict[str, Any]], prefix: str = "") -> List[Dict[str, Any]]:
    """
    Folders one level below ``prefix``.

    A key nested deeper than the prefix contributes to the count of the folder
    named by its next segment. A placeholder exactly one level down makes its
    folder visible with a count of 0 when nothing else lives in it.
    """
    prefix_segments = [s for s in normalize_prefix(prefix).split("/") if s]
    counts: Dict[str, int] = {}

    for file in files:
        segments = [s for s in normalize_prefix(file["key"]).split("/") if s]
        if len(segments) <= len(prefix_segments):
            continue
        if segments[: len(prefix_segments)] != prefix_segments:
            continue

        relative = segments[len(prefix_segments):]
        folder_name = relative[0]

        if len(relative) == 1:
            if file.get("isFolderPlaceholder"):
                counts.setdefault(folder_name, 0)
            continue

        counts[folder_name] = counts.get(folder_name, 0) + 1

    return [
        {"name": name, "itemCount": count}
        for name, count in sorted(counts.items(), key=lambda item: item[0].lower())
    ]


def files_at_level(files: List[Dict[str, Any]], prefix: str = "") -> List[Dict[str, Any]]:
    """Non-placeholder files directly under ``prefix``"""
    normalized = normalize_prefix(prefix)
    base = f"{normalized}/" if normalized else ""
    result = []

    for file in files:
        if file.get("isFolderPlaceholder"):
            continue
        key = file["key"]
        if not key.startswith(base):
            continue
        remainder = key[len(base):]
        if remainder and "/" not in remainder:
            result.append(file)

    return result


def matches_search(file: Dict[str, Any], search: str) -> bool:
    """Case-insensitive substring match over name, key and uploader"""
    fields = (file.get("fileName"), file.get("key"), file.get("uploadedBy"))
    return any(search in (value or "").lower() for value in fields)


def explore(files: List[Dict[str, Any]], prefix: Optional[str] = None, search: Optional[str] = None) -> Dict[str, Any]:
    """
    Explorer view of one folder level.

    Returns:
        Dict with prefix, breadcrumbs, folders and files, filtered by ``search``
    """
    normalized = normalize_prefix(prefix)
    term = (search or "").strip().lower()

    folders = infer_folders(files, normalized)
    level_files = files_at_level(files, normalized)

    if term:
        folders = [f for f in folders if term in f["name"].lower()]
        level_files = [f for f in level_files if matches_search(f, term)]

    return {
        "prefix": normalized,
        "breadcrumbs": normalized.split("/") if normalized else [],
        "folders": folders,
        "files": level_files,
    }
