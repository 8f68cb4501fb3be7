"""File classification and size formatting helpers"""

import mimetypes
from pathlib import PurePosixPath
from typing import Optional

IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp", "avif", "svg"}
VIDEO_EXTENSIONS = {"mp4", "mov", "mkv", "webm", "avi"}
AUDIO_EXTENSIONS = {"mp3", "wav", "ogg", "flac", "m4a"}
TEXT_EXTENSIONS = {"txt", "md", "json", "csv", "log"}

FILE_CATEGORIES = ("image", "video", "audio", "pdf", "text", "other")

# Labels used in user-facing messages
CATEGORY_LABELS = {
    "image": "imagem",
    "video": "vídeo",
    "audio": "áudio",
    "pdf": "documento",
    "text": "arquivo de texto",
    "other": "arquivo",
}

SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def get_extension(file_name: Optional[str]) -> str:
    """Lowercase extension without the dot ("" when there is none)"""
    if not file_name:
        return ""
    return PurePosixPath(file_name).suffix.lower().lstrip(".")


def classify_file(file_name: Optional[str]) -> str:
    """
    Classify a file by extension.

    Returns:
        One of image, video, audio, pdf, text, other
    """
    extension = get_extension(file_name)

    if extension in IMAGE_EXTENSIONS:
        return "image"
    if extension in VIDEO_EXTENSIONS:
        return "video"
    if extension in AUDIO_EXTENSIONS:
        return "audio"
    if extension == "pdf":
        return "pdf"
    if extension in TEXT_EXTENSIONS:
        return "text"
    return "other"


def guess_content_type(file_name: str) -> str:
    """Guess MIME type from the file name"""
    mime_type, _ = mimetypes.guess_type(file_name)
    return mime_type or "application/octet-stream"


def format_bytes(size: int) -> str:
    """Human readable size using 1024 steps (e.g., 262144000 -> "250 MB")"""
    if size <= 0:
        return "0 B"

    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1

    return f"{round(value, 2):g} {SIZE_UNITS[unit]}"
