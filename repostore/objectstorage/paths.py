"""Map members and projects to paths in the storage repositories, and mime types to file extensions."""

import re
import uuid

from repostore.objectstorage.errors import UnsupportedMimeType

# Probing order of existing photos follows the order of this mapping
PHOTO_EXTENSIONS: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}
PHOTO_MIME_TYPES: dict[str, str] = {ext: mime for mime, ext in PHOTO_EXTENSIONS.items()}

PROJECT_FILE_MIME_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/csv",
)

UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def extension_for(mime_type: str) -> str:
    try:
        return PHOTO_EXTENSIONS[mime_type]
    except KeyError:
        raise UnsupportedMimeType(mime_type, PHOTO_EXTENSIONS)


def mime_type_for(extension: str) -> str:
    return PHOTO_MIME_TYPES[extension]


def photo_path(member_id: int, extension: str) -> str:
    return f"members/{member_id}/profile-photo{extension}"


def photo_paths(member_id: int) -> list[tuple[str, str]]:
    """All candidate (path, extension) pairs where a photo of this member can live, in probing order"""
    return [(photo_path(member_id, ext), ext) for ext in PHOTO_EXTENSIONS.values()]


def project_prefix(project_id: int) -> str:
    return f"projects/{project_id}/"


def unique_project_filename(original_filename: str) -> str:
    """
    Sanitize a file name and prefix it with a random token, so uploads of equally named files never share a path
    """
    safe_name = UNSAFE_FILENAME_CHARS.sub("_", original_filename)
    return f"{uuid.uuid4()}-{safe_name}"


def project_file_path(project_id: int, original_filename: str) -> str:
    return project_prefix(project_id) + unique_project_filename(original_filename)


def validate_project_mime_type(mime_type: str | None) -> str:
    if mime_type not in PROJECT_FILE_MIME_TYPES:
        raise UnsupportedMimeType(mime_type, PROJECT_FILE_MIME_TYPES)
    return mime_type
