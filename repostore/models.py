from datetime import datetime

from pydantic import BaseModel, Field


class StoredObject(BaseModel):
    """The content at one path of a storage repository, as last seen by us."""

    path: str
    sha: str = Field(description="Blob hash assigned by the remote host on the last write of this path")
    content: bytes = b""


class ExistingPhoto(BaseModel):
    """Result of probing the candidate photo paths of a member."""

    path: str
    sha: str
    extension: str


class PhotoContent(BaseModel):
    content: bytes
    mime_type: str


class CacheEntry(BaseModel):
    member_id: int
    content: bytes
    mime_type: str
    cached_at: float  # clock reading (seconds) at the time of caching


######################## PROJECT FILES #########################


class ReplaceTarget(BaseModel):
    """Identifies the current version of a project file that an upload should replace."""

    existing_path: str
    existing_sha: str


class UploadedFile(BaseModel):
    path: str
    sha: str


class VersionRecord(BaseModel):
    version_id: str = Field(description="Commit id, usable to fetch the file as it was at this version")
    message: str
    timestamp: datetime
    author: str | None = None
