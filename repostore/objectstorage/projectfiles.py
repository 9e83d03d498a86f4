"""
Project files, stored as projects/{project_id}/{uuid}-{sanitized file name}

A project has any number of files. Replacing a file commits new content to the same path, so the commit
history of that path is the version history of the file, and every old version can still be downloaded.

Nothing here is retried: retrying a create could leave a duplicate file behind, and retrying an update with
a stale sha fails again, as it should. Deciding to retry is up to the caller.
"""

import logging

from repostore.config import MAX_FILE_BYTES
from repostore.models import ReplaceTarget, UploadedFile, VersionRecord
from repostore.objectstorage import paths
from repostore.objectstorage.errors import FileTooLarge, RemoteError
from repostore.objectstorage.transport import HISTORY_PAGE_SIZE, ContentTransport

logger = logging.getLogger("repostore.projectfiles")


class ProjectFileStore:
    def __init__(self, transport: ContentTransport, max_file_size: int = MAX_FILE_BYTES):
        self.transport = transport
        self.max_file_size = max_file_size

    async def upload(
        self,
        content: bytes,
        filename: str,
        mime_type: str,
        project_id: int,
        replace: ReplaceTarget | None = None,
    ) -> UploadedFile:
        """
        Store a file for a project.

        If replace is given, the file at replace.existing_path is updated in place, provided that
        replace.existing_sha is still its current version (otherwise Conflict is raised).
        If not, the file is created at a fresh, unique path.
        """
        if len(content) > self.max_file_size:
            raise FileTooLarge(len(content), self.max_file_size)
        paths.validate_project_mime_type(mime_type)

        if replace is not None:
            path = replace.existing_path
            sha = await self.transport.put(path, content, f"Update {filename}", sha=replace.existing_sha)
        else:
            path = paths.project_file_path(project_id, filename)
            sha = await self.transport.put(path, content, f"Upload {filename}")
        return UploadedFile(path=path, sha=sha)

    async def delete(self, path: str, sha: str) -> None:
        """
        Delete a file from the repository.
        This is best effort: the database record is what counts, so failures are logged but not raised.
        """
        try:
            await self.transport.delete(path, sha, f"Delete {path}")
        except RemoteError as e:
            logger.warning(f"Could not delete project file {path}: {e}")

    async def download(self, path: str) -> bytes:
        return await self.transport.get_raw(path)

    async def history(self, path: str) -> list[VersionRecord]:
        return await self.transport.history(path, limit=HISTORY_PAGE_SIZE)

    async def download_at_version(self, path: str, version_id: str) -> bytes:
        """Return the content of the file as it was at the given version (see history)"""
        return await self.transport.get_raw(path, ref=version_id)
