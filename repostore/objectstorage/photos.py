"""
Member profile photos, stored as members/{member_id}/profile-photo.{jpg|png|webp}

Every member has at most one photo. The extension follows the mime type of the last upload, so replacing a
photo by one of another type is a delete of the old path followed by a create of the new path. These are two
separate commits: a reader in between can see both (or, if the create fails, neither). Readers always probe
the extensions in a fixed order and take the first photo they find.
"""

import logging
import time

from repostore.models import ExistingPhoto, PhotoContent
from repostore.objectstorage import paths
from repostore.objectstorage.errors import NotFound, RemoteError
from repostore.objectstorage.photocache import PhotoCache
from repostore.objectstorage.transport import ContentTransport

logger = logging.getLogger("repostore.photos")


class ProfilePhotoStore:
    def __init__(self, transport: ContentTransport, cache: PhotoCache | None = None):
        self.transport = transport
        self.cache = cache

    async def find_existing(self, member_id: int) -> ExistingPhoto | None:
        """
        Probe the candidate paths one by one and return the first photo that exists.
        A missing candidate is not an error; any other failure aborts the probe.
        """
        for path, extension in paths.photo_paths(member_id):
            try:
                obj = await self.transport.stat(path)
            except NotFound:
                continue
            logger.debug(f"Found photo for member {member_id} at {path}")
            return ExistingPhoto(path=path, sha=obj.sha, extension=extension)
        return None

    async def upload(self, member_id: int, content: bytes, mime_type: str) -> str:
        """
        Create or replace the photo of this member, and return a URL to serve it from.

        Raises UnsupportedMimeType before touching the repository if mime_type is not an allowed image type.
        Raises Conflict if another upload with the same extension changed the photo since we probed it;
        probing again and retrying is safe.
        """
        extension = paths.extension_for(mime_type)
        existing = await self.find_existing(member_id)

        if existing and existing.extension != extension:
            try:
                await self.transport.delete(
                    existing.path, existing.sha, f"Delete old profile photo for member {member_id}"
                )
            except RemoteError as e:
                # Still write the new photo, so the member is not left without any
                logger.warning(f"Could not delete old profile photo {existing.path} of member {member_id}: {e}")

        path = paths.photo_path(member_id, extension)
        sha = None
        if existing and existing.extension == extension:
            sha = existing.sha
        elif existing:
            # An earlier replace may have left a photo at the new path behind the one we found
            sha = await self._current_sha(path)
        await self.transport.put(path, content, f"Update profile photo for member {member_id}", sha=sha)
        self.invalidate(member_id)

        # The timestamp makes browsers and proxies fetch the new photo instead of a cached old one
        return f"{self.transport.public_url(path)}?t={int(time.time() * 1000)}"

    async def delete(self, member_id: int) -> None:
        """
        Delete the photo of this member. Deleting a photo that does not exist is a no-op.
        All candidate paths are removed, including photos left behind by a failed replace.
        """
        try:
            for path, _extension in paths.photo_paths(member_id):
                sha = await self._current_sha(path)
                if sha is None:
                    continue
                try:
                    await self.transport.delete(path, sha, f"Delete profile photo for member {member_id}")
                except NotFound:
                    logger.info(f"Profile photo {path} of member {member_id} was already deleted")
        finally:
            self.invalidate(member_id)

    async def _current_sha(self, path: str) -> str | None:
        try:
            return (await self.transport.stat(path)).sha
        except NotFound:
            return None

    async def fetch(self, member_id: int) -> PhotoContent | None:
        """Download the photo from the repository, bypassing the cache"""
        existing = await self.find_existing(member_id)
        if existing is None:
            return None
        try:
            content = await self.transport.get_raw(existing.path)
        except NotFound:
            # deleted between probing and downloading
            return None
        return PhotoContent(content=content, mime_type=paths.mime_type_for(existing.extension))

    async def download(self, member_id: int) -> PhotoContent | None:
        if self.cache is None:
            return await self.fetch(member_id)
        return await self.cache.get(member_id, self.fetch)

    def invalidate(self, member_id: int) -> None:
        if self.cache is not None:
            self.cache.invalidate(member_id)
