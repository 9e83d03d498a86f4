import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx

from repostore.config import Settings, get_settings
from repostore.objectstorage.photocache import PhotoCache
from repostore.objectstorage.photos import ProfilePhotoStore
from repostore.objectstorage.projectfiles import ProjectFileStore
from repostore.objectstorage.transport import ContentTransport

logger = logging.getLogger("repostore.connections")


class ContentStores:
    """The stores used by the application, sharing one HTTP client. Build once per process."""

    client: httpx.AsyncClient
    photo_cache: PhotoCache
    photos: ProfilePhotoStore
    project_files: ProjectFileStore

    def __init__(
        self,
        client: httpx.AsyncClient,
        photos: ProfilePhotoStore,
        project_files: ProjectFileStore,
        photo_cache: PhotoCache,
    ):
        self.client = client
        self.photos = photos
        self.project_files = project_files
        self.photo_cache = photo_cache

    async def close(self) -> None:
        self.photo_cache.clear()
        await self.client.aclose()


def create_stores(settings: Settings | None = None, client: httpx.AsyncClient | None = None) -> ContentStores:
    settings = settings or get_settings()
    if not settings.github_owner:
        raise ValueError("github_owner not specified")
    if client is None:
        client = httpx.AsyncClient(timeout=httpx.Timeout(settings.request_timeout))

    def transport(repo: str, token: str | None) -> ContentTransport:
        return ContentTransport(
            client,
            owner=settings.github_owner,  # type: ignore[arg-type]
            repo=repo,
            token=token,
            branch=settings.github_branch,
            api_url=settings.github_api_url,
            raw_url=settings.github_raw_url,
        )

    cache = PhotoCache(ttl=settings.photo_cache_ttl, max_entries=settings.photo_cache_max_entries)
    photos = ProfilePhotoStore(transport(settings.photo_repo, settings.github_token), cache=cache)
    project_files = ProjectFileStore(
        transport(settings.files_repo, settings.files_token), max_file_size=settings.max_file_size
    )
    logger.debug(
        f"Content stores: photos in {photos.transport.name}, project files in {project_files.transport.name} "
        f"(branch {settings.github_branch}, timeout {settings.request_timeout}s)"
    )
    return ContentStores(client=client, photos=photos, project_files=project_files, photo_cache=cache)


@asynccontextmanager
async def content_stores(settings: Settings | None = None) -> AsyncGenerator[ContentStores, None]:
    """
    The context manager to start and stop the content stores.
    Use this once per process:
        - For running the server: in the FastAPI lifespan
        - For CLI commands: within the CLI command
    """
    stores = create_stores(settings)
    try:
        yield stores
    finally:
        await stores.close()
