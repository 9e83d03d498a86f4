import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from repostore import api
from repostore.connections import ContentStores
from repostore.objectstorage.photocache import PhotoCache
from repostore.objectstorage.photos import ProfilePhotoStore
from repostore.objectstorage.projectfiles import ProjectFileStore
from repostore.objectstorage.transport import ContentTransport
from tests.tools import FakeClock, MemoryTransport

TEST_API_URL = "https://api.github.test"
TEST_RAW_URL = "https://raw.github.test"


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def photo_transport():
    return MemoryTransport(repo="user-data")


@pytest.fixture()
def files_transport():
    return MemoryTransport(repo="project-files")


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def cache(clock):
    return PhotoCache(ttl=300, clock=clock)


@pytest.fixture()
def photos(photo_transport, cache):
    return ProfilePhotoStore(photo_transport, cache=cache)  # type: ignore[arg-type]


@pytest.fixture()
def project_files(files_transport):
    return ProjectFileStore(files_transport)  # type: ignore[arg-type]


@pytest.fixture()
async def github():
    """A transport for the club/storage repository on a (mocked) GitHub API"""
    async with httpx.AsyncClient(timeout=5) as client:
        yield ContentTransport(
            client, owner="club", repo="storage", token="secret", branch="main", api_url=TEST_API_URL, raw_url=TEST_RAW_URL
        )


@pytest.fixture()
async def client(photos, project_files, cache):
    stores = ContentStores(client=httpx.AsyncClient(), photos=photos, project_files=project_files, photo_cache=cache)
    api.app.state.stores = stores
    try:
        async with AsyncClient(transport=ASGITransport(app=api.app), base_url="http://test") as client:
            yield client
    finally:
        api.app.state.stores = None
        await stores.close()
